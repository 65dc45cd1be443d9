"""Track metadata model, identity resolution and merge."""
