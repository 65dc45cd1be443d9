"""Database helpers for the track reconciler."""

from db.library import SQLiteLibrary

__all__ = ["SQLiteLibrary"]
