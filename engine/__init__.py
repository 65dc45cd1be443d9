from .config import (
    build_acoustid_client,
    build_fingerprinter,
    build_library,
    build_lyrics_providers,
    build_metadata_providers,
    load_config,
    setup_logging,
    validate_config,
)
from .search import MetadataSearch
from .tagging import TaggingService, TagSelection

__all__ = [
    "build_acoustid_client",
    "MetadataSearch",
    "TagSelection",
    "TaggingService",
    "build_fingerprinter",
    "build_library",
    "build_lyrics_providers",
    "build_metadata_providers",
    "load_config",
    "setup_logging",
    "validate_config",
]
