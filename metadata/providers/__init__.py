from metadata.providers.acoustid import AcoustIDClient
from metadata.providers.base import LyricsProvider, MetadataProvider
from metadata.providers.deezer import DeezerMetadataProvider
from metadata.providers.discogs import DiscogsMetadataProvider
from metadata.providers.genius import GeniusLyricsProvider
from metadata.providers.lrclib import LrclibLyricsProvider
from metadata.providers.mock import MockMetadataProvider
from metadata.providers.musicbrainz import MusicBrainzMetadataProvider

__all__ = [
    "AcoustIDClient",
    "DeezerMetadataProvider",
    "DiscogsMetadataProvider",
    "GeniusLyricsProvider",
    "LrclibLyricsProvider",
    "LyricsProvider",
    "MetadataProvider",
    "MockMetadataProvider",
    "MusicBrainzMetadataProvider",
]
