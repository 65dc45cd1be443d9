"""Structured library types shared by providers, the merge engine and the store."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from config.settings import PLACEHOLDER_PREFIX


@dataclass
class Artist:
    id: str = ""
    name: str = ""
    sort_name: str = ""

    def is_persisted(self) -> bool:
        """True when ``id`` names a stored artist rather than a placeholder."""
        return bool(self.id) and not self.id.startswith(PLACEHOLDER_PREFIX)


@dataclass
class ArtistRole:
    artist: Artist | None = None
    role: str = "main"


@dataclass
class Album:
    id: str = ""
    title: str = ""
    artists: list[ArtistRole] = field(default_factory=list)
    added_date: datetime | None = None
    modified_date: datetime | None = None

    def is_persisted(self) -> bool:
        return bool(self.id) and not self.id.startswith(PLACEHOLDER_PREFIX)

    def primary_artist(self) -> Artist | None:
        if self.artists and self.artists[0].artist is not None:
            return self.artists[0].artist
        return None


@dataclass
class Metadata:
    duration: int = 0
    year: int = 0
    original_year: int = 0
    genre: str = ""
    track_number: int = 0
    disc_number: int = 0
    composer: str = ""
    lyrics: str = ""
    bpm: float = 0.0
    gain: float = 0.0
    explicit_lyrics: bool = False


@dataclass
class MetadataSource:
    source: str = ""
    url: str = ""


@dataclass
class Track:
    """A single audio file as known to the library or returned by a provider.

    ``path``, ``format``, ``sample_rate``, ``bit_depth``, ``channels`` and
    ``bitrate`` describe the physical file. Providers never populate them.
    """

    id: str = ""
    title: str = ""
    title_version: str = ""
    isrc: str = ""
    chromaprint_fingerprint: str = ""
    acoustid: str = ""
    artists: list[ArtistRole] = field(default_factory=list)
    album: Album | None = None
    metadata: Metadata = field(default_factory=Metadata)
    metadata_source: MetadataSource = field(default_factory=MetadataSource)
    path: str = ""
    format: str = ""
    sample_rate: int = 0
    bit_depth: int = 0
    channels: int = 0
    bitrate: int = 0
    explicit_content: bool = False
    preview_url: str = ""
    added_date: datetime | None = None
    modified_date: datetime | None = None

    def primary_artist(self) -> Artist | None:
        if self.artists and self.artists[0].artist is not None:
            return self.artists[0].artist
        return None


@dataclass
class SearchParams:
    """Query contract consumed by every metadata provider."""

    title: str = ""
    album_artist: str = ""
    album: str = ""
    year: int = 0
    track_id: str = ""

    def is_empty(self) -> bool:
        return not (self.title or self.album_artist or self.album)


@dataclass
class LyricsSearchParams:
    track_id: str = ""
    title: str = ""
    artist: str = ""
    album: str = ""
    album_artist: str = ""

    def is_empty(self) -> bool:
        return not (self.title or self.artist)


@dataclass(frozen=True)
class PersistedIdentity:
    id: str

    def render(self) -> str:
        return self.id


@dataclass(frozen=True)
class PlaceholderIdentity:
    name: str

    def render(self) -> str:
        return f"{PLACEHOLDER_PREFIX}{self.name}"


ArtistIdentity = PersistedIdentity | PlaceholderIdentity


def parse_identity(raw: str) -> ArtistIdentity:
    """Parse the external id form; the placeholder prefix is stripped once."""
    if raw.startswith(PLACEHOLDER_PREFIX):
        return PlaceholderIdentity(name=raw[len(PLACEHOLDER_PREFIX):])
    return PersistedIdentity(id=raw)


__all__ = [
    "Album",
    "Artist",
    "ArtistIdentity",
    "ArtistRole",
    "LyricsSearchParams",
    "Metadata",
    "MetadataSource",
    "PersistedIdentity",
    "PlaceholderIdentity",
    "SearchParams",
    "Track",
    "parse_identity",
]
