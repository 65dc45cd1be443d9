"""Artist identity resolution across the library, the edited track and providers.

Provider candidates carry bare artist names. A name is resolved to the stored
artist with exactly the same name (case-sensitive) when one exists; otherwise
it gets a ``temp_<name>`` placeholder that is only meant for display and must
never reach storage. Only an explicit album-artist assignment may create a new
stored artist.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from metadata.errors import ArtistValidationError, NotFoundError
from metadata.types import (
    Artist,
    ArtistRole,
    PlaceholderIdentity,
    Track,
    parse_identity,
)

logger = logging.getLogger(__name__)


def _index_by_name(known: Iterable[Artist]) -> dict[str, Artist]:
    index: dict[str, Artist] = {}
    for artist in known:
        # First stored artist wins when two share a name.
        index.setdefault(artist.name, artist)
    return index


def resolve_artist(name: str, known: Iterable[Artist]) -> Artist:
    """Return the stored artist named ``name`` or a placeholder for it."""
    match = _index_by_name(known).get(name)
    if match is not None:
        return match
    return Artist(id=PlaceholderIdentity(name).render(), name=name)


def _roles(track: Track) -> list[ArtistRole]:
    roles = list(track.artists)
    if track.album is not None:
        roles.extend(track.album.artists)
    return roles


def match_track_artists(track: Track, known: Iterable[Artist]) -> Track:
    """Swap unresolved artists on ``track`` for stored ones with the same name.

    Artists that already carry an id, placeholder or not, are left alone, and
    names without a stored match keep their empty id. Mutates and returns
    ``track``.
    """
    index = _index_by_name(known)
    for role in _roles(track):
        if role.artist is None or role.artist.id:
            continue
        stored = index.get(role.artist.name)
        if stored is not None:
            role.artist = stored
    return track


def assign_placeholders(track: Track) -> Track:
    """Give every artist still lacking an id its display placeholder."""
    for role in _roles(track):
        if role.artist is not None and not role.artist.id:
            role.artist.id = PlaceholderIdentity(role.artist.name).render()
    return track


def resolve_identities(track: Track, known: Iterable[Artist]) -> Track:
    return assign_placeholders(match_track_artists(track, known))


def build_artist_choices(known: Iterable[Artist], track: Track) -> list[Artist]:
    """Stored artists plus the track's own artists, unique by id."""
    choices: list[Artist] = []
    seen: set[str] = set()
    candidates = list(known) + [role.artist for role in _roles(track) if role.artist is not None]
    for artist in candidates:
        key = artist.id or PlaceholderIdentity(artist.name).render()
        if key in seen:
            continue
        seen.add(key)
        choices.append(artist)
    return choices


def resolve_track_artist(library, raw_id: str) -> Artist:
    """Resolve a submitted track-artist id to a stored artist without creating one."""
    identity = parse_identity(raw_id)
    if isinstance(identity, PlaceholderIdentity):
        artist = library.get_artist_by_name(identity.name)
        if artist is None:
            raise ArtistValidationError(
                f"artist '{identity.name}' does not exist in library; "
                "import a track with this artist first"
            )
        return artist
    artist = library.get_artist(identity.id)
    if artist is None:
        raise NotFoundError(f"artist with id '{identity.id}' not found in library")
    return artist


def find_or_create_artist(library, name: str) -> Artist:
    return library.find_or_create_artist(name)


def resolve_album_artist(library, raw_id: str) -> Artist | None:
    """Resolve a submitted album-artist id, creating the artist for placeholders.

    Lookup failures are logged and return ``None`` so callers keep the
    existing album artist.
    """
    identity = parse_identity(raw_id)
    try:
        if isinstance(identity, PlaceholderIdentity):
            return find_or_create_artist(library, identity.name)
        artist = library.get_artist(identity.id)
    except Exception:
        logger.warning("album_artist_resolve_failed id=%s", raw_id, exc_info=True)
        return None
    if artist is None:
        logger.warning("album_artist_not_found id=%s", raw_id)
    return artist


__all__ = [
    "assign_placeholders",
    "build_artist_choices",
    "find_or_create_artist",
    "match_track_artists",
    "resolve_album_artist",
    "resolve_artist",
    "resolve_identities",
    "resolve_track_artist",
]
