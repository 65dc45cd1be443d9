"""Non-destructive merge of a fetched candidate into an existing library track."""

from __future__ import annotations

import copy
import logging
from datetime import datetime, timezone
from typing import Any

from metadata.types import Album, Track

_LOG = logging.getLogger(__name__)

_TRACK_TEXT_FIELDS = ("title", "isrc", "title_version", "chromaprint_fingerprint", "acoustid", "preview_url")
_METADATA_NUMERIC_FIELDS = (
    "duration",
    "year",
    "original_year",
    "track_number",
    "disc_number",
    "bpm",
    "gain",
)
_METADATA_TEXT_FIELDS = ("genre", "composer", "lyrics")
_SOURCE_FIELDS = ("source", "url")
_FILE_FIELDS = ("path", "format", "sample_rate", "bit_depth", "channels", "bitrate")


def reconcile(existing: Track, fetched: Track, *, now: datetime | None = None) -> Track:
    """Combine ``fetched`` with ``existing`` field by field.

    Scalars take the fetched value unless it is empty/zero and the existing one
    is not. File-technical fields, ``id`` and ``added_date`` always come from
    ``existing``. Booleans always take the fetched value, so a fetched
    ``False`` clears a previously known ``True``. Neither input is mutated.
    """
    current = copy.deepcopy(existing)
    result = copy.deepcopy(fetched)

    result.id = current.id
    result.added_date = current.added_date
    result.modified_date = now or datetime.now(timezone.utc)
    for name in _FILE_FIELDS:
        setattr(result, name, getattr(current, name))

    _keep_existing(result, current, _TRACK_TEXT_FIELDS, "track")
    _keep_existing(result.metadata, current.metadata, _METADATA_NUMERIC_FIELDS, "metadata")
    _keep_existing(result.metadata, current.metadata, _METADATA_TEXT_FIELDS, "metadata")
    _keep_existing(result.metadata_source, current.metadata_source, _SOURCE_FIELDS, "source")

    if not result.artists and current.artists:
        _LOG.debug("merge_keep_existing field=artists")
        result.artists = current.artists

    result.album = _merge_album(result.album, current.album)
    return result


def _keep_existing(target: Any, existing: Any, names: tuple[str, ...], scope: str) -> None:
    for name in names:
        if not getattr(target, name) and getattr(existing, name):
            _LOG.debug("merge_keep_existing field=%s.%s", scope, name)
            setattr(target, name, getattr(existing, name))


def _merge_album(fetched: Album | None, existing: Album | None) -> Album | None:
    if fetched is None:
        return existing
    if existing is None:
        return fetched
    if not fetched.title and existing.title:
        _LOG.debug("merge_keep_existing field=album.title")
        fetched.title = existing.title
    if not fetched.artists and existing.artists:
        _LOG.debug("merge_keep_existing field=album.artists")
        fetched.artists = existing.artists
    return fetched


__all__ = ["reconcile"]
