"""Reconciliation workflow: refresh from file tags, pick and merge candidates,
apply user selections, fingerprint, and attach lyrics.
"""

from __future__ import annotations

import copy
import logging
import re
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone

from config.settings import NO_LYRICS_MARKER
from engine.search import build_lyrics_params
from media.fingerprint import FpcalcFingerprinter
from metadata import merge
from metadata.errors import NotFoundError, ProviderError, ReconciliationError, SelectionError
from metadata.identity import (
    assign_placeholders,
    build_artist_choices,
    match_track_artists,
    resolve_album_artist,
    resolve_identities,
    resolve_track_artist,
)
from metadata.tagger import read_file_tags, write_file_tags
from metadata.types import Album, ArtistRole, Metadata, MetadataSource, Track

logger = logging.getLogger(__name__)

_UNKNOWN_ALBUM = "Unknown Album"

_NON_LYRIC_PATTERNS = (
    r"lyrics? by",
    r"copyright",
    r"all rights reserved",
    r"buy.*track",
    r"download.*now",
    r"instrumental",
    r"\[music\]",
    r"\[intro\]",
    r"\[outro\]",
)
_SECTION_PATTERNS = (r"\[verse\]", r"\[chorus\]", r"\[bridge\]", r"\[pre-chorus\]")
_COMMON_WORDS_RE = re.compile(
    r"\b(the|and|you|love|i'm|can't|will|just|know|like|have|this|that|with|from|they|been|when|"
    r"make|what|some|could|them|than|then|back|only|take|time|come|here|more|want|look|your|was|"
    r"way|out|well|now|say|she|her|his|him|how|its|our|their|who|did|get|has|may|new|old|see|try|"
    r"two|use|why)\b"
)


def score_lyrics(lyrics, params):
    """Return ``(quality, confidence)`` for a lyrics candidate.

    Quality is a non-negative integer; confidence is clamped to ``[0, 1]``.
    """
    if not lyrics:
        return 0, 0.0
    quality = 0
    confidence = 0.0

    length = len(lyrics.strip())
    if length > 500:
        quality, confidence = quality + 30, confidence + 0.3
    elif length > 200:
        quality, confidence = quality + 20, confidence + 0.2
    elif length > 50:
        quality, confidence = quality + 10, confidence + 0.1

    non_empty = sum(1 for line in lyrics.split("\n") if line.strip())
    if non_empty > 8:
        quality, confidence = quality + 20, confidence + 0.2
    elif non_empty > 4:
        quality, confidence = quality + 10, confidence + 0.1

    lowered = lyrics.lower()
    for pattern in _NON_LYRIC_PATTERNS:
        if re.search(pattern, lowered):
            quality, confidence = quality - 10, confidence - 0.1
    for pattern in _SECTION_PATTERNS:
        if re.search(pattern, lowered):
            quality, confidence = quality + 15, confidence + 0.15

    if params.title and params.title.lower() in lowered:
        quality, confidence = quality + 10, confidence + 0.1
    if params.artist and params.artist.lower() in lowered:
        quality, confidence = quality + 5, confidence + 0.05

    if len(_COMMON_WORDS_RE.findall(lowered)) > 10:
        quality, confidence = quality + 10, confidence + 0.1

    words = lowered.split()
    if words:
        ratio = len(set(words)) / len(words)
        if ratio < 0.3:
            quality, confidence = quality - 15, confidence - 0.15
        elif ratio > 0.7:
            quality, confidence = quality + 10, confidence + 0.1

    return max(quality, 0), min(max(confidence, 0.0), 1.0)


@dataclass
class TagSelection:
    """Values chosen by the user for a track edit.

    ``artist_ids``, ``album_id`` and ``album_artist_id`` use the external id
    form, so ``temp_<name>`` placeholders are accepted.
    """

    title: str = ""
    title_version: str = ""
    isrc: str = ""
    year: int = 0
    genre: str = ""
    track_number: int = 0
    disc_number: int = 0
    composer: str = ""
    lyrics: str = ""
    bpm: float = 0.0
    gain: float = 0.0
    source: str = ""
    source_url: str = ""
    artist_ids: list[str] = field(default_factory=list)
    album_id: str = ""
    album_artist_id: str = ""


class TaggingService:
    def __init__(
        self,
        library,
        search,
        tag_reader=read_file_tags,
        tag_writer=write_file_tags,
        fingerprinter=None,
        acoustid=None,
    ):
        self.library = library
        self.search = search
        self.tag_reader = tag_reader
        self.tag_writer = tag_writer
        self.fingerprinter = fingerprinter or FpcalcFingerprinter()
        self.acoustid = acoustid

    def _load_track(self, track_id):
        track = self.library.get_track(track_id)
        if track is None:
            raise NotFoundError(f"track not found: {track_id}")
        return track

    def _known_artists(self):
        try:
            return self.library.get_artists()
        except Exception:
            logger.warning("artist_lookup_failed; artists left unmatched", exc_info=True)
            return []

    def get_track_file_tags(self, track_id):
        """Return the stored track refreshed with what its file currently says.

        A file that cannot be read is logged and the stored record is
        returned as is.
        """
        track = self._load_track(track_id)
        try:
            current = self.tag_reader(track.path)
        except (ReconciliationError, OSError) as exc:
            logger.warning("file_tags_read_failed track_id=%s path=%s error=%s", track_id, track.path, exc)
            return track

        result = copy.copy(track)
        result.metadata = current.metadata
        result.title = current.title
        result.isrc = current.isrc
        result.title_version = current.title_version
        result.path = current.path or track.path
        result.format = current.format
        result.sample_rate = current.sample_rate
        result.bit_depth = current.bit_depth
        result.channels = current.channels
        result.bitrate = current.bitrate
        return match_track_artists(result, self._known_artists())

    def reconcile(self, existing, fetched):
        return merge.reconcile(existing, fetched)

    def resolve_identities(self, track, known=None):
        return resolve_identities(track, self._known_artists() if known is None else known)

    def artist_choices(self, track):
        """Artists offered for selection while editing ``track``."""
        return build_artist_choices(self._known_artists(), track)

    def select_candidate(self, track_id, provider_name, index):
        """Merge search result ``index`` from ``provider_name`` into the track.

        The merged track is not persisted; unresolved artists carry
        placeholder ids for display.
        """
        results = self.search.search(track_id, provider_name)
        if index < 0 or index >= len(results):
            raise SelectionError(f"invalid result index {index}; {len(results)} result(s) available")
        existing = self.get_track_file_tags(track_id)
        merged = merge.reconcile(existing, results[index])
        return assign_placeholders(merged)

    def _build_track(self, original, selection):
        track = Track(
            id=original.id,
            path=original.path,
            title=selection.title,
            title_version=selection.title_version,
            isrc=selection.isrc,
            metadata=Metadata(
                duration=original.metadata.duration,
                year=selection.year,
                genre=selection.genre,
                track_number=selection.track_number,
                disc_number=selection.disc_number,
                composer=selection.composer,
                lyrics=selection.lyrics,
                bpm=selection.bpm,
                gain=selection.gain,
            ),
            metadata_source=MetadataSource(source=selection.source, url=selection.source_url),
            chromaprint_fingerprint=original.chromaprint_fingerprint,
            format=original.format,
            sample_rate=original.sample_rate,
            bit_depth=original.bit_depth,
            channels=original.channels,
            bitrate=original.bitrate,
        )

        for raw_id in selection.artist_ids:
            raw_id = raw_id.strip()
            if raw_id:
                track.artists.append(ArtistRole(artist=resolve_track_artist(self.library, raw_id), role="main"))

        album_id = selection.album_id.strip()
        if album_id:
            try:
                track.album = self.library.get_album(album_id)
            except Exception:
                logger.warning("album_lookup_failed album_id=%s", album_id, exc_info=True)
            if track.album is None:
                logger.warning("album_not_found album_id=%s", album_id)

        album_artist_id = selection.album_artist_id.strip()
        album_artist = resolve_album_artist(self.library, album_artist_id) if album_artist_id else None
        if album_artist is not None:
            roles = [ArtistRole(artist=album_artist, role="main")]
            if track.album is None:
                title = original.album.title if original.album is not None and original.album.title else _UNKNOWN_ALBUM
                track.album = Album(title=title, artists=roles)
            else:
                track.album.artists = roles
        return track

    def apply_selection(self, track_id, selection):
        """Persist a user edit to the file tags and the library."""
        original = self._load_track(track_id)
        updated = self._build_track(original, selection)
        now = datetime.now(timezone.utc)
        updated.added_date = original.added_date
        updated.modified_date = now

        if updated.album is not None and not updated.album.id:
            updated.album.id = str(uuid.uuid4())
            updated.album.added_date = now
            updated.album.modified_date = now
            self.library.add_album(updated.album)
            logger.info("album_created album_id=%s title=%s", updated.album.id, updated.album.title)

        self.tag_writer(original.path, updated)

        if updated.album is not None:
            updated.album.modified_date = now
            self.library.update_album(updated.album)
        self.library.update_track(updated)
        logger.info("track_tags_updated track_id=%s path=%s", track_id, original.path)
        return updated

    def _write_tags_logged(self, track, what):
        try:
            self.tag_writer(track.path, track)
        except (ReconciliationError, OSError) as exc:
            logger.warning("%s_tag_write_failed track_id=%s path=%s error=%s", what, track.id, track.path, exc)
            return False
        return True

    def calculate_fingerprint(self, track_id):
        track = self._load_track(track_id)
        fingerprint, _duration = self.fingerprinter.generate_fingerprint(track.path)
        track.chromaprint_fingerprint = fingerprint
        track.modified_date = datetime.now(timezone.utc)
        if self._write_tags_logged(track, "fingerprint"):
            logger.info("fingerprint_tag_written track_id=%s path=%s", track_id, track.path)
        self.library.update_track(track)
        logger.info("fingerprint_updated track_id=%s", track_id)
        return fingerprint

    def add_fingerprint_and_acoustid(self, track_id):
        """Fingerprint the file, then look up its AcoustID.

        A failed lookup keeps the new fingerprint. Returns the stored AcoustID.
        """
        track = self._load_track(track_id)
        fingerprint, duration = self.fingerprinter.generate_fingerprint(track.path)
        track.chromaprint_fingerprint = fingerprint
        if self.acoustid is None:
            logger.warning("acoustid_client_missing track_id=%s", track_id)
        else:
            try:
                acoustid = self.acoustid.lookup(fingerprint, duration)
            except ProviderError as exc:
                logger.warning("acoustid_lookup_failed track_id=%s error=%s", track_id, exc)
            else:
                if acoustid:
                    track.acoustid = acoustid
                else:
                    logger.info("acoustid_no_match track_id=%s", track_id)
        track.modified_date = datetime.now(timezone.utc)
        self._write_tags_logged(track, "acoustid")
        self.library.update_track(track)
        logger.info("acoustid_updated track_id=%s acoustid=%s", track_id, track.acoustid)
        return track.acoustid

    def _store_lyrics(self, track, lyrics, provider_name):
        track.metadata.lyrics = lyrics
        track.modified_date = datetime.now(timezone.utc)
        self._write_tags_logged(track, "lyrics")
        self.library.update_track(track)
        logger.info("lyrics_added track_id=%s provider=%s length=%d", track.id, provider_name, len(lyrics))

    def add_lyrics(self, track_id, provider_name):
        """Fetch lyrics from one provider for a track that has none.

        Returns the stored lyrics, or an empty string when the track already
        had lyrics or the provider found nothing.
        """
        track = self._load_track(track_id)
        if track.metadata.lyrics:
            logger.debug("lyrics_present track_id=%s", track_id)
            return ""
        lyrics = self.search.search_lyrics(track_id, provider_name)
        if not lyrics:
            logger.info("lyrics_not_found track_id=%s provider=%s", track_id, provider_name)
            return ""
        quality, confidence = score_lyrics(lyrics, build_lyrics_params(track))
        logger.info("lyrics_found provider=%s track_id=%s quality=%d confidence=%.2f", provider_name, track_id, quality, confidence)
        self._store_lyrics(track, lyrics, provider_name)
        return lyrics

    def add_lyrics_with_best_provider(self, track_id):
        """Query every enabled lyrics provider and keep the best scoring result."""
        track = self._load_track(track_id)
        if track.metadata.lyrics:
            logger.debug("lyrics_present track_id=%s", track_id)
            return ""
        params = build_lyrics_params(track)
        best = None
        for provider in self.search.lyrics_providers:
            if not provider.enabled:
                continue
            try:
                lyrics = provider.search_lyrics(params)
            except Exception as exc:
                logger.warning("lyrics_search_failed provider=%s track_id=%s error=%s", provider.name, track_id, exc)
                continue
            if not lyrics:
                continue
            quality, confidence = score_lyrics(lyrics, params)
            logger.info("lyrics_found provider=%s track_id=%s quality=%d confidence=%.2f", provider.name, track_id, quality, confidence)
            if best is None or (quality, confidence) > (best[0], best[1]):
                best = (quality, confidence, provider.name, lyrics)
        if best is None:
            logger.info("lyrics_not_found track_id=%s providers=%d", track_id, len(self.search.lyrics_providers))
            return ""
        self._store_lyrics(track, best[3], best[2])
        return best[3]

    def set_no_lyrics(self, track_id):
        track = self._load_track(track_id)
        self._store_lyrics(track, NO_LYRICS_MARKER, "none")


__all__ = ["TagSelection", "TaggingService", "score_lyrics"]
