import logging
import threading

import musicbrainzngs

from metadata.errors import ProviderError
from metadata.providers.base import parse_int, parse_year
from metadata.types import Album, Artist, ArtistRole, Metadata, MetadataSource, Track

_RECORDING_URL = "https://musicbrainz.org/recording/{recording_id}"
_init_lock = threading.Lock()
_initialized = False


def _ensure_initialized():
    global _initialized
    if _initialized:
        return
    with _init_lock:
        if _initialized:
            return
        logging.getLogger("musicbrainzngs").setLevel(logging.WARNING)
        musicbrainzngs.set_useragent(
            "trackreconciler",
            "1.0",
            "https://github.com/trackreconciler/trackreconciler",
        )
        _initialized = True


def _extract_artist(credit_list, fallback=None):
    for credit in credit_list or []:
        if isinstance(credit, dict):
            name = (credit.get("artist") or {}).get("name") or credit.get("name")
            if name:
                return name
    return fallback or ""


def _track_position(release):
    for medium in release.get("medium-list") or []:
        for entry in medium.get("track-list") or []:
            return parse_int(entry.get("number") or entry.get("position")), parse_int(medium.get("position"))
    return 0, 0


class MusicBrainzMetadataProvider:
    name = "musicbrainz"

    def __init__(self, *, enabled=True, limit=10):
        self.enabled = bool(enabled)
        self.limit = int(limit)

    def search_tracks(self, params):
        if params.is_empty():
            return
        query = {}
        if params.title:
            query["recording"] = params.title
        if params.album_artist:
            query["artist"] = params.album_artist
        if params.album:
            query["release"] = params.album
        _ensure_initialized()
        try:
            result = musicbrainzngs.search_recordings(limit=self.limit, strict=False, **query)
        except musicbrainzngs.MusicBrainzError as exc:
            raise ProviderError(self.name, f"search failed: {exc}") from exc
        for recording in result.get("recording-list") or []:
            yield _recording_to_track(recording)


def _recording_to_track(recording):
    artist = Artist(name=_extract_artist(recording.get("artist-credit"), recording.get("artist-credit-phrase")))
    releases = recording.get("release-list") or []
    release = releases[0] if releases else {}
    album = None
    track_number = disc_number = 0
    if release:
        release_artist = _extract_artist(release.get("artist-credit"))
        album_artist = Artist(name=release_artist) if release_artist and release_artist != artist.name else artist
        album = Album(title=release.get("title") or "", artists=[ArtistRole(artist=album_artist, role="main")])
        track_number, disc_number = _track_position(release)
    isrcs = recording.get("isrc-list") or []
    recording_id = recording.get("id") or ""
    return Track(
        title=recording.get("title") or "",
        isrc=isrcs[0] if isrcs else "",
        artists=[ArtistRole(artist=artist, role="main")],
        album=album,
        metadata=Metadata(
            duration=int(round(parse_int(recording.get("length")) / 1000)),
            year=parse_year(release.get("date")),
            track_number=track_number,
            disc_number=disc_number,
        ),
        metadata_source=MetadataSource(
            source="musicbrainz",
            url=_RECORDING_URL.format(recording_id=recording_id) if recording_id else "",
        ),
    )
