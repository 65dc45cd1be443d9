import logging

from metadata.errors import ProviderError
from metadata.providers.base import get_json, parse_year
from metadata.types import Album, Artist, ArtistRole, Metadata, MetadataSource, Track

_DEEZER_SEARCH_URL = "https://api.deezer.com/search"
_DEEZER_ALBUM_URL = "https://api.deezer.com/album/{album_id}"


def _build_query(params):
    parts = []
    if params.title:
        parts.append(f'track:"{params.title}"')
    if params.album_artist:
        parts.append(f'artist:"{params.album_artist}"')
    if params.album:
        parts.append(f'album:"{params.album}"')
    return " ".join(parts)


class DeezerMetadataProvider:
    name = "deezer"

    def __init__(self, *, enabled=True, limit=10):
        self.enabled = bool(enabled)
        self.limit = int(limit)

    def search_tracks(self, params):
        query = _build_query(params)
        if not query:
            return
        payload = get_json(self.name, _DEEZER_SEARCH_URL, params={"q": query, "limit": self.limit})
        if not isinstance(payload, dict):
            raise ProviderError(self.name, "unexpected search payload")
        if payload.get("error"):
            raise ProviderError(self.name, str((payload["error"] or {}).get("message") or payload["error"]))
        for item in payload.get("data") or []:
            album_id = (item.get("album") or {}).get("id")
            details = self._album_details(album_id) if album_id else None
            yield _to_track(item, details)

    def _album_details(self, album_id):
        try:
            return get_json(self.name, _DEEZER_ALBUM_URL.format(album_id=album_id))
        except ProviderError:
            logging.debug("Deezer album lookup failed for %s", album_id)
            return None


def _to_track(item, details):
    artist = Artist(name=(item.get("artist") or {}).get("name") or "")
    album_info = item.get("album") or {}
    release_date = item.get("release_date")
    genre = ""
    if isinstance(details, dict):
        release_date = details.get("release_date") or release_date
        genres = (details.get("genres") or {}).get("data") or []
        if genres:
            genre = genres[0].get("name") or ""
    return Track(
        title=item.get("title_short") or item.get("title") or "",
        title_version=item.get("title_version") or "",
        isrc=item.get("isrc") or "",
        artists=[ArtistRole(artist=artist, role="main")],
        album=Album(
            title=album_info.get("title") or "",
            artists=[ArtistRole(artist=artist, role="main")],
        ),
        metadata=Metadata(
            duration=int(item.get("duration") or 0),
            year=parse_year(release_date),
            genre=genre,
            track_number=int(item.get("track_position") or 0),
            disc_number=int(item.get("disk_number") or 0),
            explicit_lyrics=bool(item.get("explicit_lyrics")),
        ),
        metadata_source=MetadataSource(source="deezer", url=item.get("link") or ""),
        explicit_content=bool(item.get("explicit_lyrics")),
        preview_url=item.get("preview") or "",
    )
