import logging

from metadata.errors import ProviderError
from metadata.providers.base import get_json, parse_int
from metadata.types import Album, Artist, ArtistRole, Metadata, MetadataSource, Track

_DISCOGS_SEARCH_URL = "https://api.discogs.com/database/search"
_DISCOGS_WEB_ROOT = "https://www.discogs.com"


def _canonical_url(uri):
    uri = uri or ""
    if uri.startswith("http"):
        return uri
    return f"{_DISCOGS_WEB_ROOT}{uri}"


def _parse_duration(value):
    text = str(value or "").strip()
    if ":" not in text:
        return 0
    minutes, _, seconds = text.partition(":")
    try:
        return int(minutes) * 60 + int(seconds)
    except ValueError:
        return 0


class DiscogsMetadataProvider:
    name = "discogs"

    def __init__(self, *, enabled=True, token=None, max_results=10, per_page=5):
        self.enabled = bool(enabled)
        self.token = (token or "").strip() or None
        self.max_results = int(max_results)
        self.per_page = int(per_page)

    def _headers(self):
        if not self.token:
            return {}
        return {"Authorization": f"Discogs token={self.token}"}

    def _request(self, url, params=None):
        payload = get_json(self.name, url, params=params, headers=self._headers())
        if not isinstance(payload, dict):
            raise ProviderError(self.name, "unexpected response payload")
        return payload

    def search_tracks(self, params):
        terms = " ".join(part for part in (params.title, params.album_artist) if part)
        if not terms and not params.album:
            return
        query = {"type": "release", "per_page": self.per_page}
        if terms:
            query["q"] = terms
        if params.album:
            query["release_title"] = params.album
        if params.year > 0:
            query["year"] = params.year
        payload = self._request(_DISCOGS_SEARCH_URL, params=query)

        emitted = 0
        seen = set()
        for result in payload.get("results") or []:
            resource_url = result.get("resource_url")
            if not resource_url:
                continue
            try:
                release = self._request(resource_url)
            except ProviderError:
                logging.debug("Discogs release lookup failed for %s", resource_url)
                continue
            for entry in release.get("tracklist") or []:
                if entry.get("type_", "track") != "track":
                    continue
                track = _to_track(entry, release)
                key = (track.title, track.album.title, track.metadata.year)
                if key in seen:
                    continue
                seen.add(key)
                yield track
                emitted += 1
                if emitted >= self.max_results:
                    return


def _to_track(entry, release):
    artists = release.get("artists") or []
    artist = Artist(name=(artists[0].get("name") or "") if artists else "")
    genres = release.get("genres") or release.get("styles") or []
    return Track(
        title=entry.get("title") or "",
        artists=[ArtistRole(artist=artist, role="main")],
        album=Album(
            title=release.get("title") or "",
            artists=[ArtistRole(artist=artist, role="main")],
        ),
        metadata=Metadata(
            duration=_parse_duration(entry.get("duration")),
            year=int(release.get("year") or 0),
            genre=genres[0] if genres else "",
            track_number=parse_int(entry.get("position")),
        ),
        metadata_source=MetadataSource(source="discogs", url=_canonical_url(release.get("uri"))),
    )
