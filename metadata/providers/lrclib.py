import re

from metadata.errors import ProviderError
from metadata.providers.base import get_json

_LRCLIB_SEARCH_URL = "https://lrclib.net/api/search"
_TIMESTAMP_RE = re.compile(r"^\s*(?:\[[^\]]*\])+\s*")


def plain_from_synced(synced):
    """Strip ``[mm:ss.xx]`` timestamps from LRC formatted lyrics."""
    lines = []
    for line in (synced or "").splitlines():
        if "]" not in line:
            continue
        lines.append(_TIMESTAMP_RE.sub("", line).strip())
    return "\n".join(lines)


class LrclibLyricsProvider:
    name = "lrclib"

    def __init__(self, *, enabled=True):
        self.enabled = bool(enabled)

    def search_lyrics(self, params):
        query = {}
        if params.title:
            query["track_name"] = params.title
        if params.artist:
            query["artist_name"] = params.artist
        if params.album:
            query["album_name"] = params.album
        if not query:
            raise ProviderError(self.name, "insufficient search parameters")
        payload = get_json(self.name, _LRCLIB_SEARCH_URL, params=query)
        if not isinstance(payload, list):
            raise ProviderError(self.name, "unexpected search payload")
        if not payload:
            return ""
        song = payload[0]
        if song.get("plainLyrics"):
            return song["plainLyrics"]
        if song.get("syncedLyrics"):
            return plain_from_synced(song["syncedLyrics"])
        return ""
