import re

from bs4 import BeautifulSoup

from metadata.errors import ProviderError
from metadata.providers.base import get_json, get_text

_GENIUS_ROOT = "https://genius.com"
_GENIUS_SEARCH_URL = "https://genius.com/api/search"
_BLANK_LINES_RE = re.compile(r"\n\s*\n+")


def extract_lyrics(html):
    """Join every lyrics container of a Genius song page into plain text."""
    soup = BeautifulSoup(html, "html.parser")
    parts = []
    for container in soup.find_all("div", attrs={"data-lyrics-container": "true"}):
        for br in container.find_all("br"):
            br.replace_with("\n")
        text = container.get_text().strip()
        if text:
            parts.append(text)
    return _BLANK_LINES_RE.sub("\n\n", "\n\n".join(parts)).strip()


class GeniusLyricsProvider:
    name = "genius"

    def __init__(self, *, enabled=True, access_token=None):
        self.enabled = bool(enabled)
        self.access_token = (access_token or "").strip() or None

    def _headers(self):
        if not self.access_token:
            return {}
        return {"Authorization": f"Bearer {self.access_token}"}

    def search_lyrics(self, params):
        query = " ".join(part for part in (params.title, params.artist) if part)
        if not query:
            raise ProviderError(self.name, "insufficient search parameters")
        payload = get_json(self.name, _GENIUS_SEARCH_URL, params={"q": query}, headers=self._headers())
        if not isinstance(payload, dict):
            raise ProviderError(self.name, "unexpected search payload")
        hits = (payload.get("response") or {}).get("hits") or []
        if not hits:
            return ""
        path = (hits[0].get("result") or {}).get("path")
        if not path:
            raise ProviderError(self.name, "search hit without a song path")
        html = get_text(self.name, f"{_GENIUS_ROOT}{path}")
        return extract_lyrics(html)
