from metadata.errors import ProviderError
from metadata.providers.base import get_json

_ACOUSTID_LOOKUP_URL = "https://api.acoustid.org/v2/lookup"


class AcoustIDClient:
    """Look up AcoustID track ids for chromaprint fingerprints."""

    name = "acoustid"

    def __init__(self, *, enabled=True, client_key=None):
        self.enabled = bool(enabled)
        self.client_key = (client_key or "").strip() or None

    def lookup(self, fingerprint, duration):
        """Return the id of the highest scoring match, or ``""`` without matches."""
        if not self.enabled:
            raise ProviderError(self.name, "lookup is disabled in configuration")
        if not self.client_key:
            raise ProviderError(self.name, "client key not configured")
        payload = get_json(
            self.name,
            _ACOUSTID_LOOKUP_URL,
            params={
                "client": self.client_key,
                "meta": "recordings+sources",
                "duration": int(duration),
                "fingerprint": fingerprint,
            },
        )
        if not isinstance(payload, dict):
            raise ProviderError(self.name, "unexpected lookup payload")
        if payload.get("status") != "ok":
            message = (payload.get("error") or {}).get("message")
            raise ProviderError(self.name, message or f"lookup returned status {payload.get('status')}")
        best = None
        for result in payload.get("results") or []:
            if best is None or float(result.get("score") or 0) > float(best.get("score") or 0):
                best = result
        return (best or {}).get("id") or ""
