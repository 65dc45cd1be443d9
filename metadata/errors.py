"""Error taxonomy for the reconciliation engine."""

from __future__ import annotations


class ReconciliationError(Exception):
    """Base class for every error raised by this package."""


class NotFoundError(ReconciliationError):
    """A track, artist or album is absent from the library."""


class ArtistValidationError(ReconciliationError):
    """A placeholder track artist does not exist in the library."""


class SelectionError(ReconciliationError):
    """A caller-supplied selection does not address an existing candidate."""


class ProviderUnavailableError(ReconciliationError):
    """The requested provider is unknown or disabled."""


class ProviderError(ReconciliationError):
    """Transport, parsing or upstream failure inside a single provider."""

    def __init__(self, provider: str, message: str) -> None:
        self.provider = provider
        super().__init__(f"{provider}: {message}")


class NoMetadataFoundError(ReconciliationError):
    """Fallback search exhausted every enabled provider without a result."""


class TagIOError(ReconciliationError):
    """Reading or writing file tags failed."""


class FingerprintError(ReconciliationError):
    """The acoustic fingerprint could not be generated."""
