"""Application settings constants."""

from __future__ import annotations

# Prefix marking an artist identity that is not yet confirmed in the library.
PLACEHOLDER_PREFIX = "temp_"

# Seconds before an outbound provider request is abandoned.
HTTP_TIMEOUT_SECONDS = 10

USER_AGENT = "trackreconciler/1.0 (+https://github.com/trackreconciler/trackreconciler)"

# Registration order; fallback search walks enabled providers in this order.
METADATA_PROVIDER_ORDER = ("musicbrainz", "deezer", "discogs", "mock")
LYRICS_PROVIDER_ORDER = ("lrclib", "genius")

# Lyrics marker written when a track is known to have no lyrics.
NO_LYRICS_MARKER = "[No Lyrics]"

DEFAULT_DB_FILENAME = "library.sqlite3"
