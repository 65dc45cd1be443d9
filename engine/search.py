"""Metadata and lyrics search across the configured providers."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from metadata.errors import (
    NoMetadataFoundError,
    NotFoundError,
    ProviderUnavailableError,
)
from metadata.identity import match_track_artists
from metadata.types import LyricsSearchParams, SearchParams, Track

logger = logging.getLogger(__name__)


def build_search_params(track: Track) -> SearchParams:
    """Derive provider query parameters from a library track."""
    params = SearchParams(title=track.title, year=track.metadata.year, track_id=track.id)
    if track.album is not None:
        params.album = track.album.title
        primary = track.album.primary_artist()
        if primary is not None and primary.name:
            params.album_artist = primary.name
    return params


def build_lyrics_params(track: Track) -> LyricsSearchParams:
    params = LyricsSearchParams(track_id=track.id, title=track.title)
    primary = track.primary_artist()
    if primary is not None:
        params.artist = primary.name
    if track.album is not None:
        params.album = track.album.title
        album_artist = track.album.primary_artist()
        if album_artist is not None:
            params.album_artist = album_artist.name
    if not params.artist:
        params.artist = params.album_artist
    return params


class MetadataSearch:
    """Runs provider searches for library tracks.

    ``providers`` and ``lyrics_providers`` are kept in the order given, which
    is also the fallback order. Only providers whose ``enabled`` flag is set
    are ever queried.
    """

    def __init__(self, library, providers: Iterable = (), lyrics_providers: Iterable = ()) -> None:
        self.library = library
        self.providers = list(providers)
        self.lyrics_providers = list(lyrics_providers)

    def enabled_providers(self) -> dict[str, bool]:
        return {provider.name: bool(provider.enabled) for provider in self.providers}

    def enabled_lyrics_providers(self) -> dict[str, bool]:
        return {provider.name: bool(provider.enabled) for provider in self.lyrics_providers}

    def _load_track(self, track_id: str) -> Track:
        track = self.library.get_track(track_id)
        if track is None:
            raise NotFoundError(f"track not found: {track_id}")
        return track

    def _pick(self, providers, provider_name: str, label: str):
        for provider in providers:
            if provider.name == provider_name and provider.enabled:
                return provider
        raise ProviderUnavailableError(f"{label} '{provider_name}' not found or not enabled")

    def _known_artists(self) -> list | None:
        try:
            return self.library.get_artists()
        except Exception:
            logger.warning("artist_lookup_failed; returning unmatched results", exc_info=True)
            return None

    def _finish(self, provider_name: str, results: list[Track]) -> list[Track]:
        for track in results:
            if not track.metadata_source.source:
                track.metadata_source.source = provider_name
        known = self._known_artists()
        if known is not None:
            for track in results:
                match_track_artists(track, known)
        return results

    def search(self, track_id: str, provider_name: str) -> list[Track]:
        """Query one named, enabled provider. Provider errors propagate."""
        track = self._load_track(track_id)
        provider = self._pick(self.providers, provider_name, "provider")
        params = build_search_params(track)
        results = list(provider.search_tracks(params))
        logger.info("metadata_search provider=%s track_id=%s results=%d", provider.name, track_id, len(results))
        return self._finish(provider.name, results)

    def search_with_fallback(self, track_id: str) -> Track:
        """Return the first result of the first enabled provider that has one."""
        track = self._load_track(track_id)
        params = build_search_params(track)
        for provider in self.providers:
            if not provider.enabled:
                continue
            try:
                results = list(provider.search_tracks(params))
            except Exception as exc:
                logger.warning("metadata_search_failed provider=%s track_id=%s error=%s", provider.name, track_id, exc)
                continue
            if not results:
                logger.debug("metadata_search_empty provider=%s track_id=%s", provider.name, track_id)
                continue
            logger.info("metadata_fallback_hit provider=%s track_id=%s", provider.name, track_id)
            return self._finish(provider.name, results[:1])[0]
        raise NoMetadataFoundError("no metadata found from enabled providers")

    def search_lyrics(self, track_id: str, provider_name: str) -> str:
        track = self._load_track(track_id)
        provider = self._pick(self.lyrics_providers, provider_name, "lyrics provider")
        lyrics = provider.search_lyrics(build_lyrics_params(track))
        logger.info("lyrics_search provider=%s track_id=%s found=%s", provider.name, track_id, bool(lyrics))
        return lyrics


__all__ = ["MetadataSearch", "build_lyrics_params", "build_search_params"]
