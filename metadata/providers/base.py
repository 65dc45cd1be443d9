from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any, Protocol

import requests

from config.settings import HTTP_TIMEOUT_SECONDS, USER_AGENT
from metadata.errors import ProviderError
from metadata.types import LyricsSearchParams, SearchParams, Track


class MetadataProvider(Protocol):
    name: str
    enabled: bool

    def search_tracks(self, params: SearchParams) -> Iterable[Track]:
        raise NotImplementedError


class LyricsProvider(Protocol):
    name: str
    enabled: bool

    def search_lyrics(self, params: LyricsSearchParams) -> str:
        raise NotImplementedError


def get_json(provider: str, url: str, *, params=None, headers=None) -> Any:
    """GET ``url`` and decode JSON, wrapping every failure in ``ProviderError``."""
    merged_headers = {"User-Agent": USER_AGENT}
    merged_headers.update(headers or {})
    try:
        response = requests.get(url, params=params, headers=merged_headers, timeout=HTTP_TIMEOUT_SECONDS)
    except requests.RequestException as exc:
        raise ProviderError(provider, f"request failed: {exc}") from exc
    if response.status_code != 200:
        logging.debug("%s request failed status=%s url=%s", provider, response.status_code, url)
        raise ProviderError(provider, f"request failed with status {response.status_code}")
    try:
        return response.json()
    except ValueError as exc:
        raise ProviderError(provider, "failed to decode response") from exc


def get_text(provider: str, url: str, *, params=None, headers=None) -> str:
    merged_headers = {"User-Agent": USER_AGENT}
    merged_headers.update(headers or {})
    try:
        response = requests.get(url, params=params, headers=merged_headers, timeout=HTTP_TIMEOUT_SECONDS)
    except requests.RequestException as exc:
        raise ProviderError(provider, f"request failed: {exc}") from exc
    if response.status_code != 200:
        raise ProviderError(provider, f"request failed with status {response.status_code}")
    return response.text


def parse_year(value: Any) -> int:
    """Leading four-digit year of a release date, or 0."""
    text = str(value or "").strip()
    if len(text) < 4 or not text[:4].isdigit():
        return 0
    return int(text[:4])


def parse_int(value: Any) -> int:
    try:
        return int(str(value).split("/", 1)[0].strip())
    except (TypeError, ValueError):
        return 0
