"""Offline provider serving a fixed set of candidate tracks."""

from __future__ import annotations

import copy
from collections.abc import Iterable, Iterator

from metadata.types import SearchParams, Track


class MockMetadataProvider:
    """Returns copies of ``candidates`` whose title contains the searched title.

    An empty title matches every candidate; all-empty params match nothing.
    """

    def __init__(self, candidates: Iterable[Track] = (), *, name: str = "mock", enabled: bool = True) -> None:
        self.name = name
        self.enabled = enabled
        self.candidates = list(candidates)
        self.calls: list[SearchParams] = []

    def search_tracks(self, params: SearchParams) -> Iterator[Track]:
        self.calls.append(params)
        if params.is_empty():
            return iter(())
        needle = params.title.lower()
        return iter([copy.deepcopy(track) for track in self.candidates if needle in track.title.lower()])
