from __future__ import annotations

import copy
import logging
from datetime import datetime, timezone

from metadata.merge import reconcile
from metadata.types import Album, Artist, ArtistRole, Metadata, MetadataSource, Track

_NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
_ADDED = datetime(2020, 1, 1, tzinfo=timezone.utc)


def _existing() -> Track:
    return Track(
        id="t1",
        title="Foo",
        isrc="GBUM71029604",
        artists=[ArtistRole(artist=Artist(id="a1", name="Queen"))],
        album=Album(id="al1", title="A Night at the Opera", artists=[ArtistRole(artist=Artist(id="a1", name="Queen"))]),
        metadata=Metadata(duration=355, year=1975, genre="Rock", track_number=11, lyrics="Is this the real life?"),
        metadata_source=MetadataSource(source="deezer", url="https://www.deezer.com/track/1"),
        path="/music/a.mp3",
        format="mp3",
        sample_rate=44100,
        bit_depth=16,
        channels=2,
        bitrate=320000,
        added_date=_ADDED,
    )


def test_scenario_a_empty_title_keeps_existing_and_path_never_changes() -> None:
    existing = Track(title="Foo", path="/a.mp3", metadata=Metadata(year=0))
    fetched = Track(title="", path="/b.mp3", metadata=Metadata(year=1999))

    merged = reconcile(existing, fetched, now=_NOW)

    assert merged.title == "Foo"
    assert merged.metadata.year == 1999
    assert merged.path == "/a.mp3"


def test_scenario_b_fetched_artists_replace_empty_existing() -> None:
    existing = Track(title="Foo")
    fetched = Track(title="Foo", artists=[ArtistRole(artist=Artist(name="Queen"))])

    merged = reconcile(existing, fetched, now=_NOW)

    assert [role.artist.name for role in merged.artists] == ["Queen"]
    assert merged.artists[0].artist.id == ""


def test_scenario_c_empty_fetched_artists_keep_existing_list_wholesale() -> None:
    existing = Track(
        title="Foo",
        artists=[
            ArtistRole(artist=Artist(id="a1", name="Queen")),
            ArtistRole(artist=Artist(id="a2", name="David Bowie"), role="featured"),
        ],
    )
    fetched = Track(title="Under Pressure", artists=[])

    merged = reconcile(existing, fetched, now=_NOW)

    assert merged.artists == existing.artists


def test_numeric_and_text_fields_prefer_non_empty_fetched_values() -> None:
    fetched = Track(
        title="Bohemian Rhapsody",
        metadata=Metadata(duration=0, year=0, genre="Progressive Rock", track_number=0, bpm=72.0),
        metadata_source=MetadataSource(source="musicbrainz", url=""),
    )

    merged = reconcile(_existing(), fetched, now=_NOW)

    assert merged.title == "Bohemian Rhapsody"
    assert merged.isrc == "GBUM71029604"
    assert merged.metadata.duration == 355
    assert merged.metadata.year == 1975
    assert merged.metadata.track_number == 11
    assert merged.metadata.genre == "Progressive Rock"
    assert merged.metadata.bpm == 72.0
    assert merged.metadata.lyrics == "Is this the real life?"
    assert merged.metadata_source.source == "musicbrainz"
    assert merged.metadata_source.url == "https://www.deezer.com/track/1"


def test_technical_fields_and_identity_always_come_from_existing() -> None:
    existing = _existing()
    fetched = Track(
        id="other",
        title="X",
        path="/elsewhere.flac",
        format="flac",
        sample_rate=96000,
        bit_depth=24,
        channels=6,
        bitrate=2_000_000,
        added_date=datetime(1999, 1, 1, tzinfo=timezone.utc),
    )

    merged = reconcile(existing, fetched, now=_NOW)

    for name in ("id", "path", "format", "sample_rate", "bit_depth", "channels", "bitrate", "added_date"):
        assert getattr(merged, name) == getattr(existing, name)
    assert merged.modified_date == _NOW


def test_modified_date_defaults_to_current_utc_time() -> None:
    before = datetime.now(timezone.utc)
    merged = reconcile(_existing(), Track(title="X"))
    assert merged.modified_date >= before


def test_boolean_flags_always_take_fetched_value_even_false() -> None:
    # Known asymmetry: a fetched False clears a previously known True.
    existing = _existing()
    existing.explicit_content = True
    existing.metadata.explicit_lyrics = True

    merged = reconcile(existing, Track(title="Clean Edit"), now=_NOW)

    assert merged.explicit_content is False
    assert merged.metadata.explicit_lyrics is False


def test_album_missing_from_fetched_keeps_existing_album() -> None:
    existing = _existing()
    merged = reconcile(existing, Track(title="X"), now=_NOW)
    assert merged.album == existing.album


def test_album_title_and_artists_filled_from_existing_when_empty() -> None:
    existing = _existing()
    fetched = Track(title="X", album=Album(title=""))

    merged = reconcile(existing, fetched, now=_NOW)

    assert merged.album.title == "A Night at the Opera"
    assert merged.album.artists[0].artist.id == "a1"


def test_fetched_album_never_renames_persisted_existing_album() -> None:
    existing = _existing()
    fetched = Track(title="X", album=Album(title="Greatest Hits"))

    merged = reconcile(existing, fetched, now=_NOW)

    assert merged.album.title == "Greatest Hits"
    assert existing.album.title == "A Night at the Opera"
    merged.album.artists[0].artist.name = "Renamed"
    assert existing.album.artists[0].artist.name == "Queen"


def test_inputs_are_not_mutated() -> None:
    existing = _existing()
    fetched = Track(title="", artists=[], metadata=Metadata(year=2001))
    existing_before = copy.deepcopy(existing)
    fetched_before = copy.deepcopy(fetched)

    reconcile(existing, fetched, now=_NOW)

    assert existing == existing_before
    assert fetched == fetched_before


def _fully_populated() -> Track:
    track = _existing()
    track.title_version = "Remastered 2011"
    track.chromaprint_fingerprint = "AQAAT0mkaEkSZRE"
    track.acoustid = "9ff43b6a-4f16-427c-93c2-92307ca505e0"
    track.preview_url = "https://cdns-preview.dzcdn.net/stream/bohemian.mp3"
    track.metadata.original_year = 1975
    track.metadata.disc_number = 1
    track.metadata.composer = "Freddie Mercury"
    track.metadata.bpm = 72.0
    track.metadata.gain = -6.5
    return track


_SCALAR_FIELDS = (
    ("title",),
    ("isrc",),
    ("title_version",),
    ("chromaprint_fingerprint",),
    ("acoustid",),
    ("preview_url",),
    ("metadata", "duration"),
    ("metadata", "year"),
    ("metadata", "original_year"),
    ("metadata", "track_number"),
    ("metadata", "disc_number"),
    ("metadata", "bpm"),
    ("metadata", "gain"),
    ("metadata", "genre"),
    ("metadata", "composer"),
    ("metadata", "lyrics"),
    ("metadata_source", "source"),
    ("metadata_source", "url"),
)


def _field(track, path):
    value = track
    for name in path:
        value = getattr(value, name)
    return value


def test_merge_is_idempotent() -> None:
    existing = _fully_populated()
    fetched = Track(
        title="Bohemian Rhapsody",
        artists=[ArtistRole(artist=Artist(name="Queen"))],
        metadata=Metadata(year=1975, genre="Rock", bpm=0.0),
        metadata_source=MetadataSource(source="musicbrainz"),
    )

    once = reconcile(existing, fetched, now=_NOW)

    assert reconcile(existing, reconcile(existing, fetched, now=_NOW), now=_NOW) == once
    assert reconcile(once, fetched, now=_NOW) == once


def test_non_empty_existing_value_survives_empty_fetched_value() -> None:
    existing = _fully_populated()
    for path in _SCALAR_FIELDS:
        assert _field(existing, path), path

    merged = reconcile(existing, Track(), now=_NOW)

    for path in _SCALAR_FIELDS:
        assert _field(merged, path) == _field(existing, path), path
    assert merged.artists == existing.artists


def test_each_scalar_field_is_kept_when_only_it_is_empty() -> None:
    existing = _fully_populated()
    for path in _SCALAR_FIELDS:
        fetched = copy.deepcopy(existing)
        fetched.id = ""
        owner = _field(fetched, path[:-1])
        empty = type(getattr(owner, path[-1]))()
        setattr(owner, path[-1], empty)

        merged = reconcile(existing, fetched, now=_NOW)

        assert _field(merged, path) == _field(existing, path), path


def test_kept_fields_are_logged_at_debug(caplog) -> None:
    caplog.set_level(logging.DEBUG, logger="metadata.merge")
    reconcile(_existing(), Track(title=""), now=_NOW)
    assert "merge_keep_existing field=track.title" in caplog.text
    assert "merge_keep_existing field=artists" in caplog.text
