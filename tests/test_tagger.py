from __future__ import annotations

import pytest
from mutagen import MutagenError

from metadata import tagger
from metadata.errors import TagIOError
from metadata.types import Album, Artist, ArtistRole, Metadata, MetadataSource, Track


class _Info:
    length = 354.6
    sample_rate = 44100
    bits_per_sample = 16
    channels = 2
    bitrate = 900000


class _Tags(dict):
    """Easy-tag mapping that rejects keys outside ``supported``."""

    def __init__(self, values=None, supported=None):
        super().__init__(values or {})
        self.supported = supported

    def __setitem__(self, key, value):
        if self.supported is not None and key not in self.supported:
            raise KeyError(key)
        super().__setitem__(key, value)


class _FakeAudio:
    def __init__(self, tags=None):
        self.tags = tags
        self.info = _Info()
        self.saved = 0

    def add_tags(self):
        self.tags = _Tags()

    def save(self):
        self.saved += 1


def test_read_file_tags_maps_easy_tags(monkeypatch) -> None:
    audio = _FakeAudio(
        _Tags(
            {
                "title": ["Bohemian Rhapsody"],
                "isrc": ["GBUM71029604"],
                "artist": ["Queen", "Freddie Mercury"],
                "album": ["A Night at the Opera"],
                "albumartist": ["Queen"],
                "date": ["1975-11-21"],
                "genre": ["Rock"],
                "tracknumber": ["11/12"],
                "discnumber": ["1/1"],
                "bpm": ["72"],
                "replaygain_track_gain": ["-6.50 dB"],
                "lyrics": ["Is this the real life?"],
                "website": ["https://www.deezer.com/track/9997018"],
            }
        )
    )
    monkeypatch.setattr(tagger, "MutagenFile", lambda path, easy=True: audio)

    track = tagger.read_file_tags("/music/Bohemian.FLAC")

    assert track.title == "Bohemian Rhapsody"
    assert [role.artist.name for role in track.artists] == ["Queen", "Freddie Mercury"]
    assert all(role.artist.id == "" for role in track.artists)
    assert track.album.title == "A Night at the Opera"
    assert track.album.artists[0].artist.name == "Queen"
    assert track.metadata.year == 1975
    assert track.metadata.track_number == 11
    assert track.metadata.duration == 354
    assert track.metadata.bpm == 72.0
    assert track.metadata.gain == -6.5
    assert track.metadata.lyrics == "Is this the real life?"
    assert track.metadata_source.url == "https://www.deezer.com/track/9997018"
    assert track.format == "flac"
    assert track.sample_rate == 44100
    assert track.path == "/music/Bohemian.FLAC"


def test_read_file_tags_errors(monkeypatch) -> None:
    monkeypatch.setattr(tagger, "MutagenFile", lambda path, easy=True: None)
    with pytest.raises(TagIOError, match="unsupported audio file"):
        tagger.read_file_tags("/music/notes.txt")

    def broken(path, easy=True):
        raise MutagenError("corrupt header")

    monkeypatch.setattr(tagger, "MutagenFile", broken)
    with pytest.raises(TagIOError):
        tagger.read_file_tags("/music/broken.flac")


def test_write_file_tags_sets_clears_and_skips_unsupported(monkeypatch) -> None:
    supported = {"title", "artist", "album", "albumartist", "date", "genre", "tracknumber", "lyrics", "isrc"}
    audio = _FakeAudio(_Tags({"isrc": ["OLD"], "genre": ["Pop"]}, supported=supported))
    monkeypatch.setattr(tagger, "MutagenFile", lambda path, easy=True: audio)
    track = Track(
        title="Bohemian Rhapsody",
        artists=[ArtistRole(artist=Artist(id="a1", name="Queen"))],
        album=Album(title="A Night at the Opera", artists=[ArtistRole(artist=Artist(id="a1", name="Queen"))]),
        metadata=Metadata(year=1975, track_number=11, lyrics="Is this the real life?", bpm=72.0),
        metadata_source=MetadataSource(source="deezer", url="https://www.deezer.com/track/9997018"),
    )

    tagger.write_file_tags("/music/bohemian.flac", track)

    assert audio.tags["title"] == "Bohemian Rhapsody"
    assert audio.tags["artist"] == ["Queen"]
    assert audio.tags["albumartist"] == "Queen"
    assert audio.tags["date"] == "1975"
    assert audio.tags["tracknumber"] == "11"
    assert audio.tags["lyrics"] == "Is this the real life?"
    assert "isrc" not in audio.tags
    assert "genre" not in audio.tags
    assert "bpm" not in audio.tags
    assert audio.saved == 1


def test_write_file_tags_clears_stale_lyrics_on_vorbis_files(monkeypatch) -> None:
    audio = _FakeAudio(_Tags({"lyrics": ["old words"], "title": ["Old"]}))
    monkeypatch.setattr(tagger, "MutagenFile", lambda path, easy=True: audio)

    tagger.write_file_tags("/music/bohemian.flac", Track(title="Bohemian Rhapsody", acoustid="9ff43b6a"))

    assert "lyrics" not in audio.tags
    assert audio.tags["title"] == "Bohemian Rhapsody"
    assert audio.tags["acoustid_id"] == "9ff43b6a"
    assert audio.saved == 1


def test_write_file_tags_wraps_save_errors(monkeypatch) -> None:
    audio = _FakeAudio(_Tags())

    def fail_save():
        raise OSError("read-only file system")

    audio.save = fail_save
    monkeypatch.setattr(tagger, "MutagenFile", lambda path, easy=True: audio)
    with pytest.raises(TagIOError):
        tagger.write_file_tags("/music/bohemian.flac", Track(title="X"))
