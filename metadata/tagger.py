import logging
import os

from mutagen import File as MutagenFile
from mutagen import MutagenError
from mutagen.id3 import ID3, USLT, ID3NoHeaderError
from mutagen.mp4 import MP4

from metadata.errors import TagIOError
from metadata.providers.base import parse_int, parse_year
from metadata.types import Album, Artist, ArtistRole, Metadata, MetadataSource, Track

_MP4_EXTENSIONS = {".m4a", ".mp4", ".m4b"}


def _first(tags, key):
    try:
        values = tags.get(key) if tags is not None else None
    except (KeyError, ValueError):
        return ""
    if not values:
        return ""
    if isinstance(values, (list, tuple)):
        return str(values[0])
    return str(values)


def _parse_float(value):
    try:
        return float(str(value).split()[0])
    except (IndexError, TypeError, ValueError):
        return 0.0


def read_file_tags(file_path):
    """Read tags and stream info of ``file_path`` into a ``Track``."""
    try:
        audio = MutagenFile(file_path, easy=True)
    except (MutagenError, OSError) as exc:
        raise TagIOError(f"failed to read tags from {file_path}: {exc}") from exc
    if audio is None:
        raise TagIOError(f"unsupported audio file: {file_path}")
    tags = audio.tags
    info = audio.info

    artists = []
    for name in (tags.get("artist") if tags is not None else None) or []:
        if name:
            artists.append(ArtistRole(artist=Artist(name=str(name)), role="main"))
    album = None
    album_title = _first(tags, "album")
    album_artist = _first(tags, "albumartist")
    if album_title or album_artist:
        album = Album(title=album_title)
        if album_artist:
            album.artists = [ArtistRole(artist=Artist(name=album_artist), role="main")]

    return Track(
        path=file_path,
        title=_first(tags, "title"),
        title_version=_first(tags, "version"),
        isrc=_first(tags, "isrc"),
        chromaprint_fingerprint=_first(tags, "acoustid_fingerprint"),
        acoustid=_first(tags, "acoustid_id"),
        artists=artists,
        album=album,
        metadata=Metadata(
            duration=int(getattr(info, "length", 0) or 0),
            year=parse_year(_first(tags, "date")),
            original_year=parse_year(_first(tags, "originaldate")),
            genre=_first(tags, "genre"),
            track_number=parse_int(_first(tags, "tracknumber")),
            disc_number=parse_int(_first(tags, "discnumber")),
            composer=_first(tags, "composer"),
            lyrics=_read_lyrics(file_path, tags),
            bpm=_parse_float(_first(tags, "bpm")),
            gain=_parse_float(_first(tags, "replaygain_track_gain")),
        ),
        metadata_source=MetadataSource(url=_first(tags, "website")),
        format=os.path.splitext(file_path)[1].lstrip(".").lower(),
        sample_rate=int(getattr(info, "sample_rate", 0) or 0),
        bit_depth=int(getattr(info, "bits_per_sample", 0) or 0),
        channels=int(getattr(info, "channels", 0) or 0),
        bitrate=int(getattr(info, "bitrate", 0) or 0),
    )


def _read_lyrics(file_path, tags):
    ext = os.path.splitext(file_path)[1].lower()
    if ext == ".mp3":
        try:
            frames = ID3(file_path).getall("USLT")
        except (ID3NoHeaderError, MutagenError, OSError):
            return ""
        return str(frames[0].text) if frames else ""
    if ext in _MP4_EXTENSIONS:
        try:
            values = (MP4(file_path).tags or {}).get("\xa9lyr")
        except (MutagenError, OSError):
            return ""
        return str(values[0]) if values else ""
    return _first(tags, "lyrics")


def _tag_values(track):
    meta = track.metadata
    values = {
        "title": track.title,
        "version": track.title_version,
        "isrc": track.isrc,
        "acoustid_fingerprint": track.chromaprint_fingerprint,
        "acoustid_id": track.acoustid,
        "artist": [role.artist.name for role in track.artists if role.artist and role.artist.name],
        "genre": meta.genre,
        "composer": meta.composer,
        "date": str(meta.year) if meta.year else "",
        "originaldate": str(meta.original_year) if meta.original_year else "",
        "tracknumber": str(meta.track_number) if meta.track_number else "",
        "discnumber": str(meta.disc_number) if meta.disc_number else "",
        "bpm": str(int(round(meta.bpm))) if meta.bpm else "",
        "replaygain_track_gain": f"{meta.gain:.2f} dB" if meta.gain else "",
        "website": track.metadata_source.url,
    }
    if track.album is not None:
        values["album"] = track.album.title
        primary = track.album.primary_artist()
        values["albumartist"] = primary.name if primary else ""
    return values


def write_file_tags(file_path, track):
    """Write ``track`` metadata into the tags of ``file_path``.

    Keys the container format cannot store are skipped with a debug log.
    """
    try:
        audio = MutagenFile(file_path, easy=True)
    except (MutagenError, OSError) as exc:
        raise TagIOError(f"failed to open {file_path} for tagging: {exc}") from exc
    if audio is None:
        raise TagIOError(f"unsupported audio file: {file_path}")
    if audio.tags is None:
        audio.add_tags()

    for key, value in _tag_values(track).items():
        try:
            if value:
                audio.tags[key] = value
            elif key in audio.tags:
                del audio.tags[key]
        except (KeyError, ValueError):
            logging.debug("Tag %s not supported for %s", key, os.path.basename(file_path))
    ext = os.path.splitext(file_path)[1].lower()
    if ext != ".mp3" and ext not in _MP4_EXTENSIONS:
        if track.metadata.lyrics:
            audio.tags["lyrics"] = track.metadata.lyrics
        elif "lyrics" in audio.tags:
            del audio.tags["lyrics"]
    try:
        audio.save()
        _write_lyrics(file_path, ext, track.metadata.lyrics)
    except (MutagenError, OSError) as exc:
        raise TagIOError(f"failed to write tags to {file_path}: {exc}") from exc


def _write_lyrics(file_path, ext, lyrics):
    if ext == ".mp3":
        audio = ID3(file_path)
        audio.delall("USLT")
        if lyrics:
            audio.add(USLT(encoding=3, lang="eng", desc="Lyrics", text=str(lyrics)))
        audio.save(file_path)
    elif ext in _MP4_EXTENSIONS:
        audio = MP4(file_path)
        if audio.tags is None:
            audio.add_tags()
        if lyrics:
            audio.tags["\xa9lyr"] = [str(lyrics)]
        else:
            audio.tags.pop("\xa9lyr", None)
        audio.save()
