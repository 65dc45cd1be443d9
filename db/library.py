"""SQLite-backed music library: tracks, albums and artists keyed by opaque ids."""

from __future__ import annotations

import json
import os
import sqlite3
import uuid
from dataclasses import asdict
from datetime import datetime, timezone

from config.settings import DEFAULT_DB_FILENAME
from db.migrations import ensure_library_tables
from metadata.errors import ArtistValidationError, NotFoundError
from metadata.types import Album, Artist, ArtistRole, Metadata, MetadataSource, Track

_DEFAULT_DB_ENV_KEY = "RECONCILER_DB_PATH"

_TRACK_SCALAR_FIELDS = (
    "title",
    "title_version",
    "isrc",
    "chromaprint_fingerprint",
    "acoustid",
    "path",
    "format",
    "sample_rate",
    "bit_depth",
    "channels",
    "bitrate",
    "explicit_content",
    "preview_url",
)


def _resolve_db_path() -> str:
    return os.environ.get(_DEFAULT_DB_ENV_KEY, os.path.join(os.getcwd(), DEFAULT_DB_FILENAME))


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def _parse_dt(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _require_stored_roles(roles: list[ArtistRole], owner: str) -> None:
    for role in roles:
        if role.artist is None or not role.artist.is_persisted():
            name = role.artist.name if role.artist else ""
            raise ArtistValidationError(f"{owner} artist '{name}' is not stored in the library")


class SQLiteLibrary:
    """Library store; one connection per operation.

    Placeholder (``temp_``) and empty artist ids are rejected on every write.
    """

    def __init__(self, db_path: str | None = None) -> None:
        self.db_path = db_path or _resolve_db_path()

    def _connect(self) -> sqlite3.Connection:
        directory = os.path.dirname(self.db_path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        conn = sqlite3.connect(self.db_path, check_same_thread=False, timeout=30)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        ensure_library_tables(conn)
        return conn

    # Artists

    def add_artist(self, artist: Artist) -> Artist:
        if artist.id and not artist.is_persisted():
            raise ArtistValidationError(f"placeholder artist id '{artist.id}' cannot be stored")
        if not artist.name.strip():
            raise ValueError("artist name is required")
        if not artist.id:
            artist.id = str(uuid.uuid4())
        conn = self._connect()
        try:
            conn.execute(
                "INSERT INTO artists (id, name, sort_name) VALUES (?, ?, ?)",
                (artist.id, artist.name, artist.sort_name),
            )
            conn.commit()
        finally:
            conn.close()
        return artist

    def get_artist(self, artist_id: str) -> Artist | None:
        conn = self._connect()
        try:
            row = conn.execute("SELECT id, name, sort_name FROM artists WHERE id=?", (artist_id,)).fetchone()
        finally:
            conn.close()
        return Artist(id=row["id"], name=row["name"], sort_name=row["sort_name"]) if row else None

    def get_artist_by_name(self, name: str) -> Artist | None:
        """Exact, case-sensitive name lookup."""
        conn = self._connect()
        try:
            row = conn.execute(
                "SELECT id, name, sort_name FROM artists WHERE name=? ORDER BY rowid LIMIT 1",
                (name,),
            ).fetchone()
        finally:
            conn.close()
        return Artist(id=row["id"], name=row["name"], sort_name=row["sort_name"]) if row else None

    def get_artists(self) -> list[Artist]:
        conn = self._connect()
        try:
            rows = conn.execute("SELECT id, name, sort_name FROM artists ORDER BY rowid").fetchall()
        finally:
            conn.close()
        return [Artist(id=row["id"], name=row["name"], sort_name=row["sort_name"]) for row in rows]

    def find_or_create_artist(self, name: str) -> Artist:
        existing = self.get_artist_by_name(name)
        if existing is not None:
            return existing
        return self.add_artist(Artist(name=name))

    # Albums

    def _artist_roles(self, conn: sqlite3.Connection, table: str, key: str, owner_id: str) -> list[ArtistRole]:
        rows = conn.execute(
            f"""
            SELECT a.id, a.name, a.sort_name, x.role
            FROM {table} x JOIN artists a ON a.id = x.artist_id
            WHERE x.{key}=?
            ORDER BY x.position
            """,
            (owner_id,),
        ).fetchall()
        return [
            ArtistRole(artist=Artist(id=row["id"], name=row["name"], sort_name=row["sort_name"]), role=row["role"])
            for row in rows
        ]

    def _write_roles(self, conn, table: str, key: str, owner_id: str, roles: list[ArtistRole]) -> None:
        conn.execute(f"DELETE FROM {table} WHERE {key}=?", (owner_id,))
        conn.executemany(
            f"INSERT INTO {table} ({key}, position, artist_id, role) VALUES (?, ?, ?, ?)",
            [(owner_id, idx, role.artist.id, role.role) for idx, role in enumerate(roles)],
        )

    def _load_album(self, conn: sqlite3.Connection, album_id: str) -> Album | None:
        row = conn.execute(
            "SELECT id, title, added_date, modified_date FROM albums WHERE id=?", (album_id,)
        ).fetchone()
        if row is None:
            return None
        return Album(
            id=row["id"],
            title=row["title"],
            artists=self._artist_roles(conn, "album_artists", "album_id", row["id"]),
            added_date=_parse_dt(row["added_date"]),
            modified_date=_parse_dt(row["modified_date"]),
        )

    def add_album(self, album: Album) -> Album:
        _require_stored_roles(album.artists, "album")
        if not album.id:
            album.id = str(uuid.uuid4())
        album.added_date = album.added_date or _now()
        album.modified_date = album.modified_date or album.added_date
        conn = self._connect()
        try:
            conn.execute(
                "INSERT INTO albums (id, title, added_date, modified_date) VALUES (?, ?, ?, ?)",
                (album.id, album.title, _iso(album.added_date), _iso(album.modified_date)),
            )
            self._write_roles(conn, "album_artists", "album_id", album.id, album.artists)
            conn.commit()
        finally:
            conn.close()
        return album

    def update_album(self, album: Album) -> None:
        _require_stored_roles(album.artists, "album")
        conn = self._connect()
        try:
            cur = conn.execute(
                "UPDATE albums SET title=?, modified_date=? WHERE id=?",
                (album.title, _iso(album.modified_date or _now()), album.id),
            )
            if cur.rowcount == 0:
                raise NotFoundError(f"album not found: {album.id}")
            self._write_roles(conn, "album_artists", "album_id", album.id, album.artists)
            conn.commit()
        finally:
            conn.close()

    def get_album(self, album_id: str) -> Album | None:
        conn = self._connect()
        try:
            return self._load_album(conn, album_id)
        finally:
            conn.close()

    def get_albums(self) -> list[Album]:
        conn = self._connect()
        try:
            ids = [row["id"] for row in conn.execute("SELECT id FROM albums ORDER BY rowid").fetchall()]
            return [album for album in (self._load_album(conn, album_id) for album_id in ids) if album]
        finally:
            conn.close()

    # Tracks

    def _track_payload(self, track: Track) -> str:
        payload = {name: getattr(track, name) for name in _TRACK_SCALAR_FIELDS}
        payload["metadata"] = asdict(track.metadata)
        payload["metadata_source"] = asdict(track.metadata_source)
        return json.dumps(payload)

    def _write_track(self, track: Track, *, insert: bool) -> None:
        _require_stored_roles(track.artists, "track")
        if track.album is not None and not track.album.is_persisted():
            raise NotFoundError(f"album '{track.album.title}' must be stored before its tracks")
        album_id = track.album.id if track.album else None
        values = (track.path, album_id, self._track_payload(track), _iso(track.modified_date))
        conn = self._connect()
        try:
            if insert:
                conn.execute(
                    "INSERT INTO tracks (path, album_id, payload_json, modified_date, added_date, id) "
                    "VALUES (?, ?, ?, ?, ?, ?)",
                    values + (_iso(track.added_date), track.id),
                )
            else:
                cur = conn.execute(
                    "UPDATE tracks SET path=?, album_id=?, payload_json=?, modified_date=? WHERE id=?",
                    values + (track.id,),
                )
                if cur.rowcount == 0:
                    raise NotFoundError(f"track not found: {track.id}")
            self._write_roles(conn, "track_artists", "track_id", track.id, track.artists)
            conn.commit()
        finally:
            conn.close()

    def add_track(self, track: Track) -> Track:
        if not track.id:
            track.id = str(uuid.uuid4())
        track.added_date = track.added_date or _now()
        track.modified_date = track.modified_date or track.added_date
        self._write_track(track, insert=True)
        return track

    def update_track(self, track: Track) -> None:
        self._write_track(track, insert=False)

    def get_track(self, track_id: str) -> Track | None:
        conn = self._connect()
        try:
            row = conn.execute(
                "SELECT id, album_id, payload_json, added_date, modified_date FROM tracks WHERE id=?",
                (track_id,),
            ).fetchone()
            if row is None:
                return None
            payload = json.loads(row["payload_json"])
            track = Track(
                id=row["id"],
                metadata=Metadata(**payload.pop("metadata", {})),
                metadata_source=MetadataSource(**payload.pop("metadata_source", {})),
                artists=self._artist_roles(conn, "track_artists", "track_id", row["id"]),
                album=self._load_album(conn, row["album_id"]) if row["album_id"] else None,
                added_date=_parse_dt(row["added_date"]),
                modified_date=_parse_dt(row["modified_date"]),
                **{name: payload[name] for name in _TRACK_SCALAR_FIELDS if name in payload},
            )
        finally:
            conn.close()
        return track
