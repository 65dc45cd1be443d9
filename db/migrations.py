"""SQLite migrations for the music library store."""

from __future__ import annotations

import sqlite3


def ensure_library_tables(conn: sqlite3.Connection) -> None:
    """Ensure artist, album and track tables and indexes exist."""
    cur = conn.cursor()
    cur.execute(
        """
        CREATE TABLE IF NOT EXISTS artists (
            id TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            sort_name TEXT NOT NULL DEFAULT ''
        )
        """
    )
    cur.execute("CREATE INDEX IF NOT EXISTS idx_artists_name ON artists (name)")
    cur.execute(
        """
        CREATE TABLE IF NOT EXISTS albums (
            id TEXT PRIMARY KEY,
            title TEXT NOT NULL,
            added_date TEXT,
            modified_date TEXT
        )
        """
    )
    cur.execute(
        """
        CREATE TABLE IF NOT EXISTS album_artists (
            album_id TEXT NOT NULL,
            position INTEGER NOT NULL,
            artist_id TEXT NOT NULL,
            role TEXT NOT NULL,
            FOREIGN KEY (album_id) REFERENCES albums(id) ON DELETE CASCADE,
            FOREIGN KEY (artist_id) REFERENCES artists(id),
            PRIMARY KEY (album_id, position)
        )
        """
    )
    cur.execute(
        """
        CREATE TABLE IF NOT EXISTS tracks (
            id TEXT PRIMARY KEY,
            path TEXT NOT NULL,
            album_id TEXT,
            payload_json TEXT NOT NULL,
            added_date TEXT,
            modified_date TEXT,
            FOREIGN KEY (album_id) REFERENCES albums(id)
        )
        """
    )
    cur.execute("CREATE INDEX IF NOT EXISTS idx_tracks_path ON tracks (path)")
    cur.execute(
        """
        CREATE TABLE IF NOT EXISTS track_artists (
            track_id TEXT NOT NULL,
            position INTEGER NOT NULL,
            artist_id TEXT NOT NULL,
            role TEXT NOT NULL,
            FOREIGN KEY (track_id) REFERENCES tracks(id) ON DELETE CASCADE,
            FOREIGN KEY (artist_id) REFERENCES artists(id),
            PRIMARY KEY (track_id, position)
        )
        """
    )
    conn.commit()
