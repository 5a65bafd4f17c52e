"""
SQLite database integration and simple migration system.

This module provides ``get_connection`` for services, a ``get_cursor``
context manager and ``init_db`` which applies migrations on
application start.  Applied versions are recorded in the
``migrations`` table and new migrations run in order.

Documents with nested arrays (list entries, event participants,
messages and group restrictions) are stored as child tables.  Each
child row carries an autoincrement ``id`` so that reading ``ORDER BY
id`` returns the array in insertion order.
"""

import os
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from .config import settings


def get_database_path() -> str:
    """Compute the path to the SQLite database file.

    If ``settings.database_url`` is an absolute path, use it directly.
    Otherwise resolve it relative to the project root.
    """
    db_url = settings.database_url
    if os.path.isabs(db_url):
        return db_url
    base_dir = Path(__file__).resolve().parent.parent.parent  # roadamico_api/
    return str((base_dir / db_url).resolve())


def get_connection() -> sqlite3.Connection:
    """Create and return a new SQLite connection.

    Rows are returned as ``sqlite3.Row`` so columns can be accessed by
    name.  Foreign key enforcement is switched on for the lifetime of
    the connection; SQLite leaves it off by default.
    """
    conn = sqlite3.connect(get_database_path())
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


@contextmanager
def get_cursor() -> Iterator[sqlite3.Cursor]:
    """Context manager that yields a cursor and closes the connection on exit."""
    conn = get_connection()
    try:
        yield conn.cursor()
        conn.commit()
    finally:
        conn.close()


MIGRATIONS: list[tuple[int, str]] = [
    # Migration 1: users, groups and places referenced by lists and events
    (
        1,
        """
        CREATE TABLE IF NOT EXISTS users (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            email TEXT NOT NULL UNIQUE,
            name TEXT,
            role TEXT NOT NULL DEFAULT 'user',
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        );

        CREATE TABLE IF NOT EXISTS groups (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL,
            administrator_id INTEGER,
            FOREIGN KEY(administrator_id) REFERENCES users(id)
        );

        CREATE TABLE IF NOT EXISTS user_groups (
            user_id INTEGER NOT NULL,
            group_id INTEGER NOT NULL,
            PRIMARY KEY (user_id, group_id),
            FOREIGN KEY(user_id) REFERENCES users(id),
            FOREIGN KEY(group_id) REFERENCES groups(id)
        );

        CREATE TABLE IF NOT EXISTS places (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT,
            location_details TEXT,
            ratings TEXT,
            feed TEXT
        );
        """,
    ),
    # Migration 2: lists of places
    (
        2,
        """
        CREATE TABLE IF NOT EXISTS lists (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        );

        CREATE TABLE IF NOT EXISTS list_entries (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            list_id INTEGER NOT NULL,
            place_id INTEGER,
            note TEXT,
            FOREIGN KEY(list_id) REFERENCES lists(id) ON DELETE CASCADE
        );
        CREATE INDEX IF NOT EXISTS idx_list_entries_list_id ON list_entries(list_id);
        """,
    ),
    # Migration 3: events with their participants, messages and group restrictions
    (
        3,
        """
        CREATE TABLE IF NOT EXISTS events (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT,
            datetime TIMESTAMP,
            meetup_time TIMESTAMP,
            meetup_place TEXT,
            place_id INTEGER NOT NULL,
            creator_id INTEGER NOT NULL,
            created TIMESTAMP NOT NULL,
            canceled INTEGER NOT NULL DEFAULT 0,
            FOREIGN KEY(creator_id) REFERENCES users(id)
        );
        CREATE INDEX IF NOT EXISTS idx_events_place_id ON events(place_id);

        CREATE TABLE IF NOT EXISTS event_groups (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            event_id INTEGER NOT NULL,
            group_id INTEGER NOT NULL,
            FOREIGN KEY(event_id) REFERENCES events(id) ON DELETE CASCADE
        );
        CREATE INDEX IF NOT EXISTS idx_event_groups_event_id ON event_groups(event_id);

        -- A user can appear at most once per event; the unique index
        -- rejects the second of two concurrent joins.
        CREATE TABLE IF NOT EXISTS event_participants (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            event_id INTEGER NOT NULL,
            user_id INTEGER NOT NULL,
            datetime TIMESTAMP NOT NULL,
            FOREIGN KEY(event_id) REFERENCES events(id) ON DELETE CASCADE,
            FOREIGN KEY(user_id) REFERENCES users(id)
        );
        CREATE UNIQUE INDEX IF NOT EXISTS idx_event_participants_unique
            ON event_participants(event_id, user_id);

        CREATE TABLE IF NOT EXISTS event_messages (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            event_id INTEGER NOT NULL,
            poster_id INTEGER NOT NULL,
            datetime TIMESTAMP NOT NULL,
            text TEXT,
            FOREIGN KEY(event_id) REFERENCES events(id) ON DELETE CASCADE,
            FOREIGN KEY(poster_id) REFERENCES users(id)
        );
        CREATE INDEX IF NOT EXISTS idx_event_messages_event_id ON event_messages(event_id);
        """,
    ),
    # Migration 4: notifications produced by event cancellation and messages
    (
        4,
        """
        CREATE TABLE IF NOT EXISTS notifications (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            user_id INTEGER NOT NULL,
            datetime TIMESTAMP NOT NULL,
            data TEXT NOT NULL,
            FOREIGN KEY(user_id) REFERENCES users(id)
        );
        CREATE INDEX IF NOT EXISTS idx_notifications_user_id ON notifications(user_id);
        """,
    ),
]


def init_db() -> None:
    """Initialise the database and apply pending migrations.

    Creates the ``migrations`` table if it does not exist, reads the
    current schema version and applies every migration in
    ``MIGRATIONS`` with a higher version number.
    """
    with get_cursor() as cursor:
        cursor.execute(
            "CREATE TABLE IF NOT EXISTS migrations (version INTEGER PRIMARY KEY)"
        )
        cursor.execute("SELECT MAX(version) as version FROM migrations")
        row = cursor.fetchone()
        current_version = row["version"] if row and row["version"] is not None else 0

        for version, sql in MIGRATIONS:
            if version > current_version:
                cursor.executescript(sql)
                cursor.execute(
                    "INSERT INTO migrations (version) VALUES (?)", (version,)
                )
                current_version = version
