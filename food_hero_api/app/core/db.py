"""
SQLite database integration and simple migration system.

``Database`` wraps the path of the SQLite file and hands out
connections.  ``transaction`` yields a connection whose work is
committed on success and rolled back on error, which is how the
lifecycle services group an entry transition with its counter update.
``init_db`` applies the migrations in ``MIGRATIONS`` on application
start; applied versions are recorded in the ``migrations`` table.
"""

import logging
import os
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator


logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    """Current time in UTC.  Stored as fixed-width ISO text so it sorts."""
    return datetime.now(timezone.utc)


MIGRATIONS: list[tuple[int, str]] = [
    # Migration 1: actors and waste entries
    (
        1,
        """
        CREATE TABLE IF NOT EXISTS users (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            email TEXT NOT NULL UNIQUE,
            password TEXT NOT NULL,
            role TEXT NOT NULL CHECK (role IN ('school', 'farmer')),
            institute_name TEXT,
            address TEXT,
            contact_number TEXT,
            name TEXT,
            purpose TEXT,
            other_purpose TEXT,
            waste_posts_count INTEGER NOT NULL DEFAULT 0 CHECK (waste_posts_count >= 0),
            waste_received_count INTEGER NOT NULL DEFAULT 0 CHECK (waste_received_count >= 0),
            stars INTEGER NOT NULL DEFAULT 0,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        );

        -- One row per waste disposal event.  The CHECK constraint keeps
        -- the lifecycle columns consistent with ``status``.
        CREATE TABLE IF NOT EXISTS waste_entries (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            school_id INTEGER NOT NULL,
            menu TEXT NOT NULL,
            weight REAL NOT NULL CHECK (weight > 0),
            date TEXT NOT NULL,
            image_url TEXT,
            posted_at TEXT NOT NULL,
            status TEXT NOT NULL DEFAULT 'posted',
            received_by INTEGER,
            received_at TEXT,
            delivered_at TEXT,
            FOREIGN KEY(school_id) REFERENCES users(id),
            FOREIGN KEY(received_by) REFERENCES users(id),
            CHECK (
                (status = 'posted' AND received_by IS NULL AND received_at IS NULL AND delivered_at IS NULL)
                OR (status = 'received' AND received_by IS NOT NULL AND received_at IS NOT NULL AND delivered_at IS NULL)
                OR (status = 'delivered' AND received_by IS NOT NULL AND received_at IS NOT NULL AND delivered_at IS NOT NULL)
            )
        );
        """,
    ),
    # Migration 2: indices for the feed and history queries
    (
        2,
        """
        CREATE INDEX IF NOT EXISTS idx_waste_entries_status_posted ON waste_entries(status, posted_at);
        CREATE INDEX IF NOT EXISTS idx_waste_entries_school ON waste_entries(school_id, date);
        CREATE INDEX IF NOT EXISTS idx_waste_entries_received_by ON waste_entries(received_by, received_at);
        """,
    ),
]


class Database:
    """Connection factory for one SQLite database file."""

    def __init__(self, path: str, timeout: float = 5.0) -> None:
        self.path = path
        self.timeout = timeout

    @classmethod
    def from_url(cls, database_url: str, timeout: float = 5.0) -> "Database":
        """Resolve ``database_url`` against the project root unless absolute."""
        if database_url == ":memory:" or os.path.isabs(database_url):
            return cls(database_url, timeout)
        base_dir = Path(__file__).resolve().parent.parent.parent.parent
        return cls(str((base_dir / database_url).resolve()), timeout)

    def connect(self, immediate: bool = False) -> sqlite3.Connection:
        """Create and return a new connection with rows keyed by column name.

        Foreign keys are enabled per connection because SQLite leaves
        them off by default.  With ``immediate`` the implicit transaction
        opened before the first write is ``BEGIN IMMEDIATE``, so
        competing writers queue on the busy timeout instead of failing
        when they try to upgrade a read lock.
        """
        isolation_level = "IMMEDIATE" if immediate else "DEFERRED"
        conn = sqlite3.connect(self.path, timeout=self.timeout, isolation_level=isolation_level)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """Yield a connection; commit on success, roll back on any error."""
        conn = self.connect(immediate=True)
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    @contextmanager
    def reader(self) -> Iterator[sqlite3.Connection]:
        """Yield a connection for read-only work."""
        conn = self.connect()
        try:
            yield conn
        finally:
            conn.close()

    def init_db(self) -> None:
        """Create the database file if needed and apply pending migrations."""
        conn = self.connect()
        try:
            cursor = conn.cursor()
            if self.path != ":memory:":
                cursor.execute("PRAGMA journal_mode = WAL")
            cursor.execute(
                "CREATE TABLE IF NOT EXISTS migrations (version INTEGER PRIMARY KEY, "
                "applied_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP)"
            )
            row = cursor.execute("SELECT MAX(version) AS version FROM migrations").fetchone()
            current = row["version"] or 0
            for version, script in MIGRATIONS:
                if version <= current:
                    continue
                logger.info("Applying migration %s to %s", version, self.path)
                cursor.executescript(script)
                cursor.execute("INSERT INTO migrations (version) VALUES (?)", (version,))
                conn.commit()
        finally:
            conn.close()
