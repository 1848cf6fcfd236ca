"""SQLite database utilities."""

from __future__ import annotations

import sqlite3
import time
from pathlib import Path

from ZoteroReader.storage.migration import run_migrations


class DatabaseManager:
    """Database connection handle shared by all stores.

    Constructed once by the owning process (CLI invocation or HTTP app) and
    injected into every store. The connection runs in autocommit mode: each
    store write is a single keyed statement and is atomic on its own.

    Supports context manager protocol for automatic connection cleanup.
    """

    def __init__(self, db_path: Path) -> None:
        """Open the database and bring its schema up to date.

        Args:
            db_path: Absolute path or project-relative path to database file.
        """
        self.db_path = db_path
        self.conn = ensure_db(db_path)
        run_migrations(self.conn)

    def get_connection(self) -> sqlite3.Connection:
        """Get the shared database connection.

        Returns:
            SQLite connection.
        """
        return self.conn

    def close(self) -> None:
        """Close the database connection."""
        if getattr(self, "conn", None) is not None:
            self.conn.close()
            self.conn = None

    def __enter__(self) -> DatabaseManager:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


def ensure_db(db_path: Path) -> sqlite3.Connection:
    """Ensure database file exists and return a configured connection.

    The connection is usable from the HTTP server's worker threads, uses WAL
    journaling, enforces foreign keys and exposes a ``casefold`` SQL function
    for Unicode-aware case-insensitive search.

    Args:
        db_path: Absolute path or project-relative path to database file.

    Returns:
        SQLite connection.

    Raises:
        OSError: If directory creation fails.
        sqlite3.Error: If database connection fails.
    """
    db_path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(db_path), isolation_level=None, check_same_thread=False)
    conn.execute("PRAGMA journal_mode = WAL")
    conn.execute("PRAGMA foreign_keys = ON")
    conn.create_function("casefold", 1, _casefold, deterministic=True)
    return conn


def now_ms() -> int:
    """Current Unix time in milliseconds."""
    return time.time_ns() // 1_000_000


def now_s() -> int:
    """Current Unix time in seconds."""
    return int(time.time())


def _casefold(value: str | None) -> str | None:
    return value.casefold() if isinstance(value, str) else value
