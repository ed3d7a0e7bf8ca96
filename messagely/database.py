"""SQLite-backed persistence for users and messages."""
from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator, Optional

from .config import resolve_database_path
from .errors import BadInputError, NotFoundError

logger = logging.getLogger("messagely.database")

_SCHEMA = """
CREATE TABLE IF NOT EXISTS users (
    username TEXT PRIMARY KEY,
    password TEXT NOT NULL,
    first_name TEXT NOT NULL,
    last_name TEXT NOT NULL,
    phone TEXT NOT NULL,
    join_at TEXT NOT NULL,
    last_login_at TEXT
);

CREATE TABLE IF NOT EXISTS messages (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    from_username TEXT NOT NULL REFERENCES users(username),
    to_username TEXT NOT NULL REFERENCES users(username),
    body TEXT NOT NULL,
    sent_at TEXT NOT NULL,
    read_at TEXT
);

CREATE INDEX IF NOT EXISTS idx_messages_from_username ON messages(from_username);
CREATE INDEX IF NOT EXISTS idx_messages_to_username ON messages(to_username);
"""


def _ensure_directory(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)


SQLITE_MAX_INTEGER = 2**63 - 1


def require_text(field: str, value: object) -> str:
    """Return ``value`` if SQLite can store it as UTF-8 text, else raise :class:`BadInputError`."""

    if not isinstance(value, str):
        raise BadInputError(f"{field} is required")
    try:
        value.encode("utf-8")
    except UnicodeEncodeError as exc:
        raise BadInputError(f"{field} is not valid UTF-8 text") from exc
    return value


def require_row_id(kind: str, value: int) -> int:
    """Ids outside the SQLite INTEGER range cannot name a stored row."""

    if not -SQLITE_MAX_INTEGER - 1 <= value <= SQLITE_MAX_INTEGER:
        raise NotFoundError(f"No such {kind}: {value}")
    return value


def current_timestamp() -> datetime:
    return datetime.now(timezone.utc)


def serialize_datetime(value: datetime) -> str:
    return value.isoformat()


def parse_datetime(value: Optional[str]) -> Optional[datetime]:
    if value is None:
        return None
    return datetime.fromisoformat(value)


class Database:
    """Handle to the SQLite file shared by the directory and the ledger.

    The handle holds no open connection. Each unit of work acquires its own
    connection through :meth:`connect`, which commits on success, rolls back
    on error and always closes.
    """

    def __init__(self, path: Path, *, timeout: float = 30.0) -> None:
        _ensure_directory(path)
        self._path = path
        self._timeout = timeout

    @property
    def path(self) -> Path:
        return self._path

    def _open(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._path, timeout=self._timeout, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    @contextmanager
    def connect(self, *, write: bool = False) -> Iterator[sqlite3.Connection]:
        """Yield a connection wrapped in a transaction.

        ``write=True`` takes the write lock as the transaction begins.
        """

        conn = self._open()
        try:
            with conn:
                if write:
                    conn.execute("BEGIN IMMEDIATE")
                yield conn
        finally:
            conn.close()

    def initialize(self) -> None:
        """Create the required tables if they do not already exist."""

        with self.connect() as conn:
            conn.executescript(_SCHEMA)
        logger.debug("Schema ensured at %s", self._path)


__all__ = [
    "Database",
    "current_timestamp",
    "parse_datetime",
    "require_row_id",
    "require_text",
    "resolve_database_path",
    "serialize_datetime",
]
