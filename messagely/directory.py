"""User directory: registration, lookup and login bookkeeping."""
from __future__ import annotations

import logging
import sqlite3
from typing import List

from .credentials import CredentialStore
from .database import Database, current_timestamp, parse_datetime, require_text, serialize_datetime
from .errors import BadInputError, ConflictError, NotFoundError
from .models import User, UserSummary

logger = logging.getLogger("messagely.directory")


def _row_to_user(row: sqlite3.Row) -> User:
    return User(
        username=row["username"],
        first_name=row["first_name"],
        last_name=row["last_name"],
        phone=row["phone"],
        join_at=parse_datetime(row["join_at"]),
        last_login_at=parse_datetime(row["last_login_at"]),
    )


def row_to_summary(row: sqlite3.Row, prefix: str = "") -> UserSummary:
    """Build a :class:`UserSummary` from a row, optionally from prefixed columns."""

    return UserSummary(
        username=row[f"{prefix}username"],
        first_name=row[f"{prefix}first_name"],
        last_name=row[f"{prefix}last_name"],
        phone=row[f"{prefix}phone"],
    )


class UserDirectory:
    """Owns user records stored in the ``users`` table."""

    def __init__(self, database: Database, credentials: CredentialStore) -> None:
        self._database = database
        self._credentials = credentials

    def register(
        self,
        username: str,
        password: str,
        first_name: str,
        last_name: str,
        phone: str,
    ) -> User:
        """Create a new user and return its public profile."""

        username = require_text("Username", username).strip()
        if not username:
            raise BadInputError("Username must not be empty")
        password = require_text("Password", password)
        first_name = require_text("First name", first_name)
        last_name = require_text("Last name", last_name)
        phone = require_text("Phone", phone)
        password_hash = self._credentials.hash(password)
        now = serialize_datetime(current_timestamp())

        with self._database.connect(write=True) as conn:
            try:
                conn.execute(
                    """
                    INSERT INTO users (
                        username,
                        password,
                        first_name,
                        last_name,
                        phone,
                        join_at,
                        last_login_at
                    )
                    VALUES (?, ?, ?, ?, ?, ?, ?)
                    """,
                    (username, password_hash, first_name, last_name, phone, now, now),
                )
            except sqlite3.IntegrityError as exc:
                raise ConflictError(f"Username already taken: {username}") from exc

        logger.info("Registered user %s", username)
        return self.get(username)

    def authenticate(self, username: str, password: str) -> bool:
        """Return whether ``password`` matches the stored hash for ``username``."""

        username = require_text("Username", username)
        password = require_text("Password", password)
        with self._database.connect() as conn:
            row = conn.execute(
                "SELECT password FROM users WHERE username = ?",
                (username,),
            ).fetchone()

        if row is None:
            raise NotFoundError(f"User not found: {username}")
        return self._credentials.verify(password, row["password"])

    def touch_login(self, username: str) -> None:
        """Update ``last_login_at`` for ``username``."""

        with self._database.connect(write=True) as conn:
            cursor = conn.execute(
                "UPDATE users SET last_login_at = ? WHERE username = ?",
                (serialize_datetime(current_timestamp()), username),
            )
        if cursor.rowcount == 0:
            raise NotFoundError(f"User not found: {username}")

    def get(self, username: str) -> User:
        with self._database.connect() as conn:
            row = conn.execute(
                """
                SELECT username, first_name, last_name, phone, join_at, last_login_at
                  FROM users
                 WHERE username = ?
                """,
                (username,),
            ).fetchone()
        if row is None:
            raise NotFoundError(f"User not found: {username}")
        return _row_to_user(row)

    def exists(self, username: str) -> bool:
        with self._database.connect() as conn:
            row = conn.execute("SELECT 1 FROM users WHERE username = ?", (username,)).fetchone()
        return row is not None

    def list(self) -> List[UserSummary]:
        """Basic info on all users, ordered by username."""

        with self._database.connect() as conn:
            rows = conn.execute(
                "SELECT username, first_name, last_name, phone FROM users ORDER BY username"
            ).fetchall()
        return [row_to_summary(row) for row in rows]


__all__ = ["UserDirectory", "row_to_summary"]
