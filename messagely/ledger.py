"""Message ledger: creation, lookup, read receipts and per-user threads."""
from __future__ import annotations

import logging
import sqlite3
from typing import List

from .database import (
    Database,
    current_timestamp,
    parse_datetime,
    require_row_id,
    require_text,
    serialize_datetime,
)
from .directory import row_to_summary
from .errors import BadInputError, NotFoundError
from .models import Message, ReceivedMessage, SentMessage

logger = logging.getLogger("messagely.ledger")

_MESSAGE_QUERY = """
SELECT m.id,
       m.body,
       m.sent_at,
       m.read_at,
       f.username AS from_username,
       f.first_name AS from_first_name,
       f.last_name AS from_last_name,
       f.phone AS from_phone,
       t.username AS to_username,
       t.first_name AS to_first_name,
       t.last_name AS to_last_name,
       t.phone AS to_phone
  FROM messages AS m
  JOIN users AS f ON m.from_username = f.username
  JOIN users AS t ON m.to_username = t.username
 WHERE m.id = ?
"""


def _row_to_message(row: sqlite3.Row) -> Message:
    return Message(
        id=row["id"],
        from_user=row_to_summary(row, "from_"),
        to_user=row_to_summary(row, "to_"),
        body=row["body"],
        sent_at=parse_datetime(row["sent_at"]),
        read_at=parse_datetime(row["read_at"]),
    )


def _fetch_message(conn: sqlite3.Connection, message_id: int) -> Message:
    require_row_id("message", message_id)
    row = conn.execute(_MESSAGE_QUERY, (message_id,)).fetchone()
    if row is None:
        raise NotFoundError(f"No such message: {message_id}")
    return _row_to_message(row)


class MessageLedger:
    """Owns message records stored in the ``messages`` table."""

    def __init__(self, database: Database) -> None:
        self._database = database

    def send(self, from_username: str, to_username: str, body: str) -> Message:
        """Store a new unread message and return it with both users expanded."""

        from_username = require_text("Sender username", from_username)
        to_username = require_text("Recipient username", to_username)
        body = require_text("Message body", body)
        if not body.strip():
            raise BadInputError("Message body must not be empty")
        if not to_username:
            raise BadInputError("Recipient username is required")

        with self._database.connect(write=True) as conn:
            present = {
                row["username"]
                for row in conn.execute(
                    "SELECT username FROM users WHERE username IN (?, ?)",
                    (from_username, to_username),
                ).fetchall()
            }
            if from_username not in present:
                raise NotFoundError(f"User not found: {from_username}")
            if to_username not in present:
                raise BadInputError(f"Unknown recipient: {to_username}")

            try:
                cursor = conn.execute(
                    """
                    INSERT INTO messages (from_username, to_username, body, sent_at)
                    VALUES (?, ?, ?, ?)
                    """,
                    (from_username, to_username, body, serialize_datetime(current_timestamp())),
                )
            except sqlite3.IntegrityError as exc:
                raise BadInputError(f"Unknown recipient: {to_username}") from exc
            message = _fetch_message(conn, cursor.lastrowid)

        logger.info("Message %s sent from %s to %s", message.id, from_username, to_username)
        return message

    def get(self, message_id: int) -> Message:
        with self._database.connect() as conn:
            return _fetch_message(conn, message_id)

    def mark_read(self, message_id: int) -> Message:
        """Set ``read_at`` on the first call; later calls leave it untouched."""

        require_row_id("message", message_id)
        with self._database.connect(write=True) as conn:
            cursor = conn.execute(
                "UPDATE messages SET read_at = ? WHERE id = ? AND read_at IS NULL",
                (serialize_datetime(current_timestamp()), message_id),
            )
            message = _fetch_message(conn, message_id)

        if cursor.rowcount:
            logger.info("Message %s marked read", message_id)
        return message

    def sent_by(self, username: str) -> List[SentMessage]:
        """Messages sent by ``username`` with the recipient expanded."""

        with self._database.connect() as conn:
            rows = conn.execute(
                """
                SELECT m.id, m.body, m.sent_at, m.read_at,
                       u.username, u.first_name, u.last_name, u.phone
                  FROM messages AS m
                  JOIN users AS u ON m.to_username = u.username
                 WHERE m.from_username = ?
                 ORDER BY m.id
                """,
                (username,),
            ).fetchall()

        return [
            SentMessage(
                id=row["id"],
                to_user=row_to_summary(row),
                body=row["body"],
                sent_at=parse_datetime(row["sent_at"]),
                read_at=parse_datetime(row["read_at"]),
            )
            for row in rows
        ]

    def received_by(self, username: str) -> List[ReceivedMessage]:
        """Messages sent to ``username`` with the sender expanded."""

        with self._database.connect() as conn:
            rows = conn.execute(
                """
                SELECT m.id, m.body, m.sent_at, m.read_at,
                       u.username, u.first_name, u.last_name, u.phone
                  FROM messages AS m
                  JOIN users AS u ON m.from_username = u.username
                 WHERE m.to_username = ?
                 ORDER BY m.id
                """,
                (username,),
            ).fetchall()

        return [
            ReceivedMessage(
                id=row["id"],
                from_user=row_to_summary(row),
                body=row["body"],
                sent_at=parse_datetime(row["sent_at"]),
                read_at=parse_datetime(row["read_at"]),
            )
            for row in rows
        ]


__all__ = ["MessageLedger"]
