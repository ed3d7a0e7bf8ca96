"""Identity-aware operations exposed to the request boundary."""
from __future__ import annotations

import logging
from typing import List

from .directory import UserDirectory
from .errors import NotFoundError, UnauthenticatedError
from .guard import AccessGuard, MessageOperation
from .ledger import MessageLedger
from .models import Message, ReceivedMessage, SentMessage, User, UserSummary

logger = logging.getLogger("messagely.messenger")


class Messenger:
    """Authorize each request with the guard, then run it on the directory or ledger."""

    def __init__(
        self,
        directory: UserDirectory,
        ledger: MessageLedger,
        guard: AccessGuard | None = None,
    ) -> None:
        self.directory = directory
        self.ledger = ledger
        self.guard = guard or AccessGuard()

    # ------------------------------------------------------------------
    # Accounts
    # ------------------------------------------------------------------
    def register(
        self,
        username: str,
        password: str,
        first_name: str,
        last_name: str,
        phone: str,
    ) -> User:
        return self.directory.register(username, password, first_name, last_name, phone)

    def login(self, username: str, password: str) -> User:
        """Check credentials and stamp the login time.

        Unknown users and wrong passwords both raise
        :class:`UnauthenticatedError` so callers cannot tell them apart.
        """

        try:
            valid = self.directory.authenticate(username, password)
        except NotFoundError as exc:
            raise UnauthenticatedError("Invalid username or password") from exc
        if not valid:
            raise UnauthenticatedError("Invalid username or password")

        self.directory.touch_login(username)
        logger.info("User %s logged in", username)
        return self.directory.get(username)

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------
    def list_users(self, identity: str) -> List[UserSummary]:
        self.guard.authorize_directory(identity)
        return self.directory.list()

    def get_user(self, identity: str, username: str) -> User:
        self.guard.authorize_user(identity, username)
        return self.directory.get(username)

    def messages_from(self, identity: str, username: str) -> List[SentMessage]:
        self.guard.authorize_user(identity, username)
        return self.ledger.sent_by(username)

    def messages_to(self, identity: str, username: str) -> List[ReceivedMessage]:
        self.guard.authorize_user(identity, username)
        return self.ledger.received_by(username)

    # ------------------------------------------------------------------
    # Messages
    # ------------------------------------------------------------------
    def send(self, identity: str, from_username: str, to_username: str, body: str) -> Message:
        self.guard.authorize_send(identity, from_username)
        return self.ledger.send(from_username, to_username, body)

    def read_message(self, identity: str, claimed_username: str, message_id: int) -> Message:
        self.guard.authorize_claim(identity, claimed_username)
        message = self.ledger.get(message_id)
        self.guard.authorize_message(identity, message, MessageOperation.READ)
        return message

    def mark_read(self, identity: str, claimed_username: str, message_id: int) -> Message:
        self.guard.authorize_claim(identity, claimed_username)
        message = self.ledger.get(message_id)
        self.guard.authorize_message(identity, message, MessageOperation.MARK_READ)
        return self.ledger.mark_read(message_id)


__all__ = ["Messenger"]
