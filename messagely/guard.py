"""Authorization decisions for directory and ledger operations."""
from __future__ import annotations

import enum
import logging

from .errors import ForbiddenError
from .models import Message

logger = logging.getLogger("messagely.guard")


class MessageOperation(str, enum.Enum):
    READ = "read"
    MARK_READ = "mark_read"


class AccessGuard:
    """Stateless checks raising :class:`ForbiddenError` when access is denied.

    Message routes name the caller in the path. The claim is checked before
    the message is loaded, so a caller probing someone else's messages is
    refused before the message's existence is ever looked up.
    """

    def _deny(self, identity: str, reason: str) -> ForbiddenError:
        logger.warning("Denied %s: %s", identity, reason)
        return ForbiddenError(reason)

    def authorize_directory(self, identity: str) -> None:
        if not identity:
            raise self._deny("<anonymous>", "Authentication required to list users")

    def authorize_user(self, identity: str, username: str) -> None:
        if identity != username:
            raise self._deny(identity, f"Cannot access resources of user {username}")

    def authorize_send(self, identity: str, from_username: str) -> None:
        if identity != from_username:
            raise self._deny(identity, f"Cannot send messages as {from_username}")

    def authorize_claim(self, identity: str, claimed_username: str) -> None:
        if identity != claimed_username:
            raise self._deny(identity, f"Cannot access messages of user {claimed_username}")

    def authorize_message(self, identity: str, message: Message, operation: MessageOperation) -> None:
        if operation is MessageOperation.MARK_READ:
            if identity != message.to_username:
                raise self._deny(identity, "Only the recipient can mark a message as read")
            return

        if identity not in (message.from_username, message.to_username):
            raise self._deny(identity, "Cannot read a message you did not send or receive")


__all__ = ["AccessGuard", "MessageOperation"]
