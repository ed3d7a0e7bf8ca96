"""Closed set of failures raised by the messaging core."""
from __future__ import annotations

from typing import Dict


class MessagelyError(Exception):
    """Base class for every failure a core operation can raise."""

    code = "ERROR"
    http_status = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_response(self) -> Dict[str, Dict[str, str]]:
        return {"error": {"code": self.code, "message": self.message}}


class NotFoundError(MessagelyError):
    """A referenced user or message does not exist."""

    code = "NOT_FOUND"
    http_status = 404


class ConflictError(MessagelyError):
    """A unique key is already taken."""

    code = "CONFLICT"
    http_status = 409


class BadInputError(MessagelyError):
    """A required field is missing, empty, or does not resolve."""

    code = "BAD_INPUT"
    http_status = 400


class ForbiddenError(MessagelyError):
    """The authenticated identity may not perform the operation."""

    code = "FORBIDDEN"
    http_status = 403


class UnauthenticatedError(MessagelyError):
    """No valid credential was presented."""

    code = "UNAUTHENTICATED"
    http_status = 401


__all__ = [
    "MessagelyError",
    "NotFoundError",
    "ConflictError",
    "BadInputError",
    "ForbiddenError",
    "UnauthenticatedError",
]
