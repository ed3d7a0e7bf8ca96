"""Messaging backend: users, messages and who may read them."""

from __future__ import annotations

from typing import Any

from .database import Database, resolve_database_path
from .errors import (
    BadInputError,
    ConflictError,
    ForbiddenError,
    MessagelyError,
    NotFoundError,
    UnauthenticatedError,
)


def create_app(*args: Any, **kwargs: Any):
    """Factory function that returns the FastAPI application."""

    from .service import create_app as _create_app

    return _create_app(*args, **kwargs)


__all__ = [
    "BadInputError",
    "ConflictError",
    "Database",
    "ForbiddenError",
    "MessagelyError",
    "NotFoundError",
    "UnauthenticatedError",
    "create_app",
    "resolve_database_path",
]
