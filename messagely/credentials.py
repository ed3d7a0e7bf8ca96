"""One-way password hashing used to store and check user secrets."""
from __future__ import annotations

from passlib.context import CryptContext

from .config import DEFAULT_BCRYPT_ROUNDS
from .errors import BadInputError


class CredentialStore:
    """Hash and verify secrets with bcrypt at a configurable work factor."""

    def __init__(self, *, rounds: int = DEFAULT_BCRYPT_ROUNDS) -> None:
        self._rounds = rounds
        self._context = CryptContext(
            schemes=["bcrypt"],
            deprecated="auto",
            bcrypt__rounds=rounds,
        )

    @property
    def rounds(self) -> int:
        return self._rounds

    def hash(self, secret: str) -> str:
        if not secret:
            raise BadInputError("Password must not be empty")
        return self._context.hash(secret)

    def verify(self, secret: str, hashed: str) -> bool:
        """Return ``True`` iff ``secret`` matches ``hashed``.

        A mismatch returns ``False``; a hash that cannot be identified raises
        :class:`ValueError`.
        """

        return bool(self._context.verify(secret, hashed))


__all__ = ["CredentialStore"]
