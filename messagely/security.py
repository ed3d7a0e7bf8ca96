"""Bearer tokens and request authentication for the messaging API."""
from __future__ import annotations

import base64
import hashlib
import logging

import anyio
from cryptography.fernet import Fernet, InvalidToken
from fastapi import HTTPException, Request
from fastapi.security import HTTPBasic, HTTPBearer

from .directory import UserDirectory
from .errors import NotFoundError, UnauthenticatedError

logger = logging.getLogger("messagely.security")


def _derive_fernet_key(secret: str) -> bytes:
    digest = hashlib.sha256(secret.encode("utf-8")).digest()
    return base64.urlsafe_b64encode(digest)


class TokenIssuer:
    """Issue and resolve self-contained, expiring tokens naming a user."""

    def __init__(self, secret: str, *, ttl_seconds: int) -> None:
        if not secret:
            raise ValueError("A token secret must be provided")
        self._fernet = Fernet(_derive_fernet_key(secret))
        self._ttl = ttl_seconds

    @property
    def ttl_seconds(self) -> int:
        return self._ttl

    def issue(self, username: str) -> str:
        return self._fernet.encrypt(username.encode("utf-8")).decode("ascii")

    def resolve(self, token: str) -> str:
        try:
            payload = self._fernet.decrypt(token.encode("ascii"), ttl=self._ttl)
        except (InvalidToken, UnicodeEncodeError) as exc:
            raise UnauthenticatedError("Invalid or expired token") from exc
        return payload.decode("utf-8")


class RequestAuthenticator:
    """FastAPI dependency resolving the caller's username.

    Accepts a bearer token issued by :class:`TokenIssuer` or HTTP Basic
    credentials checked against the directory. A successful Basic login
    stamps ``last_login_at`` like a token login does.
    """

    def __init__(self, directory: UserDirectory, tokens: TokenIssuer) -> None:
        self._directory = directory
        self._tokens = tokens
        self._bearer = HTTPBearer(auto_error=False)
        self._basic = HTTPBasic(auto_error=False)

    async def __call__(self, request: Request) -> str:
        bearer = await self._bearer(request)
        if bearer is not None:
            username = self._tokens.resolve(bearer.credentials)
            if not await anyio.to_thread.run_sync(self._directory.exists, username):
                logger.warning("Rejected token for unknown user %s", username)
                raise UnauthenticatedError("Invalid or expired token")
            return username

        try:
            basic = await self._basic(request)
        except HTTPException as exc:
            raise UnauthenticatedError("Malformed basic credentials") from exc
        if basic is not None:
            try:
                valid = await anyio.to_thread.run_sync(
                    self._directory.authenticate, basic.username, basic.password
                )
            except NotFoundError:
                valid = False
            if valid:
                await anyio.to_thread.run_sync(self._directory.touch_login, basic.username)
                return basic.username
            raise UnauthenticatedError("Invalid username or password")

        raise UnauthenticatedError("Missing credentials")


__all__ = ["RequestAuthenticator", "TokenIssuer"]
