"""Public projections of the records stored by the messaging core."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class UserSummary:
    """Display fields shown wherever a user is referenced."""

    username: str
    first_name: str
    last_name: str
    phone: str


@dataclass(frozen=True)
class User:
    """Full profile of a registered user. Never carries the password hash."""

    username: str
    first_name: str
    last_name: str
    phone: str
    join_at: datetime
    last_login_at: Optional[datetime]

    def summary(self) -> UserSummary:
        return UserSummary(
            username=self.username,
            first_name=self.first_name,
            last_name=self.last_name,
            phone=self.phone,
        )


@dataclass(frozen=True)
class Message:
    """A message with both endpoints expanded."""

    id: int
    from_user: UserSummary
    to_user: UserSummary
    body: str
    sent_at: datetime
    read_at: Optional[datetime]

    @property
    def from_username(self) -> str:
        return self.from_user.username

    @property
    def to_username(self) -> str:
        return self.to_user.username

    @property
    def is_read(self) -> bool:
        return self.read_at is not None


@dataclass(frozen=True)
class SentMessage:
    """Entry of a user's outbound thread."""

    id: int
    to_user: UserSummary
    body: str
    sent_at: datetime
    read_at: Optional[datetime]


@dataclass(frozen=True)
class ReceivedMessage:
    """Entry of a user's inbound thread."""

    id: int
    from_user: UserSummary
    body: str
    sent_at: datetime
    read_at: Optional[datetime]


__all__ = ["UserSummary", "User", "Message", "SentMessage", "ReceivedMessage"]
