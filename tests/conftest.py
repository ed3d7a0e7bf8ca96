from __future__ import annotations

from pathlib import Path

import pytest

from messagely.config import Settings
from messagely.credentials import CredentialStore
from messagely.database import Database
from messagely.directory import UserDirectory
from messagely.ledger import MessageLedger
from messagely.messenger import Messenger

PASSWORD = "correct-horse-battery"


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    return Settings(
        database_path=tmp_path / "messagely.sqlite3",
        token_secret="tests-secret-key",
        token_ttl_seconds=3600,
        bcrypt_rounds=4,
    )


@pytest.fixture()
def database(settings: Settings) -> Database:
    db = Database(settings.database_path)
    db.initialize()
    return db


@pytest.fixture()
def directory(database: Database) -> UserDirectory:
    return UserDirectory(database, CredentialStore(rounds=4))


@pytest.fixture()
def ledger(database: Database) -> MessageLedger:
    return MessageLedger(database)


@pytest.fixture()
def messenger(directory: UserDirectory, ledger: MessageLedger) -> Messenger:
    return Messenger(directory, ledger)


@pytest.fixture()
def alice(directory: UserDirectory):
    return directory.register("alice", PASSWORD, "Alice", "Anders", "555-0100")


@pytest.fixture()
def bob(directory: UserDirectory):
    return directory.register("bob", PASSWORD, "Bob", "Barker", "555-0101")


@pytest.fixture()
def carol(directory: UserDirectory):
    return directory.register("carol", PASSWORD, "Carol", "Chen", "555-0102")
