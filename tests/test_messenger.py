from __future__ import annotations

import pytest

from messagely.errors import (
    BadInputError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
    UnauthenticatedError,
)
from messagely.messenger import Messenger

from conftest import PASSWORD


def test_register_twice_conflicts(messenger: Messenger) -> None:
    messenger.register("alice", PASSWORD, "Alice", "Anders", "555-0100")
    with pytest.raises(ConflictError):
        messenger.register("alice", PASSWORD, "Alice", "Anders", "555-0100")


def test_login_stamps_last_login(messenger: Messenger, alice) -> None:
    user = messenger.login("alice", PASSWORD)
    assert user.last_login_at >= alice.last_login_at


@pytest.mark.parametrize("username,password", [("alice", "wrong"), ("nobody", PASSWORD)])
def test_login_failures_are_unauthenticated(messenger: Messenger, alice, username: str, password: str) -> None:
    with pytest.raises(UnauthenticatedError):
        messenger.login(username, password)


def test_send_then_threads(messenger: Messenger, alice, bob) -> None:
    sent = messenger.send("alice", "alice", "bob", "hello")

    inbox = messenger.messages_to("bob", "bob")
    matching = [message for message in inbox if message.body == "hello"]
    assert len(matching) == 1
    assert matching[0].from_user.username == "alice"

    outbox = messenger.messages_from("alice", "alice")
    assert [message.id for message in outbox] == [sent.id]
    assert outbox[0].to_user == bob.summary()


def test_send_as_someone_else_is_forbidden(messenger: Messenger, alice, bob) -> None:
    with pytest.raises(ForbiddenError):
        messenger.send("bob", "alice", "bob", "spoofed")
    assert messenger.messages_from("alice", "alice") == []


def test_send_to_ghost_user_is_bad_input(messenger: Messenger, alice) -> None:
    with pytest.raises(BadInputError):
        messenger.send("alice", "alice", "ghost-user", "hi")


def test_outsider_cannot_read_message(messenger: Messenger, alice, bob, carol) -> None:
    message = messenger.send("alice", "alice", "bob", "secret")

    assert messenger.read_message("alice", "alice", message.id) == message
    assert messenger.read_message("bob", "bob", message.id) == message
    with pytest.raises(ForbiddenError):
        messenger.read_message("carol", "carol", message.id)


def test_claiming_another_user_is_forbidden_before_lookup(messenger: Messenger, alice, carol) -> None:
    with pytest.raises(ForbiddenError):
        messenger.read_message("carol", "alice", 9999)
    with pytest.raises(ForbiddenError):
        messenger.mark_read("carol", "alice", 9999)


def test_own_claim_on_missing_message_is_not_found(messenger: Messenger, alice) -> None:
    with pytest.raises(NotFoundError):
        messenger.read_message("alice", "alice", 9999)
    with pytest.raises(NotFoundError):
        messenger.mark_read("alice", "alice", 9999)


def test_recipient_marks_read_and_sender_is_forbidden(messenger: Messenger, alice, bob) -> None:
    message = messenger.send("alice", "alice", "bob", "hello")

    with pytest.raises(ForbiddenError):
        messenger.mark_read("alice", "alice", message.id)
    assert messenger.read_message("alice", "alice", message.id).read_at is None

    read = messenger.mark_read("bob", "bob", message.id)
    again = messenger.mark_read("bob", "bob", message.id)
    assert read.read_at is not None
    assert again.read_at == read.read_at

    with pytest.raises(ForbiddenError):
        messenger.mark_read("alice", "alice", message.id)


def test_profile_and_threads_are_private(messenger: Messenger, alice, bob) -> None:
    assert messenger.get_user("alice", "alice").username == "alice"
    with pytest.raises(ForbiddenError):
        messenger.get_user("bob", "alice")
    with pytest.raises(ForbiddenError):
        messenger.messages_to("bob", "alice")
    with pytest.raises(ForbiddenError):
        messenger.messages_from("bob", "alice")


def test_any_user_can_list_directory(messenger: Messenger, alice, bob) -> None:
    assert [user.username for user in messenger.list_users("bob")] == ["alice", "bob"]
