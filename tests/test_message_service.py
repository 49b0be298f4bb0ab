"""Tests for the account and message services against a real store."""

from datetime import datetime, timedelta, timezone

import pytest

from groupchat.exceptions import AuthenticationError, UserAlreadyExistsError
from groupchat.services import account_service, message_service


class TestFormatTimestamp:

    def test_milliseconds_and_z_suffix(self):
        moment = datetime(2024, 3, 5, 7, 8, 9, 123456, tzinfo=timezone.utc)
        assert message_service.format_timestamp(moment) == "2024-03-05T07:08:09.123Z"

    def test_converts_to_utc(self):
        moment = datetime(2024, 3, 5, 9, 0, 0, tzinfo=timezone(timedelta(hours=2)))
        assert message_service.format_timestamp(moment) == "2024-03-05T07:00:00.000Z"


class TestMessages:

    def test_send_and_list_in_order(self, store):
        start = datetime(2024, 1, 1, tzinfo=timezone.utc)
        message_service.send_message(store, "general", "ada", "second", now=start + timedelta(seconds=1))
        message_service.send_message(store, "general", "bob", "first", now=start)

        listed = message_service.list_messages(store, "general")
        assert [m["message"] for m in listed] == ["first", "second"]
        assert listed[0] == {"from": "bob", "message": "first", "timestamp": "2024-01-01T00:00:00.000Z"}

    def test_same_millisecond_keeps_send_order(self, store):
        moment = datetime(2024, 1, 1, tzinfo=timezone.utc)
        for text in ("one", "two", "three"):
            message_service.send_message(store, "general", "ada", text, now=moment)

        listed = message_service.list_messages(store, "general")
        assert [m["message"] for m in listed] == ["one", "two", "three"]

    def test_groups_are_isolated(self, store):
        message_service.send_message(store, "general", "ada", "hello")
        assert message_service.list_messages(store, "random") == []

    def test_purge(self, store):
        message_service.send_message(store, "general", "ada", "a")
        message_service.send_message(store, "random", "ada", "b")
        assert message_service.purge_messages(store) == 2
        assert message_service.list_messages(store, "general") == []


class TestAccounts:

    def test_password_is_hashed(self, store):
        record = account_service.register_user(store, "ada", "correct-horse")
        assert record["password"] != "correct-horse"
        assert record["password"].startswith("$pbkdf2-sha256$")

    def test_duplicate_username(self, store):
        account_service.register_user(store, "ada", "correct-horse")
        with pytest.raises(UserAlreadyExistsError):
            account_service.register_user(store, "ada", "another-pass")

    def test_authenticate(self, store):
        account_service.register_user(store, "ada", "correct-horse")
        assert account_service.authenticate(store, "ada", "correct-horse")["username"] == "ada"

    @pytest.mark.parametrize("username,password", [("ada", "wrong-pass"), ("nobody", "correct-horse")])
    def test_bad_credentials(self, store, username, password):
        account_service.register_user(store, "ada", "correct-horse")
        with pytest.raises(AuthenticationError):
            account_service.authenticate(store, username, password)
