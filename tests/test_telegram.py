"""
Telegram Tests

- POST /telegram-webhook - linked/unlinked users, /clear, errors, always 200
- POST /telegram/link
- TelegramClient truncation and fallback retry
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock, patch

import pytest

import serenity.core.config as config
from serenity.telegram.client import FALLBACK_TEXT, TelegramClient, truncate_message
from serenity.telegram.db import add_telegram_message, get_telegram_history
from serenity.telegram.handler import CLEARED_REPLY, ERROR_REPLY, UNLINKED_REPLY, is_clear_command
from serenity.telegram.models import TelegramMessage, TelegramUser

from conftest import make_user

CHAT_ID = 4242


def update(text, username="ada_tg", chat_id=CHAT_ID):
    return {
        "update_id": 1,
        "message": {
            "message_id": 7,
            "from": {"id": 99, "username": username},
            "chat": {"id": chat_id, "username": username, "type": "private"},
            "text": text,
        },
    }


@pytest.fixture()
def linked(db, user):
    db.add(TelegramUser(telegram_id="ada_tg", user_id=user.id))
    db.commit()
    return user


def stored_messages(db):
    return db.query(TelegramMessage).filter(TelegramMessage.telegram_chat_id == str(CHAT_ID)).all()


class TestWebhook:
    def test_unlinked_user_gets_single_reply_and_no_ai_calls(self, client, ai_service, telegram_client, db):
        resp = client.post("/telegram-webhook", json=update("hello", username="stranger"))

        assert resp.status_code == 200
        assert telegram_client.sent == [(CHAT_ID, UNLINKED_REPLY)]
        assert ai_service.total_calls == 0
        assert stored_messages(db) == []

    def test_linked_user_gets_grounded_reply(self, client, ai_service, telegram_client, db, linked):
        resp = client.post("/telegram-webhook", json=update("I feel anxious today"))

        assert resp.status_code == 200
        assert resp.json()["status"] == "OK"
        assert telegram_client.sent == [(CHAT_ID, ai_service.reply)]
        assert len(ai_service.chat_calls) == 1
        assert ai_service.chat_calls[0][-1] == {"role": "user", "content": "I feel anxious today"}
        contents = sorted((m.is_bot, m.content) for m in stored_messages(db))
        assert contents == [(False, "I feel anxious today"), (True, ai_service.reply)]

    def test_history_is_part_of_prompt(self, client, ai_service, db, linked):
        add_telegram_message(db, str(CHAT_ID), "ada_tg", "My exam is on Friday", False)

        client.post("/telegram-webhook", json=update("Any tips?"))

        system = ai_service.chat_calls[0][0]["content"]
        assert "User: My exam is on Friday" in system

    def test_prompt_history_is_capped_to_newest_messages(self, client, ai_service, db, linked):
        start = datetime.now(timezone.utc) - timedelta(hours=1)
        db.add_all([
            TelegramMessage(
                telegram_chat_id=str(CHAT_ID),
                telegram_user_id="ada_tg",
                content=f"note {i:02d}",
                is_bot=False,
                created_at=start + timedelta(minutes=i),
            )
            for i in range(1, 13)
        ])
        db.commit()

        client.post("/telegram-webhook", json=update("Any tips?"))

        system = ai_service.chat_calls[0][0]["content"]
        # the incoming message is stored first, so it takes one of the slots
        assert config.TELEGRAM_HISTORY_LIMIT == 10
        assert "User: Any tips?" in system
        kept = [i for i in range(1, 13) if f"note {i:02d}" in system]
        assert kept == list(range(4, 13))

    @pytest.mark.parametrize("command", ["/clear", "  /CLEAR  ", "/Clear"])
    def test_clear_command(self, client, ai_service, telegram_client, db, linked, command):
        add_telegram_message(db, str(CHAT_ID), "ada_tg", "old message", False)
        add_telegram_message(db, str(CHAT_ID), "ada_tg", "old reply", True)

        resp = client.post("/telegram-webhook", json=update(command))

        assert resp.status_code == 200
        assert get_telegram_history(db, str(CHAT_ID)) == []
        assert telegram_client.sent == [(CHAT_ID, CLEARED_REPLY)]
        assert ai_service.total_calls == 0

    def test_clear_from_unlinked_user_is_refused(self, client, telegram_client, db):
        add_telegram_message(db, str(CHAT_ID), "stranger", "old message", False)

        client.post("/telegram-webhook", json=update("/clear", username="stranger"))

        assert telegram_client.sent == [(CHAT_ID, UNLINKED_REPLY)]
        assert len(stored_messages(db)) == 1

    def test_ai_failure_sends_error_reply(self, client, ai_service, telegram_client, linked):
        ai_service.reply = RuntimeError("model overloaded")

        resp = client.post("/telegram-webhook", json=update("hello"))

        assert resp.status_code == 200
        assert telegram_client.sent == [(CHAT_ID, ERROR_REPLY)]

    def test_update_without_text_is_ignored(self, client, telegram_client):
        resp = client.post("/telegram-webhook", json={"update_id": 2, "edited_message": {}})

        assert resp.status_code == 200
        assert telegram_client.sent == []

    def test_malformed_body_still_returns_200(self, client):
        resp = client.post("/telegram-webhook", content=b"not json", headers={"Content-Type": "application/json"})

        assert resp.status_code == 200
        assert resp.json()["status"] == "OK"

    def test_wrong_secret_is_ignored(self, client, telegram_client, ai_service, monkeypatch):
        monkeypatch.setattr(config, "TELEGRAM_WEBHOOK_SECRET", "expected")

        resp = client.post(
            "/telegram-webhook",
            json=update("hello"),
            headers={"X-Telegram-Bot-Api-Secret-Token": "wrong"},
        )

        assert resp.status_code == 200
        assert telegram_client.sent == []
        assert ai_service.total_calls == 0


class TestLink:
    def test_link_strips_at_sign(self, client, auth_headers, user, db):
        resp = client.post("/telegram/link", json={"telegram_username": "@ada_tg"}, headers=auth_headers)

        assert resp.status_code == 200
        assert resp.json() == {"telegram_username": "ada_tg", "user_id": str(user.id)}

    def test_relink_replaces_username(self, client, auth_headers, db, user):
        client.post("/telegram/link", json={"telegram_username": "old_name"}, headers=auth_headers)
        client.post("/telegram/link", json={"telegram_username": "new_name"}, headers=auth_headers)

        links = db.query(TelegramUser).filter(TelegramUser.user_id == user.id).all()
        assert [link.telegram_id for link in links] == ["new_name"]

    def test_username_taken_by_other_user_is_409(self, client, auth_headers, db):
        other = make_user(db, email="bob@example.com")
        db.add(TelegramUser(telegram_id="ada_tg", user_id=other.id))
        db.commit()

        resp = client.post("/telegram/link", json={"telegram_username": "ada_tg"}, headers=auth_headers)

        assert resp.status_code == 409


class TestTelegramClient:
    def test_short_text_unchanged(self):
        assert truncate_message("hello") == "hello"
        assert truncate_message("x" * 4000) == "x" * 4000

    def test_long_text_truncated(self):
        result = truncate_message("x" * 4001)
        assert len(result) == 4000
        assert result == "x" * 3997 + "..."

    @patch("serenity.telegram.client.requests.post")
    def test_send_message_posts_truncated_text(self, post):
        post.return_value = MagicMock(ok=True)

        assert TelegramClient("abc").send_message(1, "y" * 5000) is True

        url = post.call_args.args[0]
        body = post.call_args.kwargs["json"]
        assert url == "https://api.telegram.org/botabc/sendMessage"
        assert body == {"chat_id": 1, "text": "y" * 3997 + "..."}
        assert post.call_args.kwargs["timeout"] == 10.0

    @patch("serenity.telegram.client.requests.post")
    def test_failed_send_retries_with_fallback(self, post):
        post.side_effect = [MagicMock(ok=False, status_code=400, text="Bad Request"), MagicMock(ok=True)]

        assert TelegramClient("abc").send_message(1, "hello") is False

        assert post.call_count == 2
        assert post.call_args.kwargs["json"]["text"] == FALLBACK_TEXT

    @patch("serenity.telegram.client.requests.post")
    def test_retry_failure_is_swallowed(self, post):
        post.side_effect = ConnectionError("network down")

        assert TelegramClient("abc").send_message(1, "hello") is False
        assert post.call_count == 2

    @patch("serenity.telegram.client.requests.post")
    def test_missing_token_sends_nothing(self, post):
        assert TelegramClient(None).send_message(1, "hello") is False
        post.assert_not_called()


def test_is_clear_command():
    assert is_clear_command(" /clear ")
    assert not is_clear_command("/clear please")
