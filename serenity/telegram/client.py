import logging
from typing import Optional, Union

import requests

logger = logging.getLogger(__name__)

TELEGRAM_API_BASE = "https://api.telegram.org"
MAX_MESSAGE_LENGTH = 4000
TRUNCATE_AT = 3997
ELLIPSIS = "..."
FALLBACK_TEXT = (
    "Sorry, the response was too large or took too long. Please try again with a shorter message."
)


class TelegramError(Exception):
    """Raised when the Bot API rejects a request."""


def truncate_message(text: str) -> str:
    """Telegram rejects texts over 4096 characters; keep a margin."""
    if len(text) > MAX_MESSAGE_LENGTH:
        return text[:TRUNCATE_AT] + ELLIPSIS
    return text


class TelegramClient:
    """Minimal Bot API client for sending replies."""

    def __init__(self, token: Optional[str], timeout: float = 10.0):
        self.token = token
        self.timeout = timeout

    @property
    def send_message_url(self) -> str:
        return f"{TELEGRAM_API_BASE}/bot{self.token}/sendMessage"

    def _post_message(self, chat_id: Union[int, str], text: str) -> None:
        resp = requests.post(
            self.send_message_url,
            json={"chat_id": chat_id, "text": text},
            timeout=self.timeout,
        )
        if not resp.ok:
            raise TelegramError(f"Telegram API error {resp.status_code}: {resp.text}")

    def send_message(self, chat_id: Union[int, str], text: str) -> bool:
        """
        Sends a message, retrying once with a short fallback text on failure.

        Args:
            chat_id: Telegram chat identifier.
            text (str): Message text; truncated to fit the Bot API limit.

        Returns:
            bool: True if the original text was delivered.
        """
        if not self.token:
            logger.warning(f"TELEGRAM_BOT_TOKEN not set; dropping message to chat {chat_id}")
            return False

        try:
            self._post_message(chat_id, truncate_message(text))
            logger.info(f"Message sent to chat {chat_id}")
            return True
        except Exception as e:
            logger.error(f"Failed to send message to chat {chat_id}: {e}")

        try:
            self._post_message(chat_id, FALLBACK_TEXT)
        except Exception as retry_error:
            logger.error(f"Also failed to send simplified message to chat {chat_id}: {retry_error}")
        return False
