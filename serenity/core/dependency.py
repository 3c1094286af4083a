from functools import lru_cache
import logging

from serenity.ai.ai_service import AIService
from serenity.ai.providers.openai import OpenAIService
from serenity.core.config import TELEGRAM_BOT_TOKEN
from serenity.telegram.client import TelegramClient

logger = logging.getLogger(__name__)


@lru_cache(maxsize=None)
def _openai() -> AIService:
    return OpenAIService()


@lru_cache(maxsize=None)
def _telegram() -> TelegramClient:
    if not TELEGRAM_BOT_TOKEN:
        logger.warning("TELEGRAM_BOT_TOKEN not set; outbound Telegram messages will be skipped")
    return TelegramClient(TELEGRAM_BOT_TOKEN)


def get_ai_service() -> AIService:
    """
    FastAPI dependency returning the process-wide AI service.
    Overridden with a fake in tests.
    """
    return _openai()


def get_telegram_client() -> TelegramClient:
    return _telegram()
