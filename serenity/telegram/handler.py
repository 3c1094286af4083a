"""
Processing of incoming Telegram updates.

Runs the grounded chat pipeline for linked users and handles the ``/clear``
command. Every reply goes through ``TelegramClient.send_message``, which never
raises.
"""

import logging
from typing import Any, Dict, Optional
from uuid import UUID

from fastapi import BackgroundTasks
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import sessionmaker

import serenity.core.config as config
from serenity.ai.ai_service import AIService
from serenity.chat.context import assemble_context
from serenity.chat.formatting import format_chat_history
from serenity.chat.prompt_builder import build_prompt
from serenity.telegram.client import TelegramClient
from serenity.telegram.db import (
    add_telegram_message,
    clear_telegram_history,
    get_linked_user_id,
    get_telegram_history,
)
from serenity.user_context.db import extract_and_store_user_context

logger = logging.getLogger(__name__)

CLEAR_COMMAND = "/clear"
UNLINKED_REPLY = "Sorry, your account is not linked. Please sign up on our website first."
CLEARED_REPLY = "Your chat history has been cleared."
ERROR_REPLY = "Sorry, something went wrong processing your message."


def is_clear_command(text: str) -> bool:
    return text.strip().lower() == CLEAR_COMMAND


def lookup_user(session_factory: sessionmaker, username: str) -> Optional[UUID]:
    with session_factory() as db:
        return get_linked_user_id(db, username)


def clear_history(session_factory: sessionmaker, chat_id: str) -> int:
    with session_factory() as db:
        deleted = clear_telegram_history(db, chat_id)
    logger.info(f"Cleared {deleted} messages for Telegram chat {chat_id}")
    return deleted


def record_message(session_factory: sessionmaker, chat_id: str, username: str, content: str, is_bot: bool) -> None:
    with session_factory() as db:
        add_telegram_message(db, chat_id, username, content, is_bot)


def load_history_text(session_factory: sessionmaker, chat_id: str) -> str:
    with session_factory() as db:
        history = get_telegram_history(db, chat_id, config.TELEGRAM_HISTORY_LIMIT)
        return format_chat_history(history)


async def answer_message(
    session_factory: sessionmaker,
    ai_service: AIService,
    user_id: UUID,
    chat_id: str,
    username: str,
    text: str,
) -> str:
    """
    Run the grounded chat pipeline for one Telegram message and store both sides.

    Returns:
        str: The assistant's full reply.
    """
    await run_in_threadpool(record_message, session_factory, chat_id, username, text, False)
    history_text = await run_in_threadpool(load_history_text, session_factory, chat_id)

    context = await assemble_context(session_factory, ai_service, user_id, text)
    messages = build_prompt(context.to_prompt_context(chat_history=history_text), text)

    reply = await run_in_threadpool(ai_service.complete, messages)
    logger.info(f"Received response for Telegram chat {chat_id}: {len(reply)} chars")

    await run_in_threadpool(record_message, session_factory, chat_id, username, reply, True)
    return reply


async def process_update(
    update: Dict[str, Any],
    session_factory: sessionmaker,
    ai_service: AIService,
    telegram: TelegramClient,
    background_tasks: Optional[BackgroundTasks] = None,
) -> None:
    """
    Handle one Telegram update. Updates without message text are ignored.

    Args:
        update (dict): Raw update from the Bot API.
        session_factory (sessionmaker): Opens database sessions.
        ai_service (AIService): Generates replies.
        telegram (TelegramClient): Sends replies.
        background_tasks (BackgroundTasks): Receives the fact-extraction step.
    """
    message = update.get("message") or {}
    text = message.get("text")
    chat = message.get("chat") or {}
    if not text or "id" not in chat:
        logger.debug("Ignoring Telegram update without message text")
        return

    chat_id = chat["id"]
    username = chat.get("username") or (message.get("from") or {}).get("username") or "unknown"
    logger.info(f"Received message from Telegram user {username} (chat {chat_id})")

    try:
        user_id = await run_in_threadpool(lookup_user, session_factory, username)
        if user_id is None:
            logger.warning(f"Telegram user {username} is not linked to an account")
            await run_in_threadpool(telegram.send_message, chat_id, UNLINKED_REPLY)
            return

        if is_clear_command(text):
            await run_in_threadpool(clear_history, session_factory, str(chat_id))
            await run_in_threadpool(telegram.send_message, chat_id, CLEARED_REPLY)
            return

        reply = await answer_message(session_factory, ai_service, user_id, str(chat_id), username, text)
    except Exception as e:
        logger.error(f"Error processing Telegram message for chat {chat_id}: {e}", exc_info=True)
        await run_in_threadpool(telegram.send_message, chat_id, ERROR_REPLY)
        return

    await run_in_threadpool(telegram.send_message, chat_id, reply)
    if background_tasks is not None:
        background_tasks.add_task(extract_and_store_user_context, session_factory, ai_service, user_id, text)
