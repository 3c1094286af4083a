from uuid import UUID
import logging

from fastapi import APIRouter, BackgroundTasks, Depends, Header, HTTPException, Request, Security
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session, sessionmaker

import serenity.core.config as config
from serenity.ai.ai_service import AIService
from serenity.auth.service import get_current_user_id
from serenity.core.database import get_db, get_session_factory
from serenity.core.dependency import get_ai_service, get_telegram_client
from serenity.telegram.client import TelegramClient
from serenity.telegram.db import link_telegram_user
from serenity.telegram.handler import process_update
from serenity.telegram.schemas import TelegramLinkRequest, TelegramLinkResponse

router = APIRouter(tags=["Telegram"])
logger = logging.getLogger(__name__)


def _ok(note: str | None = None) -> JSONResponse:
    content = {"status": "OK"}
    if note:
        content["note"] = note
    return JSONResponse(status_code=200, content=content)


@router.post(
    "/telegram-webhook",
    summary="Receive Telegram updates",
    description="""
                Webhook for the Telegram Bot API. Always answers 200 so Telegram does not
                retry; processing errors are logged and answered in the chat instead.
                """,
    responses={200: {"description": "Update received."}},
)
async def telegram_webhook_route(
    request: Request,
    background_tasks: BackgroundTasks,
    x_telegram_bot_api_secret_token: str | None = Header(None),
    session_factory: sessionmaker = Depends(get_session_factory),
    ai_service: AIService = Depends(get_ai_service),
    telegram: TelegramClient = Depends(get_telegram_client),
) -> JSONResponse:
    if config.TELEGRAM_WEBHOOK_SECRET and x_telegram_bot_api_secret_token != config.TELEGRAM_WEBHOOK_SECRET:
        logger.warning("Ignoring Telegram update with invalid secret token")
        return _ok()

    try:
        update = await request.json()
        logger.debug(f"Telegram update: {update}")
        await process_update(update, session_factory, ai_service, telegram, background_tasks)
    except Exception as e:
        logger.error(f"Error processing Telegram webhook: {e}", exc_info=True)
        return _ok("Error occurred but still returning 200 to prevent retries")
    return _ok()


@router.post(
    "/telegram/link",
    response_model=TelegramLinkResponse,
    summary="Link a Telegram account",
    description="Link the authenticated user to a Telegram username so the bot can answer them.",
    responses={
        200: {"description": "Telegram account linked."},
        401: {"description": "Unauthorized."},
        409: {"description": "Username already linked to another user."},
        500: {"description": "Failed to link account."},
    },
)
def link_telegram_route(
    data: TelegramLinkRequest,
    db: Session = Depends(get_db),
    user_id: UUID = Security(get_current_user_id),
) -> TelegramLinkResponse:
    try:
        link = link_telegram_user(db, user_id, data.telegram_username)
    except ValueError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except Exception as e:
        logger.error(f"Error linking Telegram account for user {user_id}: {e}")
        db.rollback()
        raise HTTPException(status_code=500, detail="Failed to link Telegram account")
    logger.info(f"Linked Telegram user {link.telegram_id} to user {user_id}")
    return TelegramLinkResponse(telegram_username=link.telegram_id, user_id=link.user_id)
