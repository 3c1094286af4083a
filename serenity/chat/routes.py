from uuid import UUID
from typing import Dict, Iterator, List, Optional
import json
import logging

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Security
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session, sessionmaker

from serenity.ai.ai_service import AIService, Message
from serenity.auth.service import get_current_user_id
from serenity.core.database import get_db, get_session_factory
from serenity.core.dependency import get_ai_service
from serenity.chat.context import assemble_context
from serenity.chat.db import (
    add_chat_message,
    create_chat,
    delete_chat,
    get_chat,
    get_chat_messages,
    get_user_chats,
)
from serenity.chat.prompt_builder import build_prompt
from serenity.chat.schemas import ChatMessageOut, ChatOut, ChatRequest
from serenity.user_context.db import extract_and_store_user_context

router = APIRouter(prefix="/chat", tags=["Chat"])
logger = logging.getLogger(__name__)

HISTORY_LIMIT = 20


def sse_event(payload: Dict) -> str:
    return f"data: {json.dumps(payload)}\n\n"


def start_chat_turn(session_factory: sessionmaker, user_id: UUID, chat_id: Optional[UUID], content: str) -> UUID:
    """
    Stores the user's message, creating the chat on the first turn.

    Raises:
        LookupError: If `chat_id` is not one of the user's chats.
    """
    with session_factory() as db:
        if chat_id is not None:
            chat = get_chat(db, chat_id, user_id)
            if chat is None:
                raise LookupError(f"Chat {chat_id} not found")
        else:
            chat = create_chat(db, user_id, content)
        add_chat_message(db, chat.id, "user", content)
        return chat.id


def stream_chat_events(
    ai_service: AIService, session_factory: sessionmaker, chat_id: UUID, messages: List[Message]
) -> Iterator[str]:
    """
    Forward completion chunks as SSE events, then store the full reply.

    Every event carries the chat id. On an upstream failure or an empty reply
    a single error event is sent and nothing is stored.
    """
    parts: List[str] = []
    try:
        for chunk in ai_service.stream(messages):
            parts.append(chunk)
            yield sse_event({"text": chunk, "chatId": str(chat_id)})
    except Exception as e:
        logger.error(f"Stream error for chat {chat_id}: {e}", exc_info=True)
        yield sse_event({"error": "Failed to generate a response", "chatId": str(chat_id)})
        return

    if not parts:
        logger.warning(f"Empty completion for chat {chat_id}; nothing stored")
        yield sse_event({"error": "The assistant returned an empty response", "chatId": str(chat_id)})
        return

    full_response = "".join(parts)
    logger.info(f"Stream finished for chat {chat_id}: {len(parts)} chunks, {len(full_response)} chars")
    try:
        with session_factory() as db:
            add_chat_message(db, chat_id, "assistant", full_response)
    except Exception as e:
        logger.error(f"Failed to store assistant message for chat {chat_id}: {e}")


@router.post(
    "",
    summary="Send a chat message",
    description="""
                Send the conversation so far; the last message is the new user message.
                The reply is streamed as server-sent events of the form
                `data: {"text": ..., "chatId": ...}`.
                """,
    responses={
        200: {"description": "Response stream started."},
        400: {"description": "Last message is not from the user."},
        401: {"description": "Unauthorized."},
        404: {"description": "Chat not found."},
        500: {"description": "Failed to start chat turn."},
    },
)
async def chat_route(
    data: ChatRequest,
    background_tasks: BackgroundTasks,
    user_id: UUID = Security(get_current_user_id),
    session_factory: sessionmaker = Depends(get_session_factory),
    ai_service: AIService = Depends(get_ai_service),
) -> StreamingResponse:
    user_message = data.messages[-1]
    if user_message.role != "user" or not user_message.content.strip():
        raise HTTPException(status_code=400, detail="Last message must be a non-empty user message")
    history = [m.model_dump() for m in data.messages[:-1]][-HISTORY_LIMIT:]

    try:
        chat_id = await run_in_threadpool(
            start_chat_turn, session_factory, user_id, data.chat_id, user_message.content
        )
    except LookupError:
        raise HTTPException(status_code=404, detail="Chat not found")
    except Exception as e:
        logger.error(f"Failed to store chat message for user {user_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to process chat message")

    context = await assemble_context(session_factory, ai_service, user_id, user_message.content)
    messages = build_prompt(context.to_prompt_context(), user_message.content, history)

    background_tasks.add_task(
        extract_and_store_user_context, session_factory, ai_service, user_id, user_message.content
    )
    return StreamingResponse(
        stream_chat_events(ai_service, session_factory, chat_id, messages),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "Connection": "keep-alive"},
    )


@router.get(
    "",
    response_model=List[ChatOut],
    summary="List chats",
    responses={
        200: {"description": "Chats retrieved successfully."},
        401: {"description": "Unauthorized."},
        500: {"description": "Failed to retrieve chats."},
    },
)
def list_chats_route(
    db: Session = Depends(get_db),
    user_id: UUID = Security(get_current_user_id),
) -> List[ChatOut]:
    try:
        return get_user_chats(db, user_id)
    except Exception as e:
        logger.error(f"Error fetching chats for user {user_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch chats")


@router.get(
    "/{chat_id}",
    response_model=List[ChatMessageOut],
    summary="Get chat messages",
    responses={
        200: {"description": "Messages retrieved successfully."},
        401: {"description": "Unauthorized."},
        404: {"description": "Chat not found."},
        500: {"description": "Failed to retrieve messages."},
    },
)
def get_chat_messages_route(
    chat_id: UUID,
    db: Session = Depends(get_db),
    user_id: UUID = Security(get_current_user_id),
) -> List[ChatMessageOut]:
    try:
        if get_chat(db, chat_id, user_id) is None:
            raise HTTPException(status_code=404, detail="Chat not found")
        return get_chat_messages(db, chat_id)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error fetching messages of chat {chat_id} for user {user_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch chat messages")


@router.delete(
    "/{chat_id}",
    response_model=Dict[str, str],
    summary="Delete a chat",
    description="Delete a chat together with its whole message history.",
    responses={
        200: {"description": "Chat deleted successfully."},
        401: {"description": "Unauthorized."},
        404: {"description": "Chat not found."},
        500: {"description": "Failed to delete chat."},
    },
)
def delete_chat_route(
    chat_id: UUID,
    db: Session = Depends(get_db),
    user_id: UUID = Security(get_current_user_id),
) -> Dict[str, str]:
    try:
        if delete_chat(db, chat_id, user_id) is None:
            raise HTTPException(status_code=404, detail="Chat not found")
        return {"detail": "Chat deleted successfully."}
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error deleting chat {chat_id} for user {user_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to delete chat")
