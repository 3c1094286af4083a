from typing import List, Optional
from uuid import UUID

from sqlalchemy.orm import Session
from serenity.chat.models import Chat, ChatMessage

CHAT_TITLE_MAX_LENGTH = 100


def get_chat(db: Session, chat_id: UUID, user_id: UUID) -> Optional[Chat]:
    return db.query(Chat).filter(Chat.id == chat_id, Chat.user_id == user_id).first()


def get_user_chats(db: Session, user_id: UUID, limit: int = 50) -> List[Chat]:
    return (
        db.query(Chat)
        .filter(Chat.user_id == user_id)
        .order_by(Chat.created_at.desc())
        .limit(limit)
        .all()
    )


def create_chat(db: Session, user_id: UUID, first_message: str) -> Chat:
    chat = Chat(user_id=user_id, title=first_message.strip()[:CHAT_TITLE_MAX_LENGTH] or None)
    db.add(chat)
    db.commit()
    db.refresh(chat)
    return chat


def add_chat_message(db: Session, chat_id: UUID, role: str, content: str) -> ChatMessage:
    message = ChatMessage(chat_id=chat_id, role=role, content=content)
    db.add(message)
    db.commit()
    db.refresh(message)
    return message


def get_chat_messages(db: Session, chat_id: UUID) -> List[ChatMessage]:
    """Messages of a chat, oldest first."""
    return (
        db.query(ChatMessage)
        .filter(ChatMessage.chat_id == chat_id)
        .order_by(ChatMessage.created_at.asc())
        .all()
    )


def delete_chat(db: Session, chat_id: UUID, user_id: UUID) -> Optional[Chat]:
    """
    Deletes a chat and its whole message history.

    Returns:
        Optional[Chat]: The deleted chat, or None if the user has no such chat.
    """
    chat = get_chat(db, chat_id, user_id)
    if chat:
        db.query(ChatMessage).filter(ChatMessage.chat_id == chat_id).delete(synchronize_session=False)
        db.delete(chat)
        db.commit()
        return chat
    return None
