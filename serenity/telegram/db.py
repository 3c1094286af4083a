from typing import List, Optional
from uuid import UUID

from sqlalchemy.orm import Session
from serenity.telegram.models import TelegramMessage, TelegramUser


def get_linked_user_id(db: Session, telegram_username: str) -> Optional[UUID]:
    link = db.query(TelegramUser).filter(TelegramUser.telegram_id == telegram_username).first()
    return link.user_id if link else None


def link_telegram_user(db: Session, user_id: UUID, telegram_username: str) -> TelegramUser:
    """
    Links a Telegram username to the user, replacing the user's previous link.

    Raises:
        ValueError: If the username is already linked to another user.
    """
    taken = db.query(TelegramUser).filter(TelegramUser.telegram_id == telegram_username).first()
    if taken and taken.user_id != user_id:
        raise ValueError("Telegram account already linked to another user")

    link = db.query(TelegramUser).filter(TelegramUser.user_id == user_id).first()
    if link:
        link.telegram_id = telegram_username
    else:
        link = TelegramUser(user_id=user_id, telegram_id=telegram_username)
        db.add(link)
    db.commit()
    db.refresh(link)
    return link


def add_telegram_message(db: Session, chat_id: str, telegram_user_id: str, content: str, is_bot: bool) -> TelegramMessage:
    message = TelegramMessage(
        telegram_chat_id=chat_id,
        telegram_user_id=telegram_user_id,
        content=content,
        is_bot=is_bot,
    )
    db.add(message)
    db.commit()
    db.refresh(message)
    return message


def get_telegram_history(db: Session, chat_id: str, limit: int = 10) -> List[TelegramMessage]:
    """Most recent messages of a chat, newest first."""
    return (
        db.query(TelegramMessage)
        .filter(TelegramMessage.telegram_chat_id == chat_id)
        .order_by(TelegramMessage.created_at.desc())
        .limit(limit)
        .all()
    )


def clear_telegram_history(db: Session, chat_id: str) -> int:
    deleted = (
        db.query(TelegramMessage)
        .filter(TelegramMessage.telegram_chat_id == chat_id)
        .delete(synchronize_session=False)
    )
    db.commit()
    return deleted
