import uuid
from datetime import datetime, timezone
from sqlalchemy import Column, String, Text, Boolean, DateTime, ForeignKey, Uuid
from serenity.core.database import Base


class TelegramUser(Base):
    """Links a Telegram username to an account."""

    __tablename__ = "telegram_users"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    telegram_id = Column(String, unique=True, index=True, nullable=False)  # Telegram username
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), unique=True, nullable=False)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))


class TelegramMessage(Base):
    __tablename__ = "telegram_messages"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    telegram_chat_id = Column(String, index=True, nullable=False)
    telegram_user_id = Column(String, nullable=False)
    content = Column(Text, nullable=False)
    is_bot = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), index=True, default=lambda: datetime.now(timezone.utc))
