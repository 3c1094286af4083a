import uuid
from datetime import datetime, timezone
from sqlalchemy import Column, String, Text, DateTime, ForeignKey, UniqueConstraint, Uuid
from serenity.core.database import Base


class UserContextItem(Base):
    __tablename__ = "user_context"
    __table_args__ = (UniqueConstraint("user_id", "entity_name", "entity_type", name="uq_user_context_entity"),)

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), index=True, nullable=False)

    entity_name = Column(String, nullable=False)
    entity_type = Column(String, nullable=False, default="other")  # person, place, preference, ...
    information = Column(Text, nullable=False)

    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
