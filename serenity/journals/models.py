import uuid
from datetime import datetime, timezone
from sqlalchemy import Column, String, Text, Boolean, DateTime, ForeignKey, JSON, Uuid
from sqlalchemy.orm import relationship
from serenity.core.database import Base


class JournalEntry(Base):
    __tablename__ = "journals"

    id = Column(Uuid(as_uuid=True), primary_key=True, index=True, default=uuid.uuid4)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), index=True, nullable=False)

    title = Column(String, nullable=True)
    content = Column(Text, nullable=False)
    tags = Column(JSON, nullable=False, default=list)  # generated at creation
    location = Column(JSON(none_as_null=True), nullable=True)

    # Filled once by the enrichment webhook
    summary = Column(Text, nullable=True)
    mood_tags = Column(JSON(none_as_null=True), nullable=True)
    keywords = Column(JSON(none_as_null=True), nullable=True)
    sentences = Column(JSON(none_as_null=True), nullable=True)
    song = Column(String, nullable=True)
    embedding = Column(JSON(none_as_null=True), nullable=True)

    is_processing = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), index=True, default=lambda: datetime.now(timezone.utc))

    user = relationship("User", back_populates="journals")
