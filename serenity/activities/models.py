import uuid
from sqlalchemy import Column, String, Text, Integer, JSON, Uuid
from serenity.core.database import Base


class Activity(Base):
    __tablename__ = "activities"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String, nullable=False, unique=True)
    description = Column(Text, nullable=True)
    category = Column(String, nullable=True)  # e.g. "mindfulness", "movement"
    duration_minutes = Column(Integer, nullable=True)
    mood_tags = Column(JSON, nullable=False, default=list)  # moods this activity helps with
