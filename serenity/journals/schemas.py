from typing import Any, Dict, Optional, List
from uuid import UUID
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field


class BaseSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class JournalEntryBase(BaseSchema):
    id: UUID
    user_id: UUID
    title: Optional[str] = None
    content: str
    summary: Optional[str] = None
    mood_tags: Optional[List[str]] = None
    keywords: Optional[List[str]] = None
    sentences: Optional[List[str]] = None
    song: Optional[str] = None
    tags: List[str] = []
    is_processing: bool
    location: Optional[Dict[str, Any]] = None
    created_at: datetime


class JournalEntryCreate(BaseSchema):
    title: Optional[str] = None
    content: str = Field(..., min_length=1)
    location: Optional[Dict[str, Any]] = None


class JournalCreatedResponse(JournalEntryBase):
    status: str = "processing"
    message: str = "Journal created. Content is being processed."


class JournalWebhookPayload(BaseSchema):
    journal_id: UUID
    summary: Optional[str] = None
    mood_tags: Optional[List[str]] = None
    keywords: Optional[List[str]] = None
    sentences: Optional[List[str]] = None
    song: Optional[str] = None


class JournalWebhookResult(BaseModel):
    status: str
    journal_id: UUID
