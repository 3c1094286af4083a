from typing import List, Literal, Optional
from uuid import UUID
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field


class BaseSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)


class ChatMessageIn(BaseSchema):
    role: Literal["user", "assistant"]
    content: str


class ChatRequest(BaseSchema):
    messages: List[ChatMessageIn] = Field(..., min_length=1)
    chat_id: Optional[UUID] = Field(None, alias="chatId")


class ChatOut(BaseSchema):
    id: UUID
    title: Optional[str] = None
    created_at: datetime


class ChatMessageOut(BaseSchema):
    id: UUID
    chat_id: UUID
    role: str
    content: str
    created_at: datetime
