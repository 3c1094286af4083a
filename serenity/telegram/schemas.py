from uuid import UUID
from pydantic import BaseModel, Field, field_validator


class TelegramLinkRequest(BaseModel):
    telegram_username: str = Field(..., min_length=1, max_length=64)

    @field_validator("telegram_username")
    @classmethod
    def strip_at(cls, value: str) -> str:
        value = value.strip().lstrip("@")
        if not value:
            raise ValueError("telegram_username must not be empty")
        return value


class TelegramLinkResponse(BaseModel):
    telegram_username: str
    user_id: UUID
