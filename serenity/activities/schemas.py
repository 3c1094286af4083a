from typing import List, Optional
from uuid import UUID
from pydantic import BaseModel, ConfigDict


class ActivityBase(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    description: Optional[str] = None
    category: Optional[str] = None
    duration_minutes: Optional[int] = None
    mood_tags: List[str] = []
