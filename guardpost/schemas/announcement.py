from pydantic import BaseModel, field_validator
import uuid
from datetime import datetime


class AnnouncementCreate(BaseModel):
    title: str
    body: str
    author: str | None = None

    @field_validator("title", "body")
    @classmethod
    def not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Title and message are required")
        return v

    @field_validator("author")
    @classmethod
    def blank_author_is_none(cls, v: str | None) -> str | None:
        if v is None:
            return None
        return v.strip() or None


class AnnouncementOut(BaseModel):
    id: uuid.UUID
    title: str
    body: str
    author: str | None
    created_at: datetime

    model_config = {"from_attributes": True}
