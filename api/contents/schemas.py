"""
Pydantic schemas for content endpoints and repository patches.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator


class ContentType(str, Enum):
    CHARACTER_CARD = "character_card"
    KNOWLEDGE_BASE = "knowledge_base"
    EVENT_BOOK = "event_book"
    PROMPT_INJECTION = "prompt_injection"
    STORY_BOOK = "story_book"
    OTHER = "other"


class ContentCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    content_type: ContentType
    blob_url: str = Field(..., min_length=1)
    description: str | None = None
    thumbnail_url: str | None = None
    metadata: Any = None
    tags: list[str] | None = None


class ContentUpdate(BaseModel):
    """
    Partial update. Only fields explicitly present are written; an explicit
    null clears the column.
    """

    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    blob_url: str | None = Field(default=None, min_length=1)
    thumbnail_url: str | None = None
    metadata: Any = None
    tags: list[str] | None = None

    # Omitting these is fine; an explicit null would hit NOT NULL columns.
    @field_validator("name", "blob_url")
    @classmethod
    def reject_null(cls, value: str | None) -> str:
        if value is None:
            raise ValueError("may be omitted but not null")
        return value


class TagsUpdate(BaseModel):
    tags: list[str] = Field(default_factory=list)


class SortOrderUpdate(BaseModel):
    # null drops the row back to timestamp ordering.
    sort_order: int | None = None


class BatchRequest(BaseModel):
    ids: list[str] = Field(default_factory=list)


class AccessRequest(BaseModel):
    access_type: str = Field(default="view", min_length=1, max_length=50)
