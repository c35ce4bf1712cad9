"""
Pydantic schemas for site settings endpoints.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field, field_validator


class SiteSettingsUpdate(BaseModel):
    site_name: str | None = Field(default=None, max_length=255)
    show_download_link: bool | None = None
    page_title: str | None = Field(default=None, max_length=255)
    meta_description: str | None = None

    @field_validator("show_download_link")
    @classmethod
    def reject_null_flag(cls, value: bool | None) -> bool:
        if value is None:
            raise ValueError("must be true or false")
        return value


class SiteSettingsResponse(BaseModel):
    id: int
    site_name: str | None
    show_download_link: bool
    page_title: str | None
    meta_description: str | None
    created_at: datetime | None = None
    updated_at: datetime | None = None
