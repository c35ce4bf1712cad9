"""
Site settings API endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, HTTPException

from . import repository, schemas

router = APIRouter()


@router.get("/settings")
async def get_settings() -> schemas.SiteSettingsResponse:
    row = await repository.get_site_settings()
    if row is None:
        raise HTTPException(status_code=404, detail="Site settings not found.")
    return schemas.SiteSettingsResponse(**row)


@router.patch("/settings")
async def update_settings(request: schemas.SiteSettingsUpdate) -> schemas.SiteSettingsResponse:
    row = await repository.update_site_settings(request.model_dump(exclude_unset=True))
    if row is None:
        raise HTTPException(status_code=404, detail="Site settings not found.")
    return schemas.SiteSettingsResponse(**row)
