"""
Schema bootstrap endpoint, called back by `core.bootstrap.request_remote_init`.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from . import bootstrap

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/api/init-db")
async def init_db() -> JSONResponse:
    try:
        await bootstrap.apply_schema()
    except Exception as exc:
        logger.exception("init_db_failed")
        return JSONResponse(status_code=500, content={"ok": False, "message": str(exc)})
    return JSONResponse(content={"ok": True, "message": "Database schema is ready."})
