"""
Content API endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Query, Request

from access_logs import repository as access_log_repository

from . import mutations, repository, schemas

router = APIRouter()


def _not_found() -> HTTPException:
    return HTTPException(status_code=404, detail="Content not found.")


@router.get("/contents")
async def list_contents(
    content_type: schemas.ContentType | None = Query(default=None, alias="type"),
) -> dict:
    rows = await repository.list_contents(content_type)
    return {"contents": rows, "count": len(rows)}


@router.post("/contents/batch")
async def get_contents_batch(request: schemas.BatchRequest) -> dict:
    rows = await repository.get_contents_by_ids(request.ids)
    return {"contents": rows, "count": len(rows)}


@router.get("/contents/{content_id}")
async def get_content(content_id: int) -> dict:
    row = await repository.get_content(content_id)
    if row is None:
        raise _not_found()
    return row


@router.post("/contents", status_code=201)
async def create_content(request: schemas.ContentCreate) -> dict:
    return await repository.create_content(request.model_dump())


@router.patch("/contents/{content_id}")
async def update_content(content_id: int, request: schemas.ContentUpdate) -> dict:
    row = await repository.update_content(content_id, request.model_dump(exclude_unset=True))
    if row is None:
        raise _not_found()
    return row


@router.delete("/contents/{content_id}")
async def delete_content(content_id: int) -> dict:
    row = await repository.delete_content(content_id)
    if row is None:
        raise _not_found()
    return {"ok": True, "content": row}


@router.put("/contents/{content_id}/tags")
async def set_tags(content_id: int, request: schemas.TagsUpdate) -> dict:
    row = await mutations.set_tags(content_id, request.tags)
    if row is None:
        raise _not_found()
    return row


@router.put("/contents/{content_id}/sort-order")
async def set_sort_order(content_id: int, request: schemas.SortOrderUpdate) -> dict:
    row = await mutations.set_sort_order(content_id, request.sort_order)
    if row is None:
        raise _not_found()
    return row


@router.post("/contents/{content_id}/access")
async def log_access(content_id: int, body: schemas.AccessRequest, request: Request) -> dict:
    """
    Record a view/download. Never fails because of the log write itself.
    """
    log_id = await access_log_repository.log_access(
        content_id,
        body.access_type,
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
    )
    return {"logged": log_id is not None, "id": log_id}


@router.get("/contents/{content_id}/access-logs")
async def list_access_logs(
    content_id: int,
    limit: int = Query(100, ge=1, le=500),
) -> dict:
    rows = await access_log_repository.list_access_logs(content_id, limit=limit)
    return {"access_logs": rows, "count": len(rows)}
