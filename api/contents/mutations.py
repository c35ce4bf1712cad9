"""
Focused single-column writes: tag lists and manual ordering.
"""

from __future__ import annotations

import logging
from typing import Any

from core import db

from .repository import content_row

logger = logging.getLogger(__name__)


async def set_tags(content_id: int, tags: list[str] | None) -> dict[str, Any] | None:
    """
    Replace the whole tag list. None and [] both leave an empty list.
    """
    tags = [str(t) for t in (tags or [])]
    logger.info("content_set_tags id=%s count=%s", content_id, len(tags))
    with db.guard("content_set_tags_failed", id=content_id):
        row = await db.fetch_one(
            """
            UPDATE contents
            SET tags = $2::text[], updated_at = now()
            WHERE id = $1
            RETURNING *
            """,
            content_id,
            tags,
        )
    return content_row(row) if row is not None else None


async def set_sort_order(content_id: int, sort_order: int | None) -> dict[str, Any] | None:
    logger.info("content_set_sort_order id=%s sort_order=%s", content_id, sort_order)
    with db.guard("content_set_sort_order_failed", id=content_id):
        row = await db.fetch_one(
            """
            UPDATE contents
            SET sort_order = $2, updated_at = now()
            WHERE id = $1
            RETURNING *
            """,
            content_id,
            sort_order,
        )
    return content_row(row) if row is not None else None
