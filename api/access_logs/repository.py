"""
Access log persistence.

Logging an access is best-effort: it is switched on by ACCESS_LOG_ON=1 and
never raises to the request it is attached to.
"""

from __future__ import annotations

import logging

from core import config, db

logger = logging.getLogger(__name__)


async def log_access(
    content_id: int,
    access_type: str,
    *,
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> int | None:
    """
    Insert one access_logs row and return its id, or None when disabled or failed.
    """
    if not config.access_log_enabled():
        logger.debug("access_log_skipped reason=disabled content_id=%s", content_id)
        return None

    try:
        row = await db.fetch_one(
            """
            INSERT INTO access_logs (content_id, access_type, ip_address, user_agent)
            VALUES ($1, $2, $3, $4)
            RETURNING id
            """,
            content_id,
            access_type,
            ip_address or None,
            user_agent or None,
        )
    except Exception:
        logger.exception("access_log_failed content_id=%s access_type=%s", content_id, access_type)
        return None

    if row is None:
        return None
    return int(row["id"])


async def list_access_logs(content_id: int, *, limit: int = 100) -> list[dict]:
    with db.guard("access_log_list_failed", content_id=content_id):
        return await db.fetch_all(
            """
            SELECT id, content_id, access_type, ip_address, user_agent, created_at
            FROM access_logs
            WHERE content_id = $1
            ORDER BY created_at DESC, id DESC
            LIMIT $2
            """,
            content_id,
            limit,
        )
