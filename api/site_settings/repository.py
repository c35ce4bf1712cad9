"""
Site settings persistence.

The table is treated as a singleton: the row with the lowest id is the
canonical one. It is seeded by the schema bootstrap and only patched after.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping

from core import db

logger = logging.getLogger(__name__)

SETTINGS_COLUMNS = ("site_name", "show_download_link", "page_title", "meta_description")

# Used when the table is empty; the update then matches nothing.
FALLBACK_SETTINGS_ID = 1


def _settings_row(row: Mapping[str, Any]) -> dict[str, Any]:
    out = dict(row)
    out["show_download_link"] = bool(out.get("show_download_link"))
    return out


async def get_site_settings() -> dict[str, Any] | None:
    with db.guard("site_settings_get_failed"):
        row = await db.fetch_one(
            """
            SELECT * FROM site_settings
            ORDER BY id ASC
            LIMIT 1
            """
        )
    return _settings_row(row) if row is not None else None


async def update_site_settings(patch: Mapping[str, Any]) -> dict[str, Any] | None:
    """
    Patch the canonical settings row with whichever known columns are present.

    An empty patch returns the current settings without writing.
    """
    current = await get_site_settings()
    settings_id = int(current["id"]) if current is not None else FALLBACK_SETTINGS_ID

    assignments: list[str] = []
    args: list[Any] = [settings_id]
    for column in SETTINGS_COLUMNS:
        if column not in patch:
            continue
        value = patch[column]
        if column == "show_download_link" and value is not None:
            value = bool(value)
        args.append(value)
        assignments.append(f"{column} = ${len(args)}")

    if not assignments:
        return current

    logger.info(
        "site_settings_update id=%s fields=%s",
        settings_id,
        ",".join(c for c in SETTINGS_COLUMNS if c in patch),
    )
    with db.guard("site_settings_update_failed", id=settings_id):
        row = await db.fetch_one(
            f"""
            UPDATE site_settings
            SET {", ".join(assignments)}, updated_at = now()
            WHERE id = $1
            RETURNING *
            """,
            *args,
        )
    return _settings_row(row) if row is not None else None
