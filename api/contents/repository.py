"""
Content persistence (raw SQL).

Rows come back as plain dicts with `metadata` decoded from jsonb and
`tags` always a list. Reads return None when nothing matches; every other
database failure is logged and re-raised as db.PersistenceError.
"""

from __future__ import annotations

import json
import logging
import re
import secrets
import string
import time
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Iterable, Mapping

from core import db

logger = logging.getLogger(__name__)

UUID_ALPHABET = string.ascii_letters + string.digits + "_-"
UUID_LENGTH = 21

# Closed set of columns a patch may touch, in the order they are assigned.
UPDATABLE_COLUMNS = ("name", "description", "blob_url", "thumbnail_url", "metadata", "tags")

_LEADING_INT = re.compile(r"^\s*([+-]?[0-9]+)")

# contents.id is SERIAL (int4); anything outside cannot match a row.
_INT4_MIN = -(2**31)
_INT4_MAX = 2**31 - 1

_ORDER_BY = "ORDER BY sort_order ASC NULLS LAST, updated_at DESC"


def generate_uuid() -> str:
    return "".join(secrets.choice(UUID_ALPHABET) for _ in range(UUID_LENGTH))


def _json_arg(value: Any) -> str | None:
    """
    asyncpg does not encode Python values for json/jsonb parameters.
    We pass JSON as a string and cast to jsonb in SQL.
    """
    if value is None:
        return None
    return json.dumps(value, ensure_ascii=False)


def _enum_value(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


def content_row(row: Mapping[str, Any]) -> dict[str, Any]:
    out = dict(row)
    metadata = out.get("metadata")
    if isinstance(metadata, str):
        try:
            out["metadata"] = json.loads(metadata)
        except ValueError:
            pass
    if out.get("tags") is None:
        out["tags"] = []
    else:
        out["tags"] = list(out["tags"])
    return out


def parse_ids(ids: Iterable[Any]) -> list[int]:
    """
    Parse ids the lenient way: leading integer wins, anything else is dropped.
    "7" -> 7, " 12px" -> 12, "abc" -> skipped. Ids outside int4 are skipped too.
    """
    parsed: list[int] = []
    for raw in ids:
        if isinstance(raw, bool):
            continue
        if isinstance(raw, int):
            value = raw
        else:
            match = _LEADING_INT.match(str(raw))
            if not match:
                continue
            value = int(match.group(1))
        if _INT4_MIN <= value <= _INT4_MAX:
            parsed.append(value)
    return parsed


async def list_contents(content_type: Any = None) -> list[dict[str, Any]]:
    """
    All contents, manual order first (nulls last), then most recently updated.
    """
    content_type = _enum_value(content_type)
    with db.guard("content_list_failed", content_type=content_type):
        if content_type:
            rows = await db.fetch_all(
                f"""
                SELECT * FROM contents
                WHERE content_type = $1::content_type
                {_ORDER_BY}
                """,
                content_type,
            )
        else:
            rows = await db.fetch_all(
                f"""
                SELECT * FROM contents
                {_ORDER_BY}
                """
            )
    return [content_row(r) for r in rows]


async def get_content(content_id: int) -> dict[str, Any] | None:
    logger.debug("content_get id=%s", content_id)
    with db.guard("content_get_failed", id=content_id):
        row = await db.fetch_one(
            """
            SELECT * FROM contents
            WHERE id = $1
            """,
            content_id,
        )
    return content_row(row) if row is not None else None


async def create_content(data: Mapping[str, Any]) -> dict[str, Any]:
    """
    Insert a content row and return it.

    Required columns are not pre-checked: a missing name, content_type or
    blob_url fails on the table constraints and surfaces as PersistenceError.
    """
    uuid = generate_uuid()
    name = data.get("name")
    description = data.get("description") or ""
    content_type = _enum_value(data.get("content_type"))
    blob_url = data.get("blob_url")
    thumbnail_url = data.get("thumbnail_url") or None
    metadata = data.get("metadata")
    tags = list(data.get("tags") or [])

    logger.info("content_create uuid=%s name=%s content_type=%s", uuid, name, content_type)
    with db.guard("content_create_failed", uuid=uuid):
        row = await db.fetch_one(
            """
            INSERT INTO contents (
              uuid, name, description, content_type, blob_url,
              thumbnail_url, metadata, tags
            )
            VALUES ($1, $2, $3, $4::content_type, $5, $6, $7::jsonb, $8::text[])
            RETURNING *
            """,
            uuid,
            name,
            description,
            content_type,
            blob_url,
            thumbnail_url,
            _json_arg(metadata),
            tags,
        )

    if row is not None:
        return content_row(row)

    # Placeholder id is timestamp-derived; do not use it for lookups.
    logger.error("content_create_no_row uuid=%s", uuid)
    now = datetime.now(timezone.utc)
    return {
        "id": int(time.time() * 1000),
        "uuid": uuid,
        "name": name,
        "description": description,
        "content_type": content_type,
        "blob_url": blob_url,
        "thumbnail_url": thumbnail_url,
        "metadata": metadata,
        "tags": tags,
        "sort_order": None,
        "created_at": now,
        "updated_at": now,
    }


def build_update(content_id: int, patch: Mapping[str, Any]) -> tuple[str, list[Any]] | None:
    """
    Build one UPDATE for the columns present in `patch`.

    Column names only ever come from UPDATABLE_COLUMNS; values are bound
    as parameters. Returns None when the patch touches nothing.
    """
    assignments: list[str] = []
    args: list[Any] = [content_id]
    for column in UPDATABLE_COLUMNS:
        if column not in patch:
            continue
        value = patch[column]
        if column == "metadata":
            args.append(_json_arg(value))
            assignments.append(f"metadata = ${len(args)}::jsonb")
        elif column == "tags":
            args.append(list(value) if value is not None else None)
            assignments.append(f"tags = ${len(args)}::text[]")
        else:
            args.append(value)
            assignments.append(f"{column} = ${len(args)}")

    if not assignments:
        return None

    sql = f"""
        UPDATE contents
        SET {", ".join(assignments)}, updated_at = now()
        WHERE id = $1
        RETURNING *
        """
    return sql, args


async def update_content(content_id: int, patch: Mapping[str, Any]) -> dict[str, Any] | None:
    """
    Apply a partial update in a single statement and return the fresh row.
    """
    statement = build_update(content_id, patch)
    if statement is None:
        return await get_content(content_id)

    sql, args = statement
    logger.info("content_update id=%s fields=%s", content_id, ",".join(k for k in UPDATABLE_COLUMNS if k in patch))
    with db.guard("content_update_failed", id=content_id):
        row = await db.fetch_one(sql, *args)
    if row is None:
        return None

    refreshed = await get_content(content_id)
    return refreshed or content_row(row)


async def delete_content(content_id: int) -> dict[str, Any] | None:
    """
    Delete access logs for the content, then the content row itself.

    Both statements share one transaction, so a failure between them rolls
    back the log delete too.
    """
    logger.info("content_delete id=%s", content_id)
    with db.guard("content_delete_failed", id=content_id):
        async with db.transaction() as conn:
            await conn.execute(
                """
                DELETE FROM access_logs
                WHERE content_id = $1
                """,
                content_id,
            )
            row = await conn.fetchrow(
                """
                DELETE FROM contents
                WHERE id = $1
                RETURNING *
                """,
                content_id,
            )
    return content_row(row) if row is not None else None


async def get_contents_by_ids(ids: Iterable[Any] | None) -> list[dict[str, Any]]:
    """
    Fetch contents by a list of (string) ids. Order is not guaranteed.
    """
    if not ids:
        logger.debug("content_batch_get skipped reason=no_ids")
        return []

    numeric_ids = parse_ids(ids)
    if not numeric_ids:
        logger.debug("content_batch_get skipped reason=no_numeric_ids")
        return []

    with db.guard("content_batch_get_failed", ids=numeric_ids):
        rows = await db.fetch_all(
            """
            SELECT * FROM contents
            WHERE id = ANY($1::int[])
            """,
            numeric_ids,
        )
    logger.debug("content_batch_get requested=%s found=%s", len(numeric_ids), len(rows))
    return [content_row(r) for r in rows]
