"""
First-run schema bootstrap.

Order of attempts when the `contents` table is missing:
1. GET {PUBLIC_URL}/api/init-db   (a running instance creates the schema)
2. apply_schema() locally         (same DDL, run over our own pool)

Everything here is idempotent; `ensure_schema()` is safe to call repeatedly.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx

from contents.schemas import ContentType
from core import config, db

logger = logging.getLogger(__name__)

# The database enum and API validation share one source of truth.
CONTENT_TYPES = tuple(member.value for member in ContentType)

DEFAULT_SITE_NAME = "OMateShare"
DEFAULT_PAGE_TITLE = "OMateShare"
DEFAULT_META_DESCRIPTION = "Manage character cards, knowledge bases, event books and prompt injections"

# Arbitrary constant shared by every process bootstrapping the same database.
_ADVISORY_LOCK_KEY = 727_105_001

_CONTENT_TYPE_LITERALS = ", ".join(f"'{name}'" for name in CONTENT_TYPES)

SCHEMA_STATEMENTS: tuple[str, ...] = (
    f"""
    DO $$
    BEGIN
        IF NOT EXISTS (SELECT 1 FROM pg_type WHERE typname = 'content_type') THEN
            CREATE TYPE content_type AS ENUM ({_CONTENT_TYPE_LITERALS});
        END IF;
    END$$;
    """,
    """
    CREATE TABLE IF NOT EXISTS contents (
      id SERIAL PRIMARY KEY,
      uuid VARCHAR(36) UNIQUE,
      name VARCHAR(255) NOT NULL,
      description TEXT,
      content_type content_type NOT NULL,
      blob_url TEXT NOT NULL,
      thumbnail_url TEXT,
      metadata JSONB,
      tags TEXT[],
      sort_order INTEGER,
      created_at TIMESTAMP WITH TIME ZONE DEFAULT CURRENT_TIMESTAMP,
      updated_at TIMESTAMP WITH TIME ZONE DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS access_logs (
      id SERIAL PRIMARY KEY,
      content_id INTEGER REFERENCES contents(id),
      access_type VARCHAR(50) NOT NULL,
      ip_address VARCHAR(100),
      user_agent TEXT,
      created_at TIMESTAMP WITH TIME ZONE DEFAULT CURRENT_TIMESTAMP
    )
    """,
    f"""
    CREATE TABLE IF NOT EXISTS site_settings (
      id SERIAL PRIMARY KEY,
      site_name VARCHAR(255) DEFAULT '{DEFAULT_SITE_NAME}',
      show_download_link BOOLEAN DEFAULT true,
      page_title VARCHAR(255) DEFAULT '{DEFAULT_PAGE_TITLE}',
      meta_description TEXT DEFAULT '{DEFAULT_META_DESCRIPTION}',
      created_at TIMESTAMP WITH TIME ZONE DEFAULT CURRENT_TIMESTAMP,
      updated_at TIMESTAMP WITH TIME ZONE DEFAULT CURRENT_TIMESTAMP
    )
    """,
)

INDEX_STATEMENTS: tuple[str, ...] = (
    "CREATE INDEX IF NOT EXISTS idx_contents_content_type ON contents(content_type)",
    "CREATE INDEX IF NOT EXISTS idx_access_logs_content_id ON access_logs(content_id)",
    "CREATE INDEX IF NOT EXISTS idx_contents_created_at ON contents(created_at)",
    "CREATE INDEX IF NOT EXISTS idx_contents_updated_at ON contents(updated_at)",
)

_lock = asyncio.Lock()
_schema_ready = False


class BootstrapError(RuntimeError):
    pass


def schema_ready() -> bool:
    return _schema_ready


async def schema_exists() -> bool:
    value = await db.fetch_value(
        """
        SELECT EXISTS (
          SELECT FROM information_schema.tables
          WHERE table_schema = 'public'
            AND table_name = 'contents'
        )
        """
    )
    return bool(value)


async def apply_schema() -> None:
    """
    Create the enum, tables, default settings row and indexes.

    Runs in one transaction under an advisory lock so concurrent cold starts
    serialize instead of racing on CREATE TYPE.
    """
    async with db.transaction() as conn:
        await conn.execute("SELECT pg_advisory_xact_lock($1)", _ADVISORY_LOCK_KEY)
        for statement in SCHEMA_STATEMENTS:
            await conn.execute(statement)

        settings_count = await conn.fetchval("SELECT count(*) FROM site_settings")
        if int(settings_count or 0) == 0:
            await conn.execute(
                """
                INSERT INTO site_settings (site_name, show_download_link, page_title, meta_description)
                VALUES ($1, $2, $3, $4)
                """,
                DEFAULT_SITE_NAME,
                True,
                DEFAULT_PAGE_TITLE,
                DEFAULT_META_DESCRIPTION,
            )
            logger.info("site_settings_seeded")

        for statement in INDEX_STATEMENTS:
            await conn.execute(statement)
    logger.info("schema_applied")


async def request_remote_init(*, base_url: str | None = None, timeout_s: float | None = None) -> dict[str, Any]:
    """
    Ask a running instance to create the schema through `/api/init-db`.
    """
    base_url = (base_url or config.public_base_url()).rstrip("/")
    timeout_s = config.bootstrap_timeout_s() if timeout_s is None else timeout_s

    try:
        async with httpx.AsyncClient(base_url=base_url, timeout=timeout_s) as client:
            resp = await client.get("/api/init-db")
    except (httpx.HTTPError, httpx.InvalidURL, ValueError) as exc:
        # ValueError covers base URLs httpx cannot parse (e.g. a non-numeric port).
        raise BootstrapError(f"init-db request failed: {exc}") from exc

    try:
        data = resp.json()
    except ValueError:
        data = None

    if resp.status_code != 200:
        message = data.get("message") if isinstance(data, dict) else None
        raise BootstrapError(f"init-db request failed: {message or resp.reason_phrase or resp.status_code}")
    if not isinstance(data, dict):
        raise BootstrapError("init-db returned a non-JSON body.")
    return data


async def ensure_schema() -> None:
    """
    Make sure the schema exists. Only the first successful call does work.
    """
    global _schema_ready
    if _schema_ready:
        return None

    async with _lock:
        if _schema_ready:
            return None

        if await schema_exists():
            logger.info("schema_present")
            _schema_ready = True
            return None

        logger.info("schema_missing starting_bootstrap")
        created_remotely = False
        try:
            result = await request_remote_init()
            logger.info("schema_remote_init_ok result=%s", result)
            # A 200 from the wrong service must not count as a schema.
            created_remotely = await schema_exists()
            if not created_remotely:
                logger.warning("schema_remote_init_unverified falling_back=local")
        except BootstrapError:
            logger.exception("schema_remote_init_failed falling_back=local")

        if not created_remotely:
            try:
                await apply_schema()
            except Exception:
                logger.exception("schema_local_init_failed")
                raise

        _schema_ready = True
        logger.info("schema_bootstrap_complete")


async def bootstrap_on_startup() -> bool:
    """
    Startup hook: never raises. A failure leaves the flag unset so the next
    process start retries; data operations fail on their own until then.
    """
    if not db.is_ready():
        logger.error("schema_bootstrap_skipped reason=no_pool")
        return False
    try:
        await ensure_schema()
    except Exception:
        logger.exception("schema_bootstrap_failed")
        return False
    return True
