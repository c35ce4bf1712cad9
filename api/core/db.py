"""
Async database access helpers (raw SQL) using asyncpg.

This module owns the process-wide connection pool. FastAPI initializes it on
startup and closes it on shutdown (see `api/main.py`). Every repository goes
through `pool()`, so a missing pool surfaces as ConnectionNotInitializedError
on the first data operation rather than at import time.

SQL parameter style:
- asyncpg uses positional placeholders: $1, $2, $3, ...
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager, contextmanager
from typing import Any, AsyncIterator, Iterator
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

import asyncpg

from core import config

logger = logging.getLogger(__name__)

_pool: asyncpg.Pool | None = None


class ConnectionNotInitializedError(RuntimeError):
    pass


# Generic failure for constraint violations, bad input and transport errors.
class PersistenceError(RuntimeError):
    pass


def _sanitize_database_url(url: str) -> str:
    parts = urlsplit(url)
    if not parts.query:
        return url

    params = [(k, v) for (k, v) in parse_qsl(parts.query, keep_blank_values=True) if k != "sslmode"]
    query = urlencode(params)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, query, parts.fragment))


def database_url() -> str:
    url = config.database_url()
    if not url:
        raise RuntimeError("DATABASE_URL is not set.")
    return _sanitize_database_url(url)


async def init_pool() -> None:
    global _pool
    if _pool is not None:
        return None
    _pool = await asyncpg.create_pool(
        dsn=database_url(),
        min_size=config.pool_min_size(),
        max_size=config.pool_max_size(),
        command_timeout=config.command_timeout(),
    )
    logger.info("db_pool_ready")


async def close_pool() -> None:
    global _pool
    if _pool is None:
        return None
    await _pool.close()
    _pool = None
    logger.info("db_pool_closed")


def pool() -> asyncpg.Pool:
    if _pool is None:
        raise ConnectionNotInitializedError("DB pool is not initialized. Call init_pool() on startup.")
    return _pool


def is_ready() -> bool:
    return _pool is not None


@contextmanager
def guard(event: str, **fields: Any) -> Iterator[None]:
    """
    Log a failed data operation and re-raise it as PersistenceError.

    ConnectionNotInitializedError passes through untouched so callers can
    tell "no database" apart from "the database said no".
    """
    try:
        yield
    except (ConnectionNotInitializedError, PersistenceError):
        raise
    except Exception as exc:
        details = " ".join(f"{k}={v}" for k, v in fields.items())
        logger.exception("%s %s", event, details)
        raise PersistenceError(f"{event}: {exc}") from exc


@asynccontextmanager
async def transaction() -> AsyncIterator[asyncpg.Connection]:
    """
    Acquire one connection and run the block inside a transaction.
    """
    async with pool().acquire() as conn:
        async with conn.transaction():
            yield conn


def _record_to_dict(record: asyncpg.Record) -> dict[str, Any]:
    return dict(record)


async def fetch_one(sql: str, *args: Any) -> dict[str, Any] | None:
    """
    Run a query and return a single row as a dict (or None).
    """
    row = await pool().fetchrow(sql, *args)
    return _record_to_dict(row) if row is not None else None


async def fetch_all(sql: str, *args: Any) -> list[dict[str, Any]]:
    """
    Run a query and return all rows as a list of dicts.
    """
    rows = await pool().fetch(sql, *args)
    return [_record_to_dict(r) for r in rows]


async def fetch_value(sql: str, *args: Any) -> Any:
    return await pool().fetchval(sql, *args)


async def execute(sql: str, *args: Any) -> None:
    """
    Run a statement (INSERT/UPDATE/DELETE/DDL). No result returned.
    """
    await pool().execute(sql, *args)
