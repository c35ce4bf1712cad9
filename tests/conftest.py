"""
Shared fixtures: the db helper functions replaced with AsyncMocks.
"""

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from core import db


@pytest.fixture
def fake_conn():
    """Connection handed out by the patched db.transaction()."""
    return SimpleNamespace(
        execute=AsyncMock(return_value="OK"),
        fetchrow=AsyncMock(return_value=None),
        fetchval=AsyncMock(return_value=None),
    )


@pytest.fixture
def db_mocks(monkeypatch, fake_conn):
    mocks = SimpleNamespace(
        fetch_one=AsyncMock(return_value=None),
        fetch_all=AsyncMock(return_value=[]),
        fetch_value=AsyncMock(return_value=None),
        execute=AsyncMock(return_value=None),
        conn=fake_conn,
        transactions=0,
    )

    @asynccontextmanager
    async def transaction():
        mocks.transactions += 1
        yield fake_conn

    monkeypatch.setattr(db, "fetch_one", mocks.fetch_one)
    monkeypatch.setattr(db, "fetch_all", mocks.fetch_all)
    monkeypatch.setattr(db, "fetch_value", mocks.fetch_value)
    monkeypatch.setattr(db, "execute", mocks.execute)
    monkeypatch.setattr(db, "transaction", transaction)
    return mocks


@pytest.fixture
def content_row_factory():
    def make(**overrides):
        now = datetime(2025, 1, 1, tzinfo=timezone.utc)
        row = {
            "id": 1,
            "uuid": "V1StGXR8_Z5jdHi6B-myT",
            "name": "Card A",
            "description": "",
            "content_type": "character_card",
            "blob_url": "https://x/a.png",
            "thumbnail_url": None,
            "metadata": None,
            "tags": [],
            "sort_order": None,
            "created_at": now,
            "updated_at": now,
        }
        row.update(overrides)
        return row

    return make
