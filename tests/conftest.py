"""Shared fixtures."""

from __future__ import annotations

import pytest_asyncio

from paper_portal.storage.database import Database


@pytest_asyncio.fixture()
async def db(tmp_path):
    """A fresh SQLite database with all tables created."""
    database = Database(f"sqlite+aiosqlite:///{tmp_path / 'portal.db'}")
    await database.init()
    yield database
    await database.dispose()
