"""Tests for BookmarkStore (SQLite via aiosqlite)."""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime

import pytest

from paper_portal.models import Paper, PaperKey, PaperSource
from paper_portal.storage.bookmark_store import BookmarkStore
from paper_portal.storage.database import Database
from paper_portal.storage.exceptions import StoreError


def _paper(source_id: str = "2401.01234", source: PaperSource = PaperSource.ARXIV) -> Paper:
    return Paper(
        source=source,
        source_id=source_id,
        source_url=f"https://example.org/{source_id}",
        title=f"Paper {source_id}",
        abstract="Abstract text.",
        authors=["Alice Kim", "Bob Lee"],
        categories=["cs.LG"],
        published_at=datetime(2024, 1, 15, tzinfo=UTC),
        pdf_url=f"https://example.org/{source_id}.pdf",
        arxiv_id=source_id if source == PaperSource.ARXIV else None,
    )


class TestBookmarkStore:
    @pytest.mark.asyncio
    async def test_add_and_get(self, db):
        store = BookmarkStore(db)
        bookmark = await store.add(_paper(), ai_summary="short")

        assert bookmark.source == PaperSource.ARXIV
        assert bookmark.source_id == "2401.01234"
        assert bookmark.legacy_id == "2401.01234"
        assert bookmark.authors == ["Alice Kim", "Bob Lee"]
        assert bookmark.ai_summary == "short"
        assert (await store.get(PaperKey.parse("arxiv", "2401.01234"))).id == bookmark.id

    @pytest.mark.asyncio
    async def test_add_is_idempotent(self, db):
        store = BookmarkStore(db)
        first = await store.add(_paper())
        second = await store.add(_paper())

        assert first.id == second.id
        assert len(await store.list()) == 1

    @pytest.mark.asyncio
    async def test_same_id_different_sources(self, db):
        store = BookmarkStore(db)
        await store.add(_paper("abc", PaperSource.ARXIV))
        await store.add(_paper("abc", PaperSource.OPENREVIEW))
        assert len(await store.list()) == 2

    @pytest.mark.asyncio
    async def test_list_newest_first(self, db):
        store = BookmarkStore(db)
        await store.add(_paper("1111.1111"))
        await asyncio.sleep(0.01)
        await store.add(_paper("forumB", PaperSource.OPENREVIEW))

        bookmarks = await store.list()
        assert [b.source_id for b in bookmarks] == ["forumB", "1111.1111"]

    @pytest.mark.asyncio
    async def test_exists_with_legacy_id(self, db):
        store = BookmarkStore(db)
        await store.add(_paper())

        assert await store.exists("2401.01234")
        assert await store.exists("arxiv:2401.01234")
        assert not await store.exists("openreview:2401.01234")

    @pytest.mark.asyncio
    async def test_remove(self, db):
        store = BookmarkStore(db)
        await store.add(_paper("forumA", PaperSource.OPENREVIEW))

        assert await store.remove("openreview:forumA") is True
        assert await store.remove("openreview:forumA") is False
        assert await store.list() == []

    @pytest.mark.asyncio
    async def test_update_ai_summary(self, db):
        store = BookmarkStore(db)
        await store.add(_paper())

        assert await store.update_ai_summary("2401.01234", "new summary") is True
        assert (await store.get("2401.01234")).ai_summary == "new summary"
        assert await store.update_ai_summary("9999.99999", "x") is False

    @pytest.mark.asyncio
    async def test_unreachable_database_raises_store_error(self):
        database = Database("postgresql+asyncpg://u:p@127.0.0.1:1/portal", timeout_s=2.0)
        store = BookmarkStore(database)
        try:
            with pytest.raises(StoreError):
                await store.add(_paper())
            with pytest.raises(StoreError):
                await store.list()
        finally:
            await database.dispose()
