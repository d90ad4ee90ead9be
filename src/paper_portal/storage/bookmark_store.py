"""Bookmark persistence."""

from __future__ import annotations

import logging

from sqlalchemy import delete, select, update

from paper_portal.models import Bookmark, Paper, PaperKey, PaperSource
from paper_portal.storage.database import Database
from paper_portal.storage.exceptions import StoreError
from paper_portal.storage.tables import BookmarkRow, key_clause, new_id, utcnow

logger = logging.getLogger(__name__)


def _to_bookmark(row: BookmarkRow) -> Bookmark:
    return Bookmark(
        id=row.id,
        source=PaperSource(row.source),
        source_id=row.source_id,
        legacy_id=row.legacy_id,
        title=row.title,
        authors=list(row.authors or []),
        abstract=row.abstract,
        categories=list(row.categories or []),
        published_at=row.published_at,
        pdf_url=row.pdf_url,
        source_url=row.source_url,
        ai_summary=row.ai_summary,
        created_at=row.created_at,
    )


class BookmarkStore:
    """Saved papers, at most one bookmark per ``(source, source_id)``."""

    def __init__(self, db: Database) -> None:
        self._db = db

    async def add(self, paper: Paper, ai_summary: str | None = None) -> Bookmark:
        """Bookmark a paper. Adding an existing bookmark returns the stored row."""
        key = paper.key
        stmt = (
            self._db.insert(BookmarkRow)
            .values(
                id=new_id(),
                source=key.source.value,
                source_id=key.source_id,
                legacy_id=paper.arxiv_id or key.legacy_id,
                title=paper.title,
                authors=list(paper.authors),
                abstract=paper.abstract,
                categories=list(paper.categories),
                published_at=paper.published_at,
                pdf_url=paper.pdf_url or None,
                source_url=paper.source_url or None,
                ai_summary=ai_summary,
                created_at=utcnow(),
            )
            .on_conflict_do_nothing(index_elements=["source", "source_id"])
        )

        async with self._db.session() as session:
            await session.execute(stmt)
            result = await session.execute(
                select(BookmarkRow).where(
                    BookmarkRow.source == key.source.value,
                    BookmarkRow.source_id == key.source_id,
                )
            )
            row = result.scalars().first()

        if row is None:
            raise StoreError(f"Bookmark for {key} was not persisted")
        logger.info("Bookmarked %s", key)
        return _to_bookmark(row)

    async def remove(self, key: PaperKey | str) -> bool:
        key = PaperKey.parse(key)
        async with self._db.session() as session:
            result = await session.execute(
                delete(BookmarkRow).where(key_clause(BookmarkRow, key))
            )
        return (result.rowcount or 0) > 0

    async def list(self) -> list[Bookmark]:
        async with self._db.session() as session:
            result = await session.execute(
                select(BookmarkRow).order_by(BookmarkRow.created_at.desc())
            )
            rows = result.scalars().all()
        return [_to_bookmark(row) for row in rows]

    async def get(self, key: PaperKey | str) -> Bookmark | None:
        key = PaperKey.parse(key)
        async with self._db.session() as session:
            result = await session.execute(
                select(BookmarkRow).where(key_clause(BookmarkRow, key)).limit(1)
            )
            row = result.scalars().first()
        return _to_bookmark(row) if row is not None else None

    async def exists(self, key: PaperKey | str) -> bool:
        return await self.get(key) is not None

    async def update_ai_summary(self, key: PaperKey | str, summary: str) -> bool:
        key = PaperKey.parse(key)
        async with self._db.session() as session:
            result = await session.execute(
                update(BookmarkRow)
                .where(key_clause(BookmarkRow, key))
                .values(ai_summary=summary)
            )
        return (result.rowcount or 0) > 0
