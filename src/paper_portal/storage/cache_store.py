"""Enrichment cache: translations, analyses and diagrams keyed per paper."""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import select

from paper_portal.models import CacheRecord, PaperAnalysis, PaperKey, PaperSource
from paper_portal.storage.database import Database
from paper_portal.storage.tables import PaperCacheRow, key_clause, new_id, utcnow

logger = logging.getLogger(__name__)


def _to_record(row: PaperCacheRow) -> CacheRecord:
    return CacheRecord(
        source=PaperSource(row.source),
        source_id=row.source_id,
        legacy_id=row.legacy_id,
        translation=row.translation,
        translated_at=row.translated_at,
        analysis=PaperAnalysis.model_validate(row.analysis) if row.analysis else None,
        analyzed_at=row.analyzed_at,
        infographic=row.infographic,
        infographic_created_at=row.infographic_created_at,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


class CacheStore:
    """Persistent per-paper enrichment cache.

    Each ``put_*`` is a single upsert on the ``(source, source_id)`` unique
    constraint that only touches its own field, so concurrent writers of
    different fields never clobber each other. There is no expiry.
    """

    def __init__(self, db: Database) -> None:
        self._db = db

    async def get(self, key: PaperKey | str) -> CacheRecord | None:
        key = PaperKey.parse(key)
        async with self._db.session() as session:
            result = await session.execute(
                select(PaperCacheRow).where(key_clause(PaperCacheRow, key)).limit(1)
            )
            row = result.scalars().first()
        return _to_record(row) if row is not None else None

    async def put_translation(self, key: PaperKey | str, translation: str) -> bool:
        return await self._upsert(
            PaperKey.parse(key), "translation", "translated_at", translation
        )

    async def put_analysis(self, key: PaperKey | str, analysis: PaperAnalysis) -> bool:
        return await self._upsert(
            PaperKey.parse(key),
            "analysis",
            "analyzed_at",
            analysis.model_dump(by_alias=True),
        )

    async def put_infographic(self, key: PaperKey | str, diagram_code: str) -> bool:
        return await self._upsert(
            PaperKey.parse(key), "infographic", "infographic_created_at", diagram_code
        )

    async def _upsert(
        self, key: PaperKey, field: str, stamp_field: str, value: Any
    ) -> bool:
        now = utcnow()
        stmt = self._db.insert(PaperCacheRow).values(
            id=new_id(),
            source=key.source.value,
            source_id=key.source_id,
            legacy_id=key.legacy_id,
            created_at=now,
            updated_at=now,
            **{field: value, stamp_field: now},
        )
        updates = {
            field: stmt.excluded[field],
            stamp_field: stmt.excluded[stamp_field],
            "updated_at": stmt.excluded.updated_at,
        }
        if key.legacy_id is not None:
            updates["legacy_id"] = stmt.excluded.legacy_id
        stmt = stmt.on_conflict_do_update(
            index_elements=["source", "source_id"], set_=updates
        )

        async with self._db.session() as session:
            await session.execute(stmt)
        logger.debug("Cached %s for %s", field, key)
        return True
