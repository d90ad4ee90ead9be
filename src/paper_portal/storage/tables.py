"""ORM tables for the enrichment cache and bookmarks."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from typing import Any, Optional

from sqlalchemy import JSON, DateTime, String, Text, UniqueConstraint, and_, or_
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from paper_portal.models import PaperKey, PaperSource


def new_id() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(UTC)


class Base(DeclarativeBase):
    pass


class PaperCacheRow(Base):
    __tablename__ = "paper_cache"
    __table_args__ = (
        UniqueConstraint("source", "source_id", name="uq_paper_cache_source_id"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    source: Mapped[str] = mapped_column(String(32), default="arxiv")
    source_id: Mapped[str] = mapped_column(String(255))
    # Pre-multi-source arXiv identifier
    legacy_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True, index=True)

    translation: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    translated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    analysis: Mapped[Optional[dict[str, Any]]] = mapped_column(JSON, nullable=True)
    analyzed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    infographic: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    infographic_created_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)


class BookmarkRow(Base):
    __tablename__ = "bookmarks"
    __table_args__ = (
        UniqueConstraint("source", "source_id", name="uq_bookmarks_source_id"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    source: Mapped[str] = mapped_column(String(32), default="arxiv")
    source_id: Mapped[str] = mapped_column(String(255))
    legacy_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True, index=True)

    title: Mapped[str] = mapped_column(Text)
    authors: Mapped[list[str]] = mapped_column(JSON, default=list)
    abstract: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    categories: Mapped[list[str]] = mapped_column(JSON, default=list)
    published_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    pdf_url: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)
    source_url: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)
    ai_summary: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, index=True
    )


def key_clause(table: Any, key: PaperKey) -> Any:
    """Match ``(source, source_id)``; arXiv keys also match legacy rows."""
    exact = and_(table.source == key.source.value, table.source_id == key.source_id)
    if key.source == PaperSource.ARXIV:
        return or_(exact, table.legacy_id == key.source_id)
    return exact
