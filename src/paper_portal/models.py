"""Core data models for the paper portal.

All Pydantic models are defined here as the single source of truth.
Every other module imports from this file.
"""

from __future__ import annotations

import re
import uuid
from datetime import UTC, date, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from paper_portal.exceptions import InvalidRequestError

_DATE8_RE = re.compile(r"^\d{8}$")


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class PaperSource(str, Enum):
    ARXIV = "arxiv"
    OPENREVIEW = "openreview"


class SearchScope(str, Enum):
    ARXIV = "arxiv"
    OPENREVIEW = "openreview"
    BOTH = "both"


# ---------------------------------------------------------------------------
# Papers
# ---------------------------------------------------------------------------

class Paper(BaseModel):
    source: PaperSource
    source_id: str
    source_url: str
    title: str
    abstract: str = ""
    authors: list[str] = []
    categories: list[str] = []
    published_at: datetime | None = None
    updated_at: datetime | None = None
    pdf_url: str = ""
    arxiv_id: str | None = None

    @property
    def key(self) -> PaperKey:
        return PaperKey.of(self)


class PaperKey(BaseModel):
    """Canonical ``(source, source_id)`` identity.

    A bare identifier is legacy shorthand for an arXiv id; ``arxiv:<id>`` and
    ``openreview:<id>`` prefixes select the source explicitly.
    """

    model_config = ConfigDict(frozen=True)

    source: PaperSource
    source_id: str

    @classmethod
    def parse(
        cls,
        source_or_legacy_id: PaperKey | PaperSource | str,
        source_id: str | None = None,
    ) -> PaperKey:
        if isinstance(source_or_legacy_id, PaperKey):
            return source_or_legacy_id

        if source_id is not None:
            try:
                source = PaperSource(source_or_legacy_id)
            except ValueError as exc:
                raise InvalidRequestError(
                    f"Unknown paper source: {source_or_legacy_id!r}"
                ) from exc
            source_id = source_id.strip()
            if not source_id:
                raise InvalidRequestError("source_id is required")
            return cls(source=source, source_id=source_id)

        identifier = str(source_or_legacy_id).strip()
        prefix, sep, rest = identifier.partition(":")
        if sep and rest.strip():
            try:
                return cls(source=PaperSource(prefix.lower()), source_id=rest.strip())
            except ValueError:
                pass
        if not identifier:
            raise InvalidRequestError("Paper identifier is required")
        return cls(source=PaperSource.ARXIV, source_id=identifier)

    @classmethod
    def of(cls, paper: Paper) -> PaperKey:
        return cls(source=paper.source, source_id=paper.source_id)

    @property
    def legacy_id(self) -> str | None:
        """The pre-multi-source identifier; only arXiv papers have one."""
        return self.source_id if self.source == PaperSource.ARXIV else None

    def __str__(self) -> str:
        return f"{self.source.value}:{self.source_id}"


class SearchResult(BaseModel):
    """One adapter's page of results."""

    papers: list[Paper] = []
    total: int = 0


# ---------------------------------------------------------------------------
# Query enhancement
# ---------------------------------------------------------------------------

class DateRange(BaseModel):
    """Inclusive date window in YYYYMMDD form."""

    model_config = ConfigDict(populate_by_name=True)

    start_date: str = Field(alias="startDate")
    end_date: str = Field(alias="endDate")
    description: str | None = None

    @field_validator("start_date", "end_date")
    @classmethod
    def _eight_digits(cls, value: str) -> str:
        value = str(value).strip()
        if not _DATE8_RE.fullmatch(value):
            raise ValueError(f"expected YYYYMMDD, got {value!r}")
        datetime.strptime(value, "%Y%m%d")
        return value

    @model_validator(mode="after")
    def _ordered(self) -> DateRange:
        if self.start_date > self.end_date:
            raise ValueError("start_date must not be after end_date")
        return self

    @classmethod
    def from_dates(
        cls, start: date, end: date, description: str | None = None
    ) -> DateRange:
        return cls(
            start_date=start.strftime("%Y%m%d"),
            end_date=end.strftime("%Y%m%d"),
            description=description,
        )

    @property
    def start(self) -> date:
        return datetime.strptime(self.start_date, "%Y%m%d").date()

    @property
    def end(self) -> date:
        return datetime.strptime(self.end_date, "%Y%m%d").date()

    def contains(self, moment: datetime | None) -> bool:
        if moment is None:
            return False
        return self.start <= moment.date() <= self.end


class EnhancedQuery(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    original_query: str = Field(alias="originalQuery")
    keywords: list[str] = Field(default_factory=list, alias="englishKeywords")
    search_query: str = Field(alias="searchQuery")
    suggested_category: str | None = Field(default=None, alias="suggestedCategory")
    date_filter: DateRange | None = Field(default=None, alias="dateFilter")


# ---------------------------------------------------------------------------
# Aggregated search
# ---------------------------------------------------------------------------

class SourceStats(BaseModel):
    count: int = 0
    total: int = 0
    error: str | None = None


class AggregatedSearch(BaseModel):
    papers: list[Paper] = []
    total: int = 0
    sources: dict[str, SourceStats] = {}
    enhanced: EnhancedQuery | None = None
    timestamp: str = Field(default_factory=lambda: datetime.now(UTC).isoformat())


# ---------------------------------------------------------------------------
# Enrichment
# ---------------------------------------------------------------------------

class PaperAnalysis(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    summary: str
    key_points: list[str] = Field(default_factory=list, alias="keyPoints")
    methodology: str = ""
    contributions: list[str] = []
    limitations: list[str] = []


class Translation(BaseModel):
    translation: str
    cached: bool = False


class AnalysisResult(BaseModel):
    analysis: PaperAnalysis
    cached: bool = False


class Infographic(BaseModel):
    diagram_code: str
    diagram_type: str = "mermaid"
    cached: bool = False


class PaperComparison(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    common_themes: list[str] = Field(default_factory=list, alias="commonThemes")
    differences: list[str] = []
    connections: list[str] = []
    research_gaps: list[str] = Field(default_factory=list, alias="researchGaps")
    recommendation: str = ""


# ---------------------------------------------------------------------------
# Persisted records
# ---------------------------------------------------------------------------

class CacheRecord(BaseModel):
    source: PaperSource
    source_id: str
    legacy_id: str | None = None
    translation: str | None = None
    translated_at: datetime | None = None
    analysis: PaperAnalysis | None = None
    analyzed_at: datetime | None = None
    infographic: str | None = None
    infographic_created_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class Bookmark(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    source: PaperSource
    source_id: str
    legacy_id: str | None = None
    title: str
    authors: list[str] = []
    abstract: str | None = None
    categories: list[str] = []
    published_at: datetime | None = None
    pdf_url: str | None = None
    source_url: str | None = None
    ai_summary: str | None = None
    created_at: datetime | None = None
