"""OpenReview paper source adapter (API v2 notes)."""

from __future__ import annotations

import asyncio
import logging
from datetime import UTC, datetime
from typing import Any

import httpx

from paper_portal.config import DEFAULT_OPENREVIEW_VENUES
from paper_portal.models import DateRange, Paper, PaperSource, SearchResult
from paper_portal.sources.base import PaperSourceAdapter, normalize_whitespace
from paper_portal.sources.exceptions import SourceResponseError, SourceUnavailableError

logger = logging.getLogger(__name__)

OPENREVIEW_API_URL = "https://api2.openreview.net"

_VENUE_BATCH_SIZE = 50
_EPOCH = datetime.min.replace(tzinfo=UTC)


def _content_value(content: dict[str, Any], field: str) -> Any:
    entry = content.get(field)
    if isinstance(entry, dict):
        return entry.get("value")
    return None


def _from_epoch_ms(value: Any) -> datetime | None:
    if not isinstance(value, (int, float)):
        return None
    return datetime.fromtimestamp(value / 1000, tz=UTC)


class OpenReviewSource(PaperSourceAdapter):
    """OpenReview adapter.

    The notes API has no free-text or date filter, so search polls a fixed
    set of venues and filters each batch in memory.
    """

    default_base_url = OPENREVIEW_API_URL

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        timeout_s: float = 10.0,
        base_url: str | None = None,
        venues: list[str] | None = None,
        venue_timeout_s: float = 3.0,
    ) -> None:
        super().__init__(client=client, timeout_s=timeout_s, base_url=base_url)
        self.venues = list(venues or DEFAULT_OPENREVIEW_VENUES)
        self.venue_timeout_s = venue_timeout_s

    @property
    def source(self) -> PaperSource:
        return PaperSource.OPENREVIEW

    @property
    def notes_url(self) -> str:
        return f"{self.base_url.rstrip('/')}/notes"

    # ------------------------------------------------------------------
    # Parsing
    # ------------------------------------------------------------------

    @staticmethod
    def _extract_categories(note: dict[str, Any]) -> list[str]:
        content = note.get("content") or {}
        categories: list[str] = []
        for field in ("venue", "venueid"):
            value = _content_value(content, field)
            if value and value not in categories:
                categories.append(str(value))

        invitation = note.get("invitation")
        if invitation:
            tail = str(invitation).rsplit("/", 1)[-1]
            if tail and tail not in categories:
                categories.append(tail)

        return categories or ["OpenReview"]

    @staticmethod
    def _parse_note(note: dict[str, Any]) -> Paper | None:
        """Parse one note. Returns None for notes without a usable title."""
        if not isinstance(note, dict):
            return None
        content = note.get("content") or {}
        title = normalize_whitespace(_content_value(content, "title"))
        source_id = note.get("forum") or note.get("id")
        if not title or not source_id:
            return None

        authors = _content_value(content, "authors")
        published_at = _from_epoch_ms(note.get("cdate"))
        updated_at = _from_epoch_ms(note.get("mdate")) or published_at

        return Paper(
            source=PaperSource.OPENREVIEW,
            source_id=str(source_id),
            source_url=f"https://openreview.net/forum?id={source_id}",
            title=title,
            abstract=normalize_whitespace(_content_value(content, "abstract")),
            authors=[str(a) for a in authors] if isinstance(authors, list) else [],
            categories=OpenReviewSource._extract_categories(note),
            published_at=published_at,
            updated_at=updated_at,
            pdf_url=f"https://openreview.net/pdf?id={source_id}",
        )

    @staticmethod
    def parse_notes(payload: Any) -> list[Paper]:
        notes = payload.get("notes") if isinstance(payload, dict) else None
        if notes is None:
            notes = []
        if not isinstance(notes, list):
            raise SourceResponseError(
                "OpenReview response 'notes' is not a list",
                PaperSource.OPENREVIEW.value,
            )
        papers = []
        for note in notes:
            paper = OpenReviewSource._parse_note(note)
            if paper is not None:
                papers.append(paper)
        return papers

    async def _fetch_notes(
        self, params: dict[str, Any], timeout_s: float | None = None
    ) -> list[Paper]:
        response = await self._get(self.notes_url, params, timeout_s=timeout_s)
        try:
            payload = response.json()
        except ValueError as exc:
            raise SourceResponseError(
                f"Unparseable OpenReview response: {exc}",
                PaperSource.OPENREVIEW.value,
            ) from exc
        return self.parse_notes(payload)

    @staticmethod
    def _matches(paper: Paper, needle: str, date_range: DateRange | None) -> bool:
        if needle not in paper.title.lower() and needle not in paper.abstract.lower():
            return False
        if date_range is not None and not date_range.contains(paper.published_at):
            return False
        return True

    # ------------------------------------------------------------------
    # Adapter operations
    # ------------------------------------------------------------------

    async def search(
        self,
        query: str,
        max_results: int = 20,
        offset: int = 0,
        category: str | None = None,
        date_range: DateRange | None = None,
    ) -> SearchResult:
        needle = query.lower().strip()
        tasks = [
            self._fetch_notes(
                {
                    "content.venueid": venue,
                    "limit": _VENUE_BATCH_SIZE,
                    "sort": "cdate:desc",
                },
                timeout_s=self.venue_timeout_s,
            )
            for venue in self.venues
        ]
        results = await asyncio.gather(*tasks, return_exceptions=True)

        matched: list[Paper] = []
        failures = 0
        for venue, result in zip(self.venues, results):
            if isinstance(result, BaseException):
                failures += 1
                logger.warning("OpenReview venue '%s' failed: %s", venue, result)
                continue
            matched.extend(p for p in result if self._matches(p, needle, date_range))

        if self.venues and failures == len(self.venues):
            raise SourceUnavailableError(
                "All OpenReview venues failed", PaperSource.OPENREVIEW.value
            )

        matched.sort(key=lambda p: p.published_at or _EPOCH, reverse=True)
        return SearchResult(
            papers=matched[offset : offset + max_results],
            total=len(matched),
        )

    async def get_by_id(self, source_id: str) -> Paper | None:
        papers = await self._fetch_notes({"id": source_id})
        return papers[0] if papers else None

    async def latest(self, category_or_venue: str, max_results: int = 10) -> list[Paper]:
        return await self._fetch_notes(
            {
                "content.venueid": category_or_venue,
                "limit": max_results,
                "sort": "cdate:desc",
            }
        )
