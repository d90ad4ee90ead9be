"""Multi-source aggregator skill: fan out to adapters, merge, combine totals."""

from __future__ import annotations

import asyncio
import logging
import math
from typing import Awaitable, TypeVar

from paper_portal.exceptions import InvalidRequestError
from paper_portal.models import (
    AggregatedSearch,
    DateRange,
    Paper,
    PaperKey,
    PaperSource,
    SearchResult,
    SearchScope,
    SourceStats,
)
from paper_portal.sources.base import PaperSourceAdapter
from paper_portal.sources.exceptions import SourceError

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_LATEST_CATEGORY = "cs.AI"
DEFAULT_LATEST_VENUE = "ICLR.cc"


def _title_key(paper: Paper) -> str:
    return paper.title.casefold().strip()


def merge_papers(list_a: list[Paper], list_b: list[Paper]) -> list[Paper]:
    """Round-robin interleave two ranked lists, dropping repeated titles.

    At each index the paper from ``list_a`` goes first. Titles are compared
    case-folded and trimmed; the first occurrence wins even across sources.
    """
    merged: list[Paper] = []
    seen_titles: set[str] = set()

    for i in range(max(len(list_a), len(list_b))):
        for papers in (list_a, list_b):
            if i >= len(papers):
                continue
            key = _title_key(papers[i])
            if key in seen_titles:
                continue
            seen_titles.add(key)
            merged.append(papers[i])

    return merged


class SearchAggregator:
    """Execute searches across paper sources in parallel and merge the results.

    One source failing or timing out never fails the request; it contributes
    zero papers and its error is reported in the per-source stats.
    """

    def __init__(
        self,
        sources: dict[PaperSource, PaperSourceAdapter],
        timeout_s: float = 10.0,
    ) -> None:
        self._sources = sources
        self._timeout_s = timeout_s

    @property
    def sources(self) -> dict[PaperSource, PaperSourceAdapter]:
        return dict(self._sources)

    async def _bounded(self, call: Awaitable[T]) -> T:
        return await asyncio.wait_for(call, timeout=self._timeout_s)

    def _selected(self, scope: SearchScope) -> list[PaperSource]:
        wanted = (
            [PaperSource.ARXIV, PaperSource.OPENREVIEW]
            if scope == SearchScope.BOTH
            else [PaperSource(scope.value)]
        )
        return [s for s in wanted if s in self._sources]

    async def search(
        self,
        query: str,
        scope: SearchScope = SearchScope.BOTH,
        max_results: int = 20,
        offset: int = 0,
        category: str | None = None,
        date_range: DateRange | None = None,
    ) -> AggregatedSearch:
        selected = self._selected(scope)
        per_source = (
            math.ceil(max_results / 2) if scope == SearchScope.BOTH else max_results
        )

        tasks = []
        for source in selected:
            adapter = self._sources[source]
            # OpenReview paginates client-side over its own batch; arXiv owns the offset.
            if source == PaperSource.ARXIV:
                call = adapter.search(
                    query,
                    max_results=per_source,
                    offset=offset,
                    category=category,
                    date_range=date_range,
                )
            else:
                call = adapter.search(
                    query,
                    max_results=per_source,
                    offset=offset if scope != SearchScope.BOTH else 0,
                    date_range=date_range,
                )
            tasks.append(self._bounded(call))

        results = await asyncio.gather(*tasks, return_exceptions=True)

        stats: dict[str, SourceStats] = {s.value: SourceStats() for s in PaperSource}
        by_source: dict[PaperSource, list[Paper]] = {s: [] for s in PaperSource}
        for source, result in zip(selected, results):
            if isinstance(result, BaseException):
                logger.warning("Source '%s' failed: %r", source.value, result)
                stats[source.value] = SourceStats(error=_describe(result))
                continue
            assert isinstance(result, SearchResult)
            by_source[source] = result.papers
            stats[source.value] = SourceStats(count=len(result.papers), total=result.total)

        papers = merge_papers(
            by_source[PaperSource.ARXIV], by_source[PaperSource.OPENREVIEW]
        )
        return AggregatedSearch(
            papers=papers,
            total=sum(s.total for s in stats.values()),
            sources=stats,
        )

    async def latest(
        self,
        scope: SearchScope = SearchScope.BOTH,
        category: str = DEFAULT_LATEST_CATEGORY,
        venue: str = DEFAULT_LATEST_VENUE,
        max_results: int = 10,
    ) -> list[Paper]:
        selected = self._selected(scope)
        per_source = (
            math.ceil(max_results / 2) if scope == SearchScope.BOTH else max_results
        )
        targets = {PaperSource.ARXIV: category, PaperSource.OPENREVIEW: venue}

        results = await asyncio.gather(
            *[
                self._bounded(self._sources[s].latest(targets[s], per_source))
                for s in selected
            ],
            return_exceptions=True,
        )

        by_source: dict[PaperSource, list[Paper]] = {s: [] for s in PaperSource}
        for source, result in zip(selected, results):
            if isinstance(result, BaseException):
                logger.warning("Latest from '%s' failed: %r", source.value, result)
                continue
            by_source[source] = result

        merged = merge_papers(
            by_source[PaperSource.ARXIV], by_source[PaperSource.OPENREVIEW]
        )
        return merged[:max_results]

    async def get_paper(
        self, identifier: str, source: PaperSource | None = None
    ) -> Paper | None:
        """Look up one paper. Any upstream failure is reported as not-found."""
        try:
            key = (
                PaperKey.parse(source, identifier)
                if source is not None
                else PaperKey.parse(identifier)
            )
        except InvalidRequestError:
            return None
        adapter = self._sources.get(key.source)
        if adapter is None:
            return None
        try:
            return await self._bounded(adapter.get_by_id(key.source_id))
        except (SourceError, asyncio.TimeoutError) as exc:
            logger.warning("Lookup of %s failed: %r", key, exc)
            return None


def _describe(exc: BaseException) -> str:
    if isinstance(exc, asyncio.TimeoutError):
        return "timed out"
    return str(exc) or exc.__class__.__name__
