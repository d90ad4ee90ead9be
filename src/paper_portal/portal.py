"""PaperPortal: wires sources, query enhancement, enrichment and storage."""

from __future__ import annotations

import logging
import time
from typing import Sequence

import httpx

from paper_portal.config import AppConfig
from paper_portal.exceptions import InvalidRequestError, PortalError
from paper_portal.models import (
    AggregatedSearch,
    AnalysisResult,
    Bookmark,
    Infographic,
    Paper,
    PaperAnalysis,
    PaperComparison,
    PaperKey,
    PaperSource,
    SearchScope,
    Translation,
)
from paper_portal.skills.aggregator import (
    DEFAULT_LATEST_CATEGORY,
    DEFAULT_LATEST_VENUE,
    SearchAggregator,
)
from paper_portal.skills.enrichment import EnrichmentService
from paper_portal.skills.query_enhancer import QueryEnhancer
from paper_portal.storage.bookmark_store import BookmarkStore
from paper_portal.storage.cache_store import CacheStore
from paper_portal.storage.database import Database

logger = logging.getLogger(__name__)


class PaperPortal:
    """Single entry point for search, enrichment and bookmarks.

    Use as an async context manager so the shared HTTP client and the
    database engine are released:

        async with PaperPortal.from_config(load_config()) as portal:
            result = await portal.search("diffusion models")
    """

    def __init__(
        self,
        aggregator: SearchAggregator,
        enhancer: QueryEnhancer,
        enrichment: EnrichmentService | None = None,
        bookmarks: BookmarkStore | None = None,
        db: Database | None = None,
        http_client: httpx.AsyncClient | None = None,
        default_max_results: int = 20,
    ) -> None:
        self.aggregator = aggregator
        self.enhancer = enhancer
        self.enrichment = enrichment
        self.bookmarks = bookmarks
        self._db = db
        self._http_client = http_client
        self._default_max_results = default_max_results

    @classmethod
    def from_config(
        cls,
        config: AppConfig,
        http_client: httpx.AsyncClient | None = None,
    ) -> PaperPortal:
        from paper_portal.llm import create_optional_provider
        from paper_portal.sources.factory import create_sources

        # One pooled client shared by every adapter; closed with the portal.
        owned_client = http_client is None
        client = http_client or httpx.AsyncClient(follow_redirects=True)

        llm = create_optional_provider(config.llm)
        enhancer_llm = create_optional_provider(config.enhancer_llm) or llm

        db = Database(
            config.database.url,
            echo=config.database.echo,
            timeout_s=config.database.timeout_s,
        )
        cache = CacheStore(db)

        enrichment = None
        if llm is not None:
            enrichment = EnrichmentService(
                llm, cache=cache, target_language=config.target_language
            )
        else:
            logger.warning("No LLM configured; enrichment is disabled")

        return cls(
            aggregator=SearchAggregator(
                create_sources(config.sources, client=client),
                timeout_s=config.search_timeout_s,
            ),
            enhancer=QueryEnhancer(enhancer_llm),
            enrichment=enrichment,
            bookmarks=BookmarkStore(db),
            db=db,
            http_client=client if owned_client else None,
            default_max_results=config.default_max_results,
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def init(self) -> None:
        if self._db is not None:
            await self._db.init()

    async def aclose(self) -> None:
        if self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None
        if self._db is not None:
            await self._db.dispose()

    async def __aenter__(self) -> PaperPortal:
        await self.init()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    async def search(
        self,
        query: str,
        scope: SearchScope | str = SearchScope.BOTH,
        max_results: int | None = None,
        offset: int = 0,
        category: str | None = None,
        enhance: bool = True,
    ) -> AggregatedSearch:
        """Enhance the query, fan out to the sources and merge the results.

        An explicit ``category`` wins over the enhancer's suggestion.
        """
        if not query or not query.strip():
            raise InvalidRequestError("Search query is required")
        scope = SearchScope(scope)
        max_results = max_results or self._default_max_results

        start = time.monotonic()
        if enhance:
            enhanced = await self.enhancer.enhance(query)
        else:
            enhanced = QueryEnhancer.identity(query.strip())

        result = await self.aggregator.search(
            enhanced.search_query,
            scope=scope,
            max_results=max_results,
            offset=offset,
            category=category or enhanced.suggested_category,
            date_range=enhanced.date_filter,
        )
        result.enhanced = enhanced if enhance else None
        logger.info(
            "Search %r (%s) -> %d papers in %.2fs",
            enhanced.search_query,
            scope.value,
            len(result.papers),
            time.monotonic() - start,
        )
        return result

    async def get_paper(
        self, identifier: str, source: PaperSource | str | None = None
    ) -> Paper | None:
        if not identifier or not identifier.strip():
            raise InvalidRequestError("Paper identifier is required")
        return await self.aggregator.get_paper(
            identifier, PaperSource(source) if source else None
        )

    async def latest(
        self,
        scope: SearchScope | str = SearchScope.BOTH,
        category: str = DEFAULT_LATEST_CATEGORY,
        venue: str = DEFAULT_LATEST_VENUE,
        max_results: int = 10,
    ) -> list[Paper]:
        return await self.aggregator.latest(
            SearchScope(scope), category=category, venue=venue, max_results=max_results
        )

    # ------------------------------------------------------------------
    # Enrichment
    # ------------------------------------------------------------------

    def _require_enrichment(self) -> EnrichmentService:
        if self.enrichment is None:
            raise PortalError("Enrichment requires an LLM; set LLM_PROVIDER and an API key")
        return self.enrichment

    async def translate(
        self,
        text: str,
        key: PaperKey | str | None = None,
        force_refresh: bool = False,
    ) -> Translation:
        return await self._require_enrichment().translate(
            text, key=key, force_refresh=force_refresh
        )

    async def analyze(
        self,
        title: str,
        abstract: str,
        key: PaperKey | str | None = None,
        force_refresh: bool = False,
    ) -> AnalysisResult:
        return await self._require_enrichment().analyze(
            title, abstract, key=key, force_refresh=force_refresh
        )

    async def generate_infographic(
        self,
        title: str,
        analysis: PaperAnalysis,
        key: PaperKey | str | None = None,
        force_refresh: bool = False,
    ) -> Infographic:
        return await self._require_enrichment().generate_infographic(
            title, analysis, key=key, force_refresh=force_refresh
        )

    async def get_cached_infographic(self, key: PaperKey | str) -> Infographic | None:
        return await self._require_enrichment().get_cached_infographic(key)

    async def quick_summary(self, abstract: str) -> str:
        return await self._require_enrichment().quick_summary(abstract)

    async def similar_search_query(
        self, title: str, abstract: str = "", categories: Sequence[str] = ()
    ) -> str:
        return await self._require_enrichment().similar_search_query(
            title, abstract, categories
        )

    async def compare(self, papers: Sequence[Paper]) -> PaperComparison:
        return await self._require_enrichment().compare(papers)

    # ------------------------------------------------------------------
    # Bookmarks
    # ------------------------------------------------------------------

    def _require_bookmarks(self) -> BookmarkStore:
        if self.bookmarks is None:
            raise PortalError("Bookmarks require a database")
        return self.bookmarks

    async def add_bookmark(self, paper: Paper, ai_summary: str | None = None) -> Bookmark:
        return await self._require_bookmarks().add(paper, ai_summary=ai_summary)

    async def remove_bookmark(self, key: PaperKey | str) -> bool:
        return await self._require_bookmarks().remove(key)

    async def list_bookmarks(self) -> list[Bookmark]:
        return await self._require_bookmarks().list()

    async def is_bookmarked(self, key: PaperKey | str) -> bool:
        return await self._require_bookmarks().exists(key)

    async def get_bookmark(self, key: PaperKey | str) -> Bookmark | None:
        return await self._require_bookmarks().get(key)

    async def update_bookmark_summary(self, key: PaperKey | str, summary: str) -> bool:
        return await self._require_bookmarks().update_ai_summary(key, summary)
