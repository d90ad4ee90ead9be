"""paper-portal: multi-source research paper discovery with LLM enrichment."""

from __future__ import annotations

from typing import TYPE_CHECKING

from paper_portal.export import export_json, export_markdown
from paper_portal.models import (
    AggregatedSearch,
    Bookmark,
    EnhancedQuery,
    Paper,
    PaperKey,
    PaperSource,
    SearchScope,
)
from paper_portal.portal import PaperPortal

if TYPE_CHECKING:
    from paper_portal.config import AppConfig


async def search(
    query: str,
    config: AppConfig | None = None,
    scope: SearchScope | str = SearchScope.BOTH,
    max_results: int | None = None,
    enhance: bool = True,
) -> AggregatedSearch:
    """One-line convenience: enhance the query and search every enabled source.

    Args:
        query: Free-text search query, in any language.
        config: Optional AppConfig. If None, loads from environment.
        scope: "arxiv", "openreview" or "both".
        max_results: Maximum merged results; defaults to the configured value.
        enhance: Rewrite the query with the LLM before searching.
    """
    from paper_portal.config import load_config

    cfg = config or load_config()
    async with PaperPortal.from_config(cfg) as portal:
        return await portal.search(
            query, scope=scope, max_results=max_results, enhance=enhance
        )


__all__ = [
    "AggregatedSearch",
    "Bookmark",
    "EnhancedQuery",
    "Paper",
    "PaperKey",
    "PaperPortal",
    "PaperSource",
    "SearchScope",
    "search",
    "export_json",
    "export_markdown",
]
