"""MCP server for paper-portal.

Exposes search, enrichment and bookmarks as MCP tools for LLM agent
integration. Paper identifiers accept ``arxiv:<id>``, ``openreview:<id>``
or a bare arXiv id. Every tool returns a JSON string; failures come back as
``{"error": "..."}`` instead of raising.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Awaitable

from mcp.server.fastmcp import FastMCP

from paper_portal.config import load_config
from paper_portal.exceptions import PortalError
from paper_portal.llm.exceptions import LLMError
from paper_portal.models import Paper, PaperKey
from paper_portal.portal import PaperPortal
from paper_portal.sources.exceptions import SourceError

logger = logging.getLogger(__name__)

_portal: PaperPortal | None = None
_portal_lock = asyncio.Lock()


async def _get_portal() -> PaperPortal:
    """Build the process-wide portal on first use."""
    global _portal
    async with _portal_lock:
        if _portal is None:
            portal = PaperPortal.from_config(load_config())
            await portal.init()
            _portal = portal
    return _portal


def _dump(value: Any) -> str:
    return json.dumps(value, indent=2, ensure_ascii=False, default=str)


def _error(message: str) -> str:
    return json.dumps({"error": message}, ensure_ascii=False)


async def _respond(call: Awaitable[Any]) -> str:
    """Await a tool body and serialize its result or its failure."""
    try:
        return _dump(await call)
    except (PortalError, LLMError, SourceError, ValueError) as e:
        logger.warning("Tool call failed: %s", e)
        return _error(str(e))
    except Exception as e:
        logger.exception("Unexpected tool failure")
        return _error(f"Unexpected error: {e}")


async def _require_paper(portal: PaperPortal, paper_id: str) -> Paper:
    paper = await portal.get_paper(paper_id)
    if paper is None:
        raise PortalError(f"Paper not found: {paper_id}")
    return paper


def _paper_dict(paper: Paper) -> dict[str, Any]:
    return paper.model_dump(mode="json")


# ---------------------------------------------------------------------------
# MCP Tools
# ---------------------------------------------------------------------------

mcp = FastMCP(
    "paper-portal",
    instructions=(
        "Research paper discovery over arXiv and OpenReview.\n"
        "\n"
        "1. search_papers(query) merges both sources; queries may be in any language\n"
        "2. get_paper(paper_id) fetches one paper; ids look like arxiv:2401.01234\n"
        "3. translate_abstract / analyze_paper / generate_infographic are cached per paper;\n"
        "   pass force_refresh=true only when the user asks to regenerate\n"
        "4. add_bookmark / list_bookmarks keep a reading list\n"
    ),
)


@mcp.tool()
async def search_papers(
    query: str,
    source: str = "both",
    max_results: int = 20,
    offset: int = 0,
    category: str | None = None,
    enhance: bool = True,
) -> str:
    """Search arXiv and/or OpenReview and return merged, de-duplicated results.

    Args:
        query: Free-text query (e.g., "recent diffusion model papers")
        source: "arxiv", "openreview" or "both"
        max_results: Maximum number of merged results
        offset: Pagination offset
        category: Optional arXiv category (e.g., "cs.LG")
        enhance: Rewrite the query with the LLM first
    """

    async def run() -> dict[str, Any]:
        portal = await _get_portal()
        result = await portal.search(
            query,
            scope=source,
            max_results=max_results,
            offset=offset,
            category=category,
            enhance=enhance,
        )
        return result.model_dump(mode="json", by_alias=True, exclude_none=True)

    return await _respond(run())


@mcp.tool()
async def get_paper(paper_id: str) -> str:
    """Fetch one paper by identifier (arxiv:<id>, openreview:<id> or bare arXiv id)."""

    async def run() -> dict[str, Any]:
        return _paper_dict(await _require_paper(await _get_portal(), paper_id))

    return await _respond(run())


@mcp.tool()
async def latest_papers(
    source: str = "both",
    category: str = "cs.AI",
    venue: str = "ICLR.cc",
    max_results: int = 10,
) -> str:
    """List the newest papers from an arXiv category and/or an OpenReview venue."""

    async def run() -> dict[str, Any]:
        portal = await _get_portal()
        papers = await portal.latest(
            source, category=category, venue=venue, max_results=max_results
        )
        return {"papers": [_paper_dict(p) for p in papers], "total": len(papers)}

    return await _respond(run())


@mcp.tool()
async def translate_abstract(paper_id: str, force_refresh: bool = False) -> str:
    """Translate a paper's abstract into the configured target language (cached)."""

    async def run() -> dict[str, Any]:
        portal = await _get_portal()
        paper = await _require_paper(portal, paper_id)
        result = await portal.translate(
            paper.abstract, key=paper.key, force_refresh=force_refresh
        )
        return result.model_dump()

    return await _respond(run())


@mcp.tool()
async def analyze_paper(paper_id: str, force_refresh: bool = False) -> str:
    """Structured analysis: summary, key points, methodology, contributions, limitations (cached)."""

    async def run() -> dict[str, Any]:
        portal = await _get_portal()
        paper = await _require_paper(portal, paper_id)
        result = await portal.analyze(
            paper.title, paper.abstract, key=paper.key, force_refresh=force_refresh
        )
        return result.model_dump(by_alias=True)

    return await _respond(run())


@mcp.tool()
async def quick_summary(paper_id: str) -> str:
    """Two or three sentence summary of a paper's abstract (not cached)."""

    async def run() -> dict[str, Any]:
        portal = await _get_portal()
        paper = await _require_paper(portal, paper_id)
        return {"summary": await portal.quick_summary(paper.abstract)}

    return await _respond(run())


@mcp.tool()
async def generate_infographic(paper_id: str, force_refresh: bool = False) -> str:
    """Generate a Mermaid mindmap of a paper (cached). Runs analysis first if needed."""

    async def run() -> dict[str, Any]:
        portal = await _get_portal()
        paper = await _require_paper(portal, paper_id)
        analysis = await portal.analyze(paper.title, paper.abstract, key=paper.key)
        result = await portal.generate_infographic(
            paper.title,
            analysis.analysis,
            key=paper.key,
            force_refresh=force_refresh,
        )
        return result.model_dump()

    return await _respond(run())


@mcp.tool()
async def get_infographic(paper_id: str) -> str:
    """Return a previously generated mindmap without calling the LLM."""

    async def run() -> dict[str, Any]:
        portal = await _get_portal()
        result = await portal.get_cached_infographic(PaperKey.parse(paper_id))
        if result is None:
            return {"diagram_code": None, "cached": False}
        return result.model_dump()

    return await _respond(run())


@mcp.tool()
async def similar_search_query(paper_id: str) -> str:
    """Suggest a keyword query that finds papers similar to the given one."""

    async def run() -> dict[str, Any]:
        portal = await _get_portal()
        paper = await _require_paper(portal, paper_id)
        query = await portal.similar_search_query(
            paper.title, paper.abstract, paper.categories
        )
        return {"query": query}

    return await _respond(run())


@mcp.tool()
async def compare_papers(paper_ids: list[str]) -> str:
    """Compare two or more papers: common themes, differences, connections, gaps."""

    async def run() -> dict[str, Any]:
        portal = await _get_portal()
        if len(paper_ids) < 2:
            raise PortalError("At least two paper ids are required")
        papers = await asyncio.gather(*[_require_paper(portal, pid) for pid in paper_ids])
        result = await portal.compare(papers)
        return result.model_dump(by_alias=True)

    return await _respond(run())


@mcp.tool()
async def add_bookmark(paper_id: str, ai_summary: str | None = None) -> str:
    """Bookmark a paper. Bookmarking the same paper twice returns the existing bookmark."""

    async def run() -> dict[str, Any]:
        portal = await _get_portal()
        paper = await _require_paper(portal, paper_id)
        bookmark = await portal.add_bookmark(paper, ai_summary=ai_summary)
        return bookmark.model_dump(mode="json")

    return await _respond(run())


@mcp.tool()
async def remove_bookmark(paper_id: str) -> str:
    """Remove a bookmark. Returns whether anything was removed."""

    async def run() -> dict[str, Any]:
        portal = await _get_portal()
        return {"removed": await portal.remove_bookmark(PaperKey.parse(paper_id))}

    return await _respond(run())


@mcp.tool()
async def list_bookmarks() -> str:
    """List bookmarks, newest first."""

    async def run() -> dict[str, Any]:
        portal = await _get_portal()
        bookmarks = await portal.list_bookmarks()
        return {
            "bookmarks": [b.model_dump(mode="json") for b in bookmarks],
            "total": len(bookmarks),
        }

    return await _respond(run())


@mcp.tool()
async def is_bookmarked(paper_id: str) -> str:
    """Check whether a paper is bookmarked."""

    async def run() -> dict[str, Any]:
        portal = await _get_portal()
        return {"bookmarked": await portal.is_bookmarked(PaperKey.parse(paper_id))}

    return await _respond(run())


def main() -> None:
    """Entry point for the MCP server."""
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
