"""arXiv paper source adapter (Atom feed API)."""

from __future__ import annotations

import logging
import re
from datetime import datetime
from typing import Any

import defusedxml.ElementTree as ET
from defusedxml import DefusedXmlException

from paper_portal.models import DateRange, Paper, PaperSource, SearchResult
from paper_portal.sources.base import PaperSourceAdapter, normalize_whitespace
from paper_portal.sources.exceptions import SourceResponseError

logger = logging.getLogger(__name__)

ARXIV_API_URL = "https://export.arxiv.org/api/query"

_NS = {
    "atom": "http://www.w3.org/2005/Atom",
    "arxiv": "http://arxiv.org/schemas/atom",
    "opensearch": "http://a9.com/-/spec/opensearch/1.1/",
}
_ID_RE = re.compile(r"abs/(.+?)(?:v\d+)?$")


def _parse_timestamp(text: str | None) -> datetime | None:
    if not text:
        return None
    try:
        return datetime.fromisoformat(text.strip().replace("Z", "+00:00"))
    except ValueError:
        return None


def _text(entry: Any, path: str) -> str:
    elem = entry.find(path, _NS)
    return elem.text if elem is not None and elem.text else ""


class ArxivSource(PaperSourceAdapter):
    """arXiv export API adapter."""

    default_base_url = ARXIV_API_URL

    @property
    def source(self) -> PaperSource:
        return PaperSource.ARXIV

    # ------------------------------------------------------------------
    # Parsing
    # ------------------------------------------------------------------

    @staticmethod
    def extract_id(id_url: str) -> str | None:
        """Pull the versionless arXiv id out of an entry id URL."""
        match = _ID_RE.search(id_url.strip())
        return match.group(1) if match else None

    @staticmethod
    def _parse_entry(entry: Any) -> Paper | None:
        """Parse a single Atom entry. Returns None for error/placeholder entries."""
        arxiv_id = ArxivSource.extract_id(_text(entry, "atom:id"))
        if not arxiv_id:
            return None

        pdf_url = ""
        for link in entry.findall("atom:link", _NS):
            if link.get("title") == "pdf" and link.get("href"):
                pdf_url = link.get("href")
                break
        if not pdf_url:
            pdf_url = f"https://arxiv.org/pdf/{arxiv_id}.pdf"

        categories: list[str] = []
        for cat in entry.findall("atom:category", _NS):
            term = cat.get("term")
            if term and term not in categories:
                categories.append(term)

        authors = [
            normalize_whitespace(name.text)
            for name in entry.findall("atom:author/atom:name", _NS)
            if name.text
        ]

        source_url = f"https://arxiv.org/abs/{arxiv_id}"
        return Paper(
            source=PaperSource.ARXIV,
            source_id=arxiv_id,
            source_url=source_url,
            title=normalize_whitespace(_text(entry, "atom:title")),
            abstract=normalize_whitespace(_text(entry, "atom:summary")),
            authors=authors,
            categories=categories,
            published_at=_parse_timestamp(_text(entry, "atom:published")),
            updated_at=_parse_timestamp(_text(entry, "atom:updated")),
            pdf_url=pdf_url,
            arxiv_id=arxiv_id,
        )

    @staticmethod
    def parse_feed(xml_text: str) -> tuple[list[Paper], int | None]:
        """Parse an Atom feed into (papers, totalResults)."""
        try:
            root = ET.fromstring(xml_text)
        except (ET.ParseError, DefusedXmlException) as exc:
            raise SourceResponseError(
                f"Unparseable arXiv feed: {exc}", PaperSource.ARXIV.value
            ) from exc

        papers = []
        for entry in root.findall("atom:entry", _NS):
            paper = ArxivSource._parse_entry(entry)
            if paper is not None:
                papers.append(paper)

        total: int | None = None
        total_text = _text(root, "opensearch:totalResults")
        if total_text.strip().isdigit():
            total = int(total_text.strip())
        return papers, total

    @staticmethod
    def build_query(
        query: str,
        category: str | None = None,
        date_range: DateRange | None = None,
    ) -> str:
        search_query = query
        if category:
            search_query = f"cat:{category} AND ({query})"
        if date_range:
            date_query = (
                f"submittedDate:[{date_range.start_date}0000 TO "
                f"{date_range.end_date}2359]"
            )
            search_query = f"{date_query} AND ({search_query})"
        return search_query

    async def _fetch(self, params: dict[str, Any]) -> tuple[list[Paper], int | None]:
        response = await self._get(self.base_url, params)
        return self.parse_feed(response.text)

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
        search_query = self.build_query(query, category, date_range)
        logger.info("arXiv search: %s", search_query)

        papers, total = await self._fetch(
            {
                "search_query": search_query,
                "start": offset,
                "max_results": max_results,
                "sortBy": "submittedDate",
                "sortOrder": "descending",
            }
        )

        # The API's submittedDate filter is not exact; re-check locally.
        if date_range:
            papers = [p for p in papers if date_range.contains(p.published_at)]
            return SearchResult(papers=papers, total=len(papers))

        return SearchResult(
            papers=papers,
            total=total if total is not None else len(papers),
        )

    async def get_by_id(self, source_id: str) -> Paper | None:
        papers, _ = await self._fetch({"id_list": source_id})
        return papers[0] if papers else None

    async def latest(self, category_or_venue: str, max_results: int = 10) -> list[Paper]:
        papers, _ = await self._fetch(
            {
                "search_query": f"cat:{category_or_venue}",
                "start": 0,
                "max_results": max_results,
                "sortBy": "submittedDate",
                "sortOrder": "descending",
            }
        )
        return papers
