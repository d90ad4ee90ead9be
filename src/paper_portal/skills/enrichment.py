"""Enrichment skill: LLM translation, analysis and diagrams behind a cache."""

from __future__ import annotations

import logging
import re
from typing import Sequence

from pydantic import ValidationError

from paper_portal.exceptions import InvalidRequestError
from paper_portal.llm.base import LLMProvider
from paper_portal.llm.exceptions import LLMResponseError
from paper_portal.llm.json_utils import strip_code_fences
from paper_portal.models import (
    AnalysisResult,
    CacheRecord,
    Infographic,
    Paper,
    PaperAnalysis,
    PaperComparison,
    PaperKey,
    Translation,
)
from paper_portal.prompts.analysis import ANALYSIS_SYSTEM
from paper_portal.prompts.comparison import COMPARISON_SYSTEM, SIMILAR_QUERY_SYSTEM
from paper_portal.prompts.translation import QUICK_SUMMARY_SYSTEM, TRANSLATION_SYSTEM
from paper_portal.prompts.visualization import MINDMAP_SYSTEM
from paper_portal.storage.cache_store import CacheStore
from paper_portal.storage.exceptions import StoreError

logger = logging.getLogger(__name__)

_SIMILAR_ABSTRACT_CHARS = 1000
_QUOTED_LEAF_RE = re.compile(r'^([ \t]+)\[?"(.+)"\]?[ \t]*$', re.MULTILINE)
_TRAILING_WS_RE = re.compile(r"[ \t]+$", re.MULTILINE)


def clean_mermaid(code: str) -> str:
    """Normalize LLM-produced mindmap code so Mermaid renders it.

    Drops code fences, unquotes leaf nodes, strips trailing whitespace and
    snaps indentation to multiples of two spaces. Root nodes sit at depth one.
    """
    code = strip_code_fences(code)
    code = _QUOTED_LEAF_RE.sub(r"\1\2", code)
    code = _TRAILING_WS_RE.sub("", code)

    lines = code.split("\n")
    normalized = lines[:1]
    for line in lines[1:]:
        stripped = line.strip()
        if stripped.startswith("root") or "((" in stripped:
            normalized.append("  " + stripped)
            continue
        indent = len(line) - len(line.lstrip())
        normalized.append(" " * (indent // 2 * 2) + stripped)
    return "\n".join(normalized).strip()


class EnrichmentService:
    """Coordinates LLM enrichment calls with the per-paper cache.

    Every cached kind follows read-before-compute: a stored value is returned
    with ``cached=True``; otherwise the LLM is called and the result written
    back. ``force_refresh`` skips the read but still writes. The cache is
    best-effort: a failed read is a miss and a failed write only logs.
    Concurrent misses for one paper may both compute; the last write wins.
    """

    def __init__(
        self,
        llm: LLMProvider,
        cache: CacheStore | None = None,
        target_language: str = "Korean",
    ) -> None:
        self._llm = llm
        self._cache = cache
        self._target_language = target_language

    # ------------------------------------------------------------------
    # Cache helpers
    # ------------------------------------------------------------------

    async def _cached(self, key: PaperKey | None) -> CacheRecord | None:
        if key is None or self._cache is None:
            return None
        try:
            return await self._cache.get(key)
        except StoreError as exc:
            logger.warning("Cache read for %s failed, treating as miss: %s", key, exc)
            return None

    async def _store(self, key: PaperKey | None, kind: str, value) -> None:
        if key is None or self._cache is None:
            return
        try:
            match kind:
                case "translation":
                    await self._cache.put_translation(key, value)
                case "analysis":
                    await self._cache.put_analysis(key, value)
                case "infographic":
                    await self._cache.put_infographic(key, value)
        except StoreError as exc:
            logger.warning("Cache write of %s for %s failed: %s", kind, key, exc)

    @staticmethod
    def _key(key: PaperKey | str | None) -> PaperKey | None:
        return PaperKey.parse(key) if key is not None else None

    def _prompt(self, template: str) -> str:
        return template.format(target_language=self._target_language)

    # ------------------------------------------------------------------
    # Cached enrichments
    # ------------------------------------------------------------------

    async def translate(
        self,
        text: str,
        key: PaperKey | str | None = None,
        force_refresh: bool = False,
    ) -> Translation:
        if not text or not text.strip():
            raise InvalidRequestError("Text to translate is required")
        key = self._key(key)

        if not force_refresh:
            record = await self._cached(key)
            if record is not None and record.translation:
                return Translation(translation=record.translation, cached=True)

        translation = await self._llm.complete(
            self._prompt(TRANSLATION_SYSTEM), text.strip()
        )
        if not translation:
            raise LLMResponseError("Empty translation from LLM")

        await self._store(key, "translation", translation)
        return Translation(translation=translation)

    async def analyze(
        self,
        title: str,
        abstract: str,
        key: PaperKey | str | None = None,
        force_refresh: bool = False,
    ) -> AnalysisResult:
        if not title or not title.strip() or not abstract or not abstract.strip():
            raise InvalidRequestError("Title and abstract are required")
        key = self._key(key)

        if not force_refresh:
            record = await self._cached(key)
            if record is not None and record.analysis is not None:
                return AnalysisResult(analysis=record.analysis, cached=True)

        raw = await self._llm.complete_json(
            self._prompt(ANALYSIS_SYSTEM),
            f"Title: {title.strip()}\n\nAbstract: {abstract.strip()}",
        )
        try:
            analysis = PaperAnalysis.model_validate(raw)
        except ValidationError as exc:
            raise LLMResponseError(f"Malformed paper analysis: {exc}") from exc

        await self._store(key, "analysis", analysis)
        return AnalysisResult(analysis=analysis)

    async def generate_infographic(
        self,
        title: str,
        analysis: PaperAnalysis,
        key: PaperKey | str | None = None,
        force_refresh: bool = False,
    ) -> Infographic:
        if not title or not title.strip() or not analysis.summary or not analysis.key_points:
            raise InvalidRequestError("Title, summary and key points are required")
        key = self._key(key)

        if not force_refresh:
            record = await self._cached(key)
            if record is not None and record.infographic:
                return Infographic(diagram_code=record.infographic, cached=True)

        key_points = "\n".join(f"- {point}" for point in analysis.key_points)
        message = (
            f"Title: {title.strip()}\n\n"
            f"Summary: {analysis.summary}\n\n"
            f"Key points:\n{key_points}\n\n"
            f"Methodology: {analysis.methodology or 'n/a'}"
        )
        diagram = clean_mermaid(
            await self._llm.complete(self._prompt(MINDMAP_SYSTEM), message)
        )
        if not diagram:
            raise LLMResponseError("Empty diagram from LLM")

        await self._store(key, "infographic", diagram)
        return Infographic(diagram_code=diagram)

    async def get_cached_infographic(self, key: PaperKey | str) -> Infographic | None:
        record = await self._cached(PaperKey.parse(key))
        if record is None or not record.infographic:
            return None
        return Infographic(diagram_code=record.infographic, cached=True)

    # ------------------------------------------------------------------
    # Uncached helpers
    # ------------------------------------------------------------------

    async def quick_summary(self, abstract: str) -> str:
        if not abstract or not abstract.strip():
            raise InvalidRequestError("Abstract is required")
        return await self._llm.complete(
            self._prompt(QUICK_SUMMARY_SYSTEM), abstract.strip()
        )

    async def similar_search_query(
        self,
        title: str,
        abstract: str = "",
        categories: Sequence[str] = (),
    ) -> str:
        """Build a short English keyword query for finding related papers."""
        if not title or not title.strip():
            raise InvalidRequestError("Title is required")
        message = f"Title: {title.strip()}"
        if abstract:
            message += f"\n\nAbstract: {abstract.strip()[:_SIMILAR_ABSTRACT_CHARS]}"
        if categories:
            message += f"\n\nCategories: {', '.join(categories)}"

        query = await self._llm.complete(SIMILAR_QUERY_SYSTEM, message)
        query = query.strip().strip('"').strip()
        return query or title.strip()

    async def compare(self, papers: Sequence[Paper]) -> PaperComparison:
        if len(papers) < 2:
            raise InvalidRequestError("At least two papers are required to compare")

        blocks = []
        for i, paper in enumerate(papers, start=1):
            blocks.append(
                f"Paper {i}: {paper.title}\n"
                f"Authors: {', '.join(paper.authors)}\n"
                f"Abstract: {paper.abstract}"
            )
        raw = await self._llm.complete_json(
            self._prompt(COMPARISON_SYSTEM), "\n\n".join(blocks)
        )
        try:
            return PaperComparison.model_validate(raw)
        except ValidationError as exc:
            raise LLMResponseError(f"Malformed paper comparison: {exc}") from exc
