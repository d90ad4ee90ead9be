"""Query enhancer skill: free-text query -> EnhancedQuery."""

from __future__ import annotations

import logging
import re
from datetime import date, timedelta
from typing import Any, Callable

from pydantic import ValidationError

from paper_portal.exceptions import InvalidRequestError
from paper_portal.llm.base import LLMProvider
from paper_portal.llm.exceptions import LLMError
from paper_portal.models import DateRange, EnhancedQuery
from paper_portal.prompts.query_enhancement import QUERY_ENHANCEMENT_SYSTEM

logger = logging.getLogger(__name__)

_ASCII_QUERY_RE = re.compile(r"^[a-zA-Z0-9\s\-_.,:;'\"!?()]+$")
_FAST_PATH_MAX_TOKENS = 5
_MIN_KEYWORD_LEN = 3

# Checked in order; the first matching phrase wins.
_RELATIVE_DATE_PATTERNS: list[tuple[str, re.Pattern[str]]] = [
    ("yesterday", re.compile(r"\byesterday\b|어제", re.IGNORECASE)),
    ("today", re.compile(r"\btoday\b|오늘", re.IGNORECASE)),
    ("this_month", re.compile(r"\bthis month\b|이번\s?달", re.IGNORECASE)),
    (
        "last_7_days",
        re.compile(r"\bthis week\b|\bpast week\b|\brecent\b|이번\s?주|최근", re.IGNORECASE),
    ),
]


def resolve_relative_date(query: str, today: date) -> DateRange | None:
    """Resolve a relative date expression in the query against ``today``."""
    for kind, pattern in _RELATIVE_DATE_PATTERNS:
        if not pattern.search(query):
            continue
        match kind:
            case "today":
                return DateRange.from_dates(today, today, "today")
            case "yesterday":
                day = today - timedelta(days=1)
                return DateRange.from_dates(day, day, "yesterday")
            case "this_month":
                return DateRange.from_dates(today.replace(day=1), today, "this month")
            case "last_7_days":
                return DateRange.from_dates(
                    today - timedelta(days=7), today, "last 7 days"
                )
    return None


def is_simple_query(query: str) -> bool:
    """Short plain-ASCII queries are searched as-is."""
    return bool(_ASCII_QUERY_RE.fullmatch(query)) and (
        len(query.split()) <= _FAST_PATH_MAX_TOKENS
    )


class QueryEnhancer:
    """Rewrite free-text queries into source-optimized search queries.

    Never fails the surrounding search: any LLM or parsing problem falls
    back to the identity transform.
    """

    def __init__(
        self,
        llm: LLMProvider | None,
        today: Callable[[], date] = date.today,
    ) -> None:
        self._llm = llm
        self._today = today

    @staticmethod
    def identity(query: str) -> EnhancedQuery:
        return EnhancedQuery(
            original_query=query,
            keywords=[query],
            search_query=query,
        )

    async def enhance(self, query: str, today: date | None = None) -> EnhancedQuery:
        if not query or not query.strip():
            raise InvalidRequestError("Search query is required")
        query = query.strip()

        if is_simple_query(query):
            return EnhancedQuery(
                original_query=query,
                keywords=[
                    w for w in query.lower().split() if len(w) >= _MIN_KEYWORD_LEN
                ],
                search_query=query,
            )

        if self._llm is None:
            logger.warning("No LLM configured for query enhancement; searching as-is")
            return self.identity(query)

        current = today or self._today()
        prompt = QUERY_ENHANCEMENT_SYSTEM.format(today=current.isoformat())
        try:
            result = await self._llm.complete_json(prompt, query)
        except LLMError as exc:
            logger.warning("Query enhancement failed, using original query: %s", exc)
            return self.identity(query)

        try:
            return self._from_llm(query, result, current)
        except (ValidationError, TypeError, ValueError) as exc:
            logger.warning("Query enhancement returned bad data, using original query: %s", exc)
            return self.identity(query)

    def _from_llm(self, query: str, result: dict[str, Any], today: date) -> EnhancedQuery:
        keywords = result.get("englishKeywords") or result.get("keywords")
        if not isinstance(keywords, list) or not keywords:
            keywords = [query]

        search_query = result.get("searchQuery")
        if not isinstance(search_query, str) or not search_query.strip():
            search_query = query

        category = result.get("suggestedCategory")
        if not isinstance(category, str) or category.strip().lower() in {"", "null", "none"}:
            category = None

        date_filter = resolve_relative_date(query, today)
        if date_filter is None and result.get("dateFilter"):
            try:
                date_filter = DateRange.model_validate(result["dateFilter"])
            except ValidationError as exc:
                logger.info("Dropping malformed dateFilter from LLM: %s", exc)

        return EnhancedQuery(
            original_query=query,
            keywords=[str(k) for k in keywords],
            search_query=search_query.strip(),
            suggested_category=category,
            date_filter=date_filter,
        )
