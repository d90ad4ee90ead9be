"""Paper source adapter abstraction."""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from typing import Any

import httpx

from paper_portal.models import DateRange, Paper, PaperSource, SearchResult
from paper_portal.sources.exceptions import SourceUnavailableError

_WHITESPACE_RE = re.compile(r"\s+")


def normalize_whitespace(text: str | None) -> str:
    """Collapse runs of whitespace and trim."""
    if not text:
        return ""
    return _WHITESPACE_RE.sub(" ", text).strip()


class PaperSourceAdapter(ABC):
    """Abstract base class for paper sources.

    Each adapter translates the portal's search parameters into the
    source API's syntax and normalizes the response into Paper objects.
    Network failures surface as SourceUnavailableError; payloads that
    cannot be parsed surface as SourceResponseError.
    """

    default_base_url: str = ""

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        timeout_s: float = 10.0,
        base_url: str | None = None,
    ) -> None:
        self.timeout_s = timeout_s
        self.base_url = base_url or self.default_base_url
        self._client = client or httpx.AsyncClient()

    @property
    @abstractmethod
    def source(self) -> PaperSource:
        """Which PaperSource this adapter produces."""
        ...

    @abstractmethod
    async def search(
        self,
        query: str,
        max_results: int = 20,
        offset: int = 0,
        category: str | None = None,
        date_range: DateRange | None = None,
    ) -> SearchResult:
        """Free-text search returning one page plus the source's total."""
        ...

    @abstractmethod
    async def get_by_id(self, source_id: str) -> Paper | None:
        """Fetch a single paper, or None when the source does not know it."""
        ...

    @abstractmethod
    async def latest(self, category_or_venue: str, max_results: int = 10) -> list[Paper]:
        """Most recently submitted papers in a category or venue."""
        ...

    async def _get(
        self,
        url: str,
        params: dict[str, Any],
        timeout_s: float | None = None,
    ) -> httpx.Response:
        name = self.source.value
        try:
            response = await self._client.get(
                url,
                params=params,
                timeout=timeout_s if timeout_s is not None else self.timeout_s,
            )
        except httpx.TimeoutException as exc:
            raise SourceUnavailableError(f"{name} request timed out", name) from exc
        except httpx.RequestError as exc:
            raise SourceUnavailableError(f"{name} request failed: {exc}", name) from exc

        if response.status_code != 200:
            raise SourceUnavailableError(
                f"{name} request failed with HTTP {response.status_code}", name
            )
        return response

    async def aclose(self) -> None:
        await self._client.aclose()
