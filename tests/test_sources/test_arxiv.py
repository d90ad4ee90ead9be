"""Tests for the arXiv adapter."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from paper_portal.models import DateRange, PaperSource
from paper_portal.sources.arxiv import ArxivSource
from paper_portal.sources.exceptions import SourceResponseError, SourceUnavailableError

FIXTURES_DIR = Path(__file__).parent.parent / "fixtures"


def _load_feed() -> str:
    return (FIXTURES_DIR / "arxiv_feed.xml").read_text(encoding="utf-8")


def _mock_response(status_code: int = 200, text: str = "") -> httpx.Response:
    resp = MagicMock(spec=httpx.Response)
    resp.status_code = status_code
    resp.text = text
    return resp


def _make_source(response=None, side_effect=None) -> tuple[ArxivSource, MagicMock]:
    client = MagicMock(spec=httpx.AsyncClient)
    client.get = AsyncMock(return_value=response, side_effect=side_effect)
    return ArxivSource(client=client, timeout_s=5.0), client


class TestParseFeed:
    def test_parses_entries_and_total(self):
        papers, total = ArxivSource.parse_feed(_load_feed())
        assert total == 120
        assert [p.source_id for p in papers] == ["2401.01234", "2401.00999"]

    def test_normalizes_fields(self):
        papers, _ = ArxivSource.parse_feed(_load_feed())
        paper = papers[0]
        assert paper.source == PaperSource.ARXIV
        assert paper.title == "Efficient Transformers for Long Documents"
        assert paper.abstract == "We study attention mechanisms for long inputs."
        assert paper.authors == ["Alice Kim", "Bob Lee"]
        assert paper.categories == ["cs.CL", "cs.LG"]
        assert paper.source_url == "https://arxiv.org/abs/2401.01234"
        assert paper.pdf_url == "http://arxiv.org/pdf/2401.01234v2"
        assert paper.arxiv_id == "2401.01234"
        assert paper.published_at.year == 2024

    def test_pdf_url_fallback(self):
        papers, _ = ArxivSource.parse_feed(_load_feed())
        assert papers[1].pdf_url == "https://arxiv.org/pdf/2401.00999.pdf"

    def test_invalid_xml(self):
        with pytest.raises(SourceResponseError):
            ArxivSource.parse_feed("<feed><entry>")


class TestExtractId:
    def test_strips_version(self):
        assert ArxivSource.extract_id("http://arxiv.org/abs/2401.01234v3") == "2401.01234"

    def test_old_style_id(self):
        assert ArxivSource.extract_id("http://arxiv.org/abs/hep-th/9901001v1") == "hep-th/9901001"

    def test_not_an_abs_url(self):
        assert ArxivSource.extract_id("http://arxiv.org/api/errors#bad") is None


class TestBuildQuery:
    def test_plain(self):
        assert ArxivSource.build_query("transformer") == "transformer"

    def test_category(self):
        assert ArxivSource.build_query("transformer", "cs.LG") == "cat:cs.LG AND (transformer)"

    def test_category_and_date(self):
        dr = DateRange(start_date="20240101", end_date="20240107")
        assert ArxivSource.build_query("transformer", "cs.LG", dr) == (
            "submittedDate:[202401010000 TO 202401072359] AND "
            "(cat:cs.LG AND (transformer))"
        )


class TestSearch:
    @pytest.mark.asyncio
    async def test_search_params(self):
        source, client = _make_source(_mock_response(text=_load_feed()))
        result = await source.search("transformer", max_results=10, offset=20)

        assert result.total == 120
        assert len(result.papers) == 2
        params = client.get.call_args.kwargs["params"]
        assert params["search_query"] == "transformer"
        assert params["start"] == 20
        assert params["max_results"] == 10
        assert params["sortBy"] == "submittedDate"
        assert params["sortOrder"] == "descending"
        assert client.get.call_args.kwargs["timeout"] == 5.0

    @pytest.mark.asyncio
    async def test_date_range_filters_locally(self):
        source, _ = _make_source(_mock_response(text=_load_feed()))
        dr = DateRange(start_date="20240115", end_date="20240115")
        result = await source.search("transformer", date_range=dr)

        assert [p.source_id for p in result.papers] == ["2401.01234"]
        assert result.total == 1

    @pytest.mark.asyncio
    async def test_http_error(self):
        source, _ = _make_source(_mock_response(status_code=503))
        with pytest.raises(SourceUnavailableError, match="503"):
            await source.search("transformer")

    @pytest.mark.asyncio
    async def test_timeout(self):
        source, _ = _make_source(side_effect=httpx.ReadTimeout("slow"))
        with pytest.raises(SourceUnavailableError, match="timed out"):
            await source.search("transformer")

    @pytest.mark.asyncio
    async def test_network_error(self):
        source, _ = _make_source(side_effect=httpx.ConnectError("refused"))
        with pytest.raises(SourceUnavailableError):
            await source.search("transformer")


class TestLookup:
    @pytest.mark.asyncio
    async def test_get_by_id(self):
        source, client = _make_source(_mock_response(text=_load_feed()))
        paper = await source.get_by_id("2401.01234")

        assert paper is not None
        assert paper.source_id == "2401.01234"
        assert client.get.call_args.kwargs["params"] == {"id_list": "2401.01234"}

    @pytest.mark.asyncio
    async def test_get_by_id_missing(self):
        empty = (
            '<feed xmlns="http://www.w3.org/2005/Atom" '
            'xmlns:opensearch="http://a9.com/-/spec/opensearch/1.1/">'
            "<opensearch:totalResults>0</opensearch:totalResults></feed>"
        )
        source, _ = _make_source(_mock_response(text=empty))
        assert await source.get_by_id("0000.00000") is None

    @pytest.mark.asyncio
    async def test_latest_uses_category(self):
        source, client = _make_source(_mock_response(text=_load_feed()))
        papers = await source.latest("cs.AI", max_results=5)

        assert len(papers) == 2
        params = client.get.call_args.kwargs["params"]
        assert params["search_query"] == "cat:cs.AI"
        assert params["max_results"] == 5
