"""Tests for the OpenReview adapter."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from paper_portal.models import DateRange, PaperSource
from paper_portal.sources.exceptions import SourceResponseError, SourceUnavailableError
from paper_portal.sources.openreview import OpenReviewSource

FIXTURES_DIR = Path(__file__).parent.parent / "fixtures"


def _load_fixture() -> dict:
    return json.loads((FIXTURES_DIR / "openreview_notes.json").read_text(encoding="utf-8"))


def _mock_response(status_code: int = 200, json_data: dict | None = None) -> httpx.Response:
    resp = MagicMock(spec=httpx.Response)
    resp.status_code = status_code
    resp.json.return_value = json_data if json_data is not None else {}
    return resp


def _make_source(
    response=None, side_effect=None, venues: list[str] | None = None
) -> tuple[OpenReviewSource, MagicMock]:
    client = MagicMock(spec=httpx.AsyncClient)
    client.get = AsyncMock(return_value=response, side_effect=side_effect)
    source = OpenReviewSource(
        client=client, timeout_s=5.0, venues=venues or ["ICLR.cc/2024/Conference"]
    )
    return source, client


class TestParseNotes:
    def test_skips_untitled_notes(self):
        papers = OpenReviewSource.parse_notes(_load_fixture())
        assert [p.source_id for p in papers] == ["forumA", "note-b"]

    def test_normalizes_fields(self):
        paper = OpenReviewSource.parse_notes(_load_fixture())[0]
        assert paper.source == PaperSource.OPENREVIEW
        assert paper.title == "Sparse Attention for Graph Transformers"
        assert paper.authors == ["Dana Choi", "Eli Moon"]
        assert paper.source_url == "https://openreview.net/forum?id=forumA"
        assert paper.pdf_url == "https://openreview.net/pdf?id=forumA"
        assert paper.published_at.isoformat().startswith("2024-01-15")
        assert paper.updated_at > paper.published_at

    def test_categories(self):
        a, b = OpenReviewSource.parse_notes(_load_fixture())
        assert a.categories == ["ICLR 2024 poster", "ICLR.cc/2024/Conference", "Submission"]
        assert b.categories == ["OpenReview"]

    def test_missing_notes_is_empty(self):
        assert OpenReviewSource.parse_notes({}) == []

    def test_notes_not_a_list(self):
        with pytest.raises(SourceResponseError):
            OpenReviewSource.parse_notes({"notes": "oops"})


class TestSearch:
    @pytest.mark.asyncio
    async def test_filters_by_substring(self):
        source, client = _make_source(_mock_response(json_data=_load_fixture()))
        result = await source.search("SPARSE attention")

        assert [p.source_id for p in result.papers] == ["forumA"]
        assert result.total == 1
        params = client.get.call_args.kwargs["params"]
        assert params == {
            "content.venueid": "ICLR.cc/2024/Conference",
            "limit": 50,
            "sort": "cdate:desc",
        }
        assert client.get.call_args.kwargs["timeout"] == 3.0

    @pytest.mark.asyncio
    async def test_matches_abstract(self):
        source, _ = _make_source(_mock_response(json_data=_load_fixture()))
        result = await source.search("reward modeling")
        assert [p.source_id for p in result.papers] == ["note-b"]

    @pytest.mark.asyncio
    async def test_newest_first_and_paginated(self):
        source, _ = _make_source(_mock_response(json_data=_load_fixture()))
        result = await source.search("a", max_results=1, offset=1)

        assert result.total == 2
        assert [p.source_id for p in result.papers] == ["note-b"]

    @pytest.mark.asyncio
    async def test_date_range(self):
        source, _ = _make_source(_mock_response(json_data=_load_fixture()))
        dr = DateRange(start_date="20240101", end_date="20240101")
        result = await source.search("a", date_range=dr)
        assert [p.source_id for p in result.papers] == ["note-b"]

    @pytest.mark.asyncio
    async def test_polls_every_venue(self):
        source, client = _make_source(
            _mock_response(json_data={"notes": []}), venues=["V1", "V2", "V3"]
        )
        await source.search("anything")
        venues = sorted(c.kwargs["params"]["content.venueid"] for c in client.get.call_args_list)
        assert venues == ["V1", "V2", "V3"]

    @pytest.mark.asyncio
    async def test_one_venue_failing_is_tolerated(self):
        source, _ = _make_source(
            side_effect=[
                httpx.ReadTimeout("slow"),
                _mock_response(json_data=_load_fixture()),
            ],
            venues=["V1", "V2"],
        )
        result = await source.search("sparse")
        assert [p.source_id for p in result.papers] == ["forumA"]

    @pytest.mark.asyncio
    async def test_all_venues_failing_raises(self):
        source, _ = _make_source(
            side_effect=httpx.ConnectError("refused"), venues=["V1", "V2"]
        )
        with pytest.raises(SourceUnavailableError):
            await source.search("sparse")

    @pytest.mark.asyncio
    async def test_unparseable_body(self):
        resp = _mock_response()
        resp.json.side_effect = ValueError("not json")
        source, _ = _make_source(resp)
        with pytest.raises(SourceResponseError):
            await source.get_by_id("forumA")


class TestLookup:
    @pytest.mark.asyncio
    async def test_get_by_id(self):
        source, client = _make_source(_mock_response(json_data=_load_fixture()))
        paper = await source.get_by_id("forumA")

        assert paper is not None and paper.source_id == "forumA"
        assert client.get.call_args.kwargs["params"] == {"id": "forumA"}

    @pytest.mark.asyncio
    async def test_get_by_id_missing(self):
        source, _ = _make_source(_mock_response(json_data={"notes": []}))
        assert await source.get_by_id("nope") is None

    @pytest.mark.asyncio
    async def test_latest_uses_venue(self):
        source, client = _make_source(_mock_response(json_data=_load_fixture()))
        papers = await source.latest("NeurIPS.cc", max_results=4)

        assert len(papers) == 2
        assert client.get.call_args.kwargs["params"] == {
            "content.venueid": "NeurIPS.cc",
            "limit": 4,
            "sort": "cdate:desc",
        }
