"""Tests for QueryEnhancer skill (mocked LLM, no real API calls)."""

from __future__ import annotations

from datetime import date
from typing import Any

import pytest

from paper_portal.exceptions import InvalidRequestError
from paper_portal.llm.base import LLMProvider
from paper_portal.llm.exceptions import LLMError, LLMResponseError
from paper_portal.skills.query_enhancer import (
    QueryEnhancer,
    is_simple_query,
    resolve_relative_date,
)

TODAY = date(2026, 1, 25)


class MockLLMProvider(LLMProvider):
    """Mock LLM provider that returns a predefined JSON dict or raises."""

    def __init__(self, json_response: dict[str, Any] | Exception | None = None) -> None:
        self._response = json_response
        self.calls: list[tuple[str, str]] = []

    def _error_map(self, exc: Exception) -> None:
        return None

    async def _call(self, system_prompt: str, user_message: str, model: str | None) -> str:
        raise NotImplementedError

    async def _call_json(
        self,
        system_prompt: str,
        user_message: str,
        model: str | None,
        schema: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        self.calls.append((system_prompt, user_message))
        if isinstance(self._response, Exception):
            raise self._response
        if self._response is None:
            raise LLMResponseError("Empty response")
        return self._response


def _enhancer(llm: LLMProvider | None) -> QueryEnhancer:
    return QueryEnhancer(llm, today=lambda: TODAY)


class TestFastPath:
    @pytest.mark.asyncio
    async def test_short_ascii_query_skips_llm(self):
        llm = MockLLMProvider({"searchQuery": "should not be used"})
        result = await _enhancer(llm).enhance("Graph Neural Networks")

        assert llm.calls == []
        assert result.search_query == "Graph Neural Networks"
        assert result.keywords == ["graph", "neural", "networks"]
        assert result.date_filter is None

    @pytest.mark.asyncio
    async def test_short_tokens_dropped_from_keywords(self):
        result = await _enhancer(None).enhance("a GAN of it")
        assert result.keywords == ["gan"]

    def test_is_simple_query(self):
        assert is_simple_query("vision transformers: a survey")
        assert not is_simple_query("one two three four five six")
        assert not is_simple_query("트랜스포머")


class TestLLMPath:
    @pytest.mark.asyncio
    async def test_maps_llm_fields(self):
        llm = MockLLMProvider(
            {
                "englishKeywords": ["transformer", "attention"],
                "searchQuery": "transformer OR attention mechanism",
                "suggestedCategory": "cs.LG",
            }
        )
        result = await _enhancer(llm).enhance("트랜스포머 어텐션 메커니즘 논문")

        assert result.original_query == "트랜스포머 어텐션 메커니즘 논문"
        assert result.keywords == ["transformer", "attention"]
        assert result.search_query == "transformer OR attention mechanism"
        assert result.suggested_category == "cs.LG"
        assert result.date_filter is None

    @pytest.mark.asyncio
    async def test_prompt_carries_today(self):
        llm = MockLLMProvider({"searchQuery": "x"})
        await _enhancer(llm).enhance("트랜스포머 논문")
        system_prompt, user_message = llm.calls[0]
        assert "2026-01-25" in system_prompt
        assert user_message == "트랜스포머 논문"

    @pytest.mark.asyncio
    async def test_long_english_query_uses_llm(self):
        llm = MockLLMProvider({"searchQuery": "diffusion image generation"})
        result = await _enhancer(llm).enhance(
            "papers about diffusion models for image generation"
        )
        assert len(llm.calls) == 1
        assert result.search_query == "diffusion image generation"

    @pytest.mark.asyncio
    async def test_null_category_string(self):
        llm = MockLLMProvider({"searchQuery": "x", "suggestedCategory": "null"})
        result = await _enhancer(llm).enhance("강화학습 논문")
        assert result.suggested_category is None

    @pytest.mark.asyncio
    async def test_missing_fields_fall_back_to_query(self):
        llm = MockLLMProvider({"englishKeywords": "not-a-list"})
        result = await _enhancer(llm).enhance("강화학습 논문")
        assert result.keywords == ["강화학습 논문"]
        assert result.search_query == "강화학습 논문"

    @pytest.mark.asyncio
    async def test_valid_llm_date_filter_accepted(self):
        llm = MockLLMProvider(
            {
                "searchQuery": "image generation",
                "dateFilter": {"startDate": "20260120", "endDate": "20260121"},
            }
        )
        result = await _enhancer(llm).enhance("2026년 1월 20일 이미지 생성")
        assert result.date_filter.start_date == "20260120"
        assert result.date_filter.end_date == "20260121"

    @pytest.mark.asyncio
    async def test_malformed_llm_date_filter_dropped(self):
        llm = MockLLMProvider(
            {
                "searchQuery": "image generation",
                "dateFilter": {"startDate": "2026-01-20", "endDate": "tomorrow"},
            }
        )
        result = await _enhancer(llm).enhance("이미지 생성 논문")
        assert result.search_query == "image generation"
        assert result.date_filter is None

    @pytest.mark.asyncio
    async def test_relative_date_resolved_locally(self):
        llm = MockLLMProvider(
            {
                "searchQuery": "transformer",
                "dateFilter": {"startDate": "20200101", "endDate": "20200102"},
            }
        )
        result = await _enhancer(llm).enhance("최근 트랜스포머 논문")
        assert result.date_filter.start_date == "20260118"
        assert result.date_filter.end_date == "20260125"

    @pytest.mark.asyncio
    async def test_explicit_today_argument(self):
        llm = MockLLMProvider({"searchQuery": "llm"})
        result = await _enhancer(llm).enhance("오늘 나온 LLM 논문", today=date(2026, 3, 2))
        assert result.date_filter.start_date == "20260302"
        assert result.date_filter.end_date == "20260302"


class TestFallback:
    @pytest.mark.asyncio
    async def test_llm_failure_returns_identity(self):
        q = "딥러닝 이미지 분류"
        llm = MockLLMProvider(LLMError("provider down"))
        result = await _enhancer(llm).enhance(q)

        assert result.model_dump(by_alias=True, exclude_none=True) == {
            "originalQuery": q,
            "englishKeywords": [q],
            "searchQuery": q,
        }

    @pytest.mark.asyncio
    async def test_unparseable_llm_output_returns_identity(self):
        q = "그래프 신경망 논문"
        result = await _enhancer(MockLLMProvider(None)).enhance(q)
        assert result == QueryEnhancer.identity(q)

    @pytest.mark.asyncio
    async def test_no_llm_returns_identity(self):
        q = "그래프 신경망 논문"
        result = await _enhancer(None).enhance(q)
        assert result == QueryEnhancer.identity(q)

    @pytest.mark.asyncio
    async def test_blank_query_rejected(self):
        with pytest.raises(InvalidRequestError):
            await _enhancer(None).enhance("   ")


class TestResolveRelativeDate:
    def test_today(self):
        dr = resolve_relative_date("papers from today", TODAY)
        assert (dr.start_date, dr.end_date) == ("20260125", "20260125")

    def test_yesterday_korean(self):
        dr = resolve_relative_date("어제 나온 논문", TODAY)
        assert (dr.start_date, dr.end_date) == ("20260124", "20260124")

    def test_this_week(self):
        dr = resolve_relative_date("this week in NLP", TODAY)
        assert (dr.start_date, dr.end_date) == ("20260118", "20260125")

    def test_this_month(self):
        dr = resolve_relative_date("이번 달 강화학습", TODAY)
        assert (dr.start_date, dr.end_date) == ("20260101", "20260125")

    def test_no_expression(self):
        assert resolve_relative_date("graph neural networks", TODAY) is None
