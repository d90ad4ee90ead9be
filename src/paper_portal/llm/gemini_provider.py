"""Google Gemini LLM provider."""

from __future__ import annotations

from typing import Any

from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from paper_portal.config import LLMConfig
from paper_portal.llm.base import LLMProvider
from paper_portal.llm.exceptions import LLMAuthError, LLMError, LLMRateLimitError
from paper_portal.llm.json_utils import extract_json


class GeminiProvider(LLMProvider):
    """Google Gemini API provider."""

    def __init__(self, config: LLMConfig) -> None:
        http_options: dict[str, Any] = {"timeout": int(config.timeout_s * 1000)}
        if config.base_url:
            http_options["base_url"] = config.base_url
        self._client = genai.Client(
            api_key=config.api_key,
            http_options=types.HttpOptions(**http_options),
        )
        self._models = list(config.models)
        self._temperature = config.temperature
        self._max_tokens = config.max_tokens

    def _error_map(self, exc: Exception) -> LLMError | None:
        if isinstance(exc, genai_errors.ClientError):
            if exc.code in (401, 403):
                return LLMAuthError(str(exc))
            if exc.code == 429:
                return LLMRateLimitError(str(exc))
            return LLMError(str(exc))
        if isinstance(exc, genai_errors.APIError):
            return LLMError(str(exc))
        return None

    async def _call(
        self, system_prompt: str, user_message: str, model: str | None
    ) -> str:
        response = await self._client.aio.models.generate_content(
            model=model or "",
            contents=user_message,
            config=types.GenerateContentConfig(
                system_instruction=system_prompt,
                temperature=self._temperature,
                max_output_tokens=self._max_tokens,
            ),
        )
        return (response.text or "").strip()

    async def _call_json(
        self,
        system_prompt: str,
        user_message: str,
        model: str | None,
        schema: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        config = types.GenerateContentConfig(
            system_instruction=system_prompt,
            temperature=self._temperature,
            max_output_tokens=self._max_tokens,
            response_mime_type="application/json",
        )
        if schema is not None:
            config.response_schema = schema

        response = await self._client.aio.models.generate_content(
            model=model or "",
            contents=user_message,
            config=config,
        )
        return extract_json(response.text or "")
