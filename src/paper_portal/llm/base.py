"""LLM provider abstraction base class."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, TypeVar

from paper_portal.llm.exceptions import LLMAuthError, LLMError, LLMModelsExhaustedError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class LLMProvider(ABC):
    """Abstract base class for LLM providers.

    Subclasses implement _call/_call_json for SDK-specific logic.
    Error handling and model fallback are centralized in complete/complete_json:
    candidate models are tried in order, the first success wins, and an
    authentication failure stops the sequence immediately.
    """

    _models: list[str] = []

    @abstractmethod
    async def _call(
        self, system_prompt: str, user_message: str, model: str | None
    ) -> str:
        """Provider-specific text completion (no error wrapping)."""
        ...

    @abstractmethod
    async def _call_json(
        self,
        system_prompt: str,
        user_message: str,
        model: str | None,
        schema: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Provider-specific JSON completion (no error wrapping)."""
        ...

    @abstractmethod
    def _error_map(self, exc: Exception) -> LLMError | None:
        """Map a provider SDK exception to our hierarchy.

        Return None if the exception is not from this provider's SDK.
        """
        ...

    @property
    def _provider_label(self) -> str:
        return self.__class__.__name__

    @property
    def models(self) -> list[str]:
        return list(self._models)

    def _wrap(self, exc: Exception) -> LLMError:
        if isinstance(exc, LLMError):
            return exc
        mapped = self._error_map(exc)
        if mapped is not None:
            return mapped
        return LLMError(f"Unexpected error from {self._provider_label}: {exc}")

    async def _with_fallback(
        self, fn: Callable[[str | None], Awaitable[T]]
    ) -> T:
        candidates: list[str | None] = list(self._models) or [None]
        failures: list[tuple[str, Exception]] = []

        for model in candidates:
            try:
                return await fn(model)
            except Exception as exc:
                error = self._wrap(exc)
                if isinstance(error, LLMAuthError):
                    raise error from exc
                logger.warning(
                    "%s model %s failed: %s", self._provider_label, model, error
                )
                if len(candidates) == 1:
                    if error is exc:
                        raise
                    raise error from exc
                failures.append((model or "default", error))

        raise LLMModelsExhaustedError(failures)

    async def complete(self, system_prompt: str, user_message: str) -> str:
        """Return a text completion with unified error handling."""
        return await self._with_fallback(
            lambda model: self._call(system_prompt, user_message, model)
        )

    async def complete_json(
        self,
        system_prompt: str,
        user_message: str,
        schema: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Return a structured JSON completion with unified error handling."""
        return await self._with_fallback(
            lambda model: self._call_json(system_prompt, user_message, model, schema)
        )
