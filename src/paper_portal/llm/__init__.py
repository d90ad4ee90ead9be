"""LLM provider abstraction layer."""

from paper_portal.llm.base import LLMProvider
from paper_portal.llm.exceptions import (
    LLMAuthError,
    LLMError,
    LLMModelsExhaustedError,
    LLMRateLimitError,
    LLMResponseError,
)
from paper_portal.llm.factory import create_optional_provider, create_provider

__all__ = [
    "LLMProvider",
    "create_provider",
    "create_optional_provider",
    "LLMError",
    "LLMAuthError",
    "LLMModelsExhaustedError",
    "LLMRateLimitError",
    "LLMResponseError",
]
