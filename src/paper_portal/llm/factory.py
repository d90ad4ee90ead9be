"""LLM provider factory."""

from __future__ import annotations

from paper_portal.config import LLMConfig
from paper_portal.llm.base import LLMProvider


def create_provider(config: LLMConfig) -> LLMProvider:
    """Create an LLM provider from configuration."""
    if not config.api_key:
        raise ValueError(f"API key required for provider '{config.provider}'")
    if not config.models:
        raise ValueError(
            f"At least one model name required for provider '{config.provider}'"
        )

    match config.provider:
        case "openai":
            from paper_portal.llm.openai_provider import OpenAIProvider

            return OpenAIProvider(config)
        case "claude":
            from paper_portal.llm.claude_provider import ClaudeProvider

            return ClaudeProvider(config)
        case "gemini":
            from paper_portal.llm.gemini_provider import GeminiProvider

            return GeminiProvider(config)
        case _:
            raise ValueError(f"Unknown LLM provider: {config.provider}")


def create_optional_provider(config: LLMConfig | None) -> LLMProvider | None:
    """Like create_provider, but returns None when the config is incomplete."""
    if config is None or not config.api_key or not config.models:
        return None
    return create_provider(config)
