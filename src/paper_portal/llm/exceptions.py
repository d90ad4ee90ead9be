"""LLM provider exceptions."""


class LLMError(Exception):
    """Base exception for LLM provider errors."""


class LLMAuthError(LLMError):
    """Authentication or authorization failure."""


class LLMRateLimitError(LLMError):
    """Rate limit exceeded."""


class LLMResponseError(LLMError):
    """Failed to parse or extract response from LLM output."""


class LLMModelsExhaustedError(LLMError):
    """Every candidate model failed; carries the per-model errors."""

    def __init__(self, failures: list[tuple[str, Exception]]) -> None:
        self.failures = failures
        details = "\n".join(f"- {model}: {exc}" for model, exc in failures)
        super().__init__(f"All models failed:\n{details}")
