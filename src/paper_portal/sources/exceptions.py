"""Exceptions for paper source adapters."""


class SourceError(Exception):
    """Base exception for all paper source errors."""

    def __init__(self, message: str, source: str | None = None) -> None:
        super().__init__(message)
        self.source = source


class SourceUnavailableError(SourceError):
    """Upstream timed out, was unreachable, or returned a non-success status."""


class SourceResponseError(SourceError):
    """Upstream payload could not be parsed."""
