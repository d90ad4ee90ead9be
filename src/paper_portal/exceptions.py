"""Request-level exceptions shared across the portal."""


class PortalError(Exception):
    """Base exception for paper-portal errors."""


class InvalidRequestError(PortalError, ValueError):
    """Required input is missing or malformed; rejected before any I/O."""
