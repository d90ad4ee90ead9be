"""Persistence exceptions."""

from paper_portal.exceptions import PortalError


class StoreError(PortalError):
    """The backing database rejected or failed a read or write."""
