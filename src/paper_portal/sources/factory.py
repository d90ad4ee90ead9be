"""Paper source factory."""

from __future__ import annotations

import httpx

from paper_portal.config import SourceConfig
from paper_portal.models import PaperSource
from paper_portal.sources.base import PaperSourceAdapter


def create_source(
    config: SourceConfig, client: httpx.AsyncClient | None = None
) -> PaperSourceAdapter:
    """Create a paper source adapter from configuration."""
    match config.name:
        case "arxiv":
            from paper_portal.sources.arxiv import ArxivSource

            return ArxivSource(
                client=client,
                timeout_s=config.timeout_s,
                base_url=config.base_url,
            )
        case "openreview":
            from paper_portal.sources.openreview import OpenReviewSource

            return OpenReviewSource(
                client=client,
                timeout_s=config.timeout_s,
                base_url=config.base_url,
                venues=config.venues or None,
                venue_timeout_s=config.venue_timeout_s,
            )
        case _:
            raise ValueError(f"Unknown paper source: {config.name}")


def create_sources(
    configs: dict[str, SourceConfig],
    client: httpx.AsyncClient | None = None,
) -> dict[PaperSource, PaperSourceAdapter]:
    """Build every enabled adapter, keyed by the source it produces."""
    adapters: dict[PaperSource, PaperSourceAdapter] = {}
    for config in configs.values():
        if not config.enabled:
            continue
        adapter = create_source(config, client=client)
        adapters[adapter.source] = adapter
    return adapters
