"""Export utilities for search results."""

from __future__ import annotations

from paper_portal.models import AggregatedSearch, Paper


def export_json(result: AggregatedSearch, indent: int = 2) -> str:
    """Serialize a search result to a JSON string."""
    return result.model_dump_json(indent=indent, by_alias=True)


def export_markdown(papers: AggregatedSearch | list[Paper]) -> str:
    """Generate Markdown table of papers."""
    if isinstance(papers, AggregatedSearch):
        papers = papers.papers

    header = "| # | Title | Authors | Published | Source | ID |"
    sep = "|---|-------|---------|-----------|--------|----|"
    rows = []
    for i, paper in enumerate(papers, 1):
        published = paper.published_at.date().isoformat() if paper.published_at else "-"
        rows.append(
            f"| {i} | {_escape_cell(paper.title)} | {_format_authors_short(paper.authors)} "
            f"| {published} | {paper.source.value} | {paper.source_id} |"
        )
    return "\n".join([header, sep] + rows)


# ---------------------------------------------------------------------------
# Private helpers
# ---------------------------------------------------------------------------

def _escape_cell(text: str) -> str:
    return text.replace("|", r"\|")


def _format_authors_short(authors: list[str]) -> str:
    """Format author list for Markdown display."""
    if not authors:
        return "-"
    if len(authors) <= 3:
        return _escape_cell(", ".join(authors))
    return _escape_cell(f"{authors[0]} et al.")
