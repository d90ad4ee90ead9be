"""Dev CLI for paper-portal.

Usage: python -m paper_portal [--source arxiv|openreview|both]
                              [--max-results N] [--no-enhance] [--json] <query>
"""

from __future__ import annotations

import argparse
import asyncio
import sys

USAGE = (
    "Usage: python -m paper_portal [--source arxiv|openreview|both] "
    "[--max-results N] [--no-enhance] [--json] <query>"
)


def _parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="python -m paper_portal", add_help=True)
    parser.add_argument("query", nargs="*")
    parser.add_argument(
        "--source", choices=["arxiv", "openreview", "both"], default="both"
    )
    parser.add_argument("--max-results", type=int, default=None)
    parser.add_argument("--no-enhance", action="store_true")
    parser.add_argument("--json", action="store_true", help="Print JSON instead of a table")
    return parser


def main(argv: list[str] | None = None) -> None:
    args = _parser().parse_args(sys.argv[1:] if argv is None else argv)
    query = " ".join(args.query).strip()
    if not query:
        print(USAGE, file=sys.stderr)
        sys.exit(1)

    try:
        result = asyncio.run(
            _run(query, args.source, args.max_results, not args.no_enhance)
        )
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    from paper_portal import export_json, export_markdown

    print(export_json(result) if args.json else export_markdown(result))
    for name, stats in result.sources.items():
        if stats.error:
            print(f"warning: {name} failed: {stats.error}", file=sys.stderr)


async def _run(query: str, source: str, max_results: int | None, enhance: bool):
    from paper_portal import search
    from paper_portal.config import load_config

    return await search(
        query,
        config=load_config(),
        scope=source,
        max_results=max_results,
        enhance=enhance,
    )


if __name__ == "__main__":
    main()
