"""Utilities for cleaning LLM response text and extracting JSON from it."""

from __future__ import annotations

import json
import re
from typing import Any

from paper_portal.llm.exceptions import LLMResponseError

_MARKDOWN_FENCE_RE = re.compile(r"```[a-zA-Z]*\s*\n?(.*?)\n?\s*```", re.DOTALL)
_FENCE_MARKER_RE = re.compile(r"```[a-zA-Z]*\n?")


def strip_code_fences(text: str) -> str:
    """Remove markdown code-fence markers (```json, ```mermaid, ```) from text."""
    return _FENCE_MARKER_RE.sub("", text or "").strip()


def _loads_object(text: str) -> dict[str, Any] | None:
    try:
        result = json.loads(text)
    except (json.JSONDecodeError, ValueError):
        return None
    return result if isinstance(result, dict) else None


def extract_json(text: str) -> dict[str, Any]:
    """Extract a JSON object from LLM response text.

    Tries the stripped text, then the body of the first markdown fence,
    then the outermost ``{...}`` span. Raises ``LLMResponseError`` with the
    head of the raw text when none of them parse to an object.
    """
    if not text or not text.strip():
        raise LLMResponseError("Empty LLM response")

    stripped = text.strip()
    candidates = [stripped]

    match = _MARKDOWN_FENCE_RE.search(stripped)
    if match:
        candidates.append(match.group(1).strip())

    first_brace = stripped.find("{")
    last_brace = stripped.rfind("}")
    if first_brace != -1 and last_brace > first_brace:
        candidates.append(stripped[first_brace : last_brace + 1])

    for candidate in candidates:
        result = _loads_object(candidate)
        if result is not None:
            return result

    raise LLMResponseError(
        f"Failed to extract JSON from LLM response: {text[:200]}"
    )
