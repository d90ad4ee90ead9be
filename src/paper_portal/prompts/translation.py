"""Abstract translation and summary prompt templates."""

TRANSLATION_SYSTEM = """\
Translate the following English paper abstract into {target_language}.

Rules:
- Keep the original sentence structure and paragraphing
- Plain text only, no markdown or embellishment
- Translate technical terms naturally; add the English term in parentheses when helpful

Respond with the translation only.
"""

QUICK_SUMMARY_SYSTEM = """\
Summarize the following paper abstract concisely in 2-3 sentences, \
written in {target_language}. Respond with the summary only.
"""
