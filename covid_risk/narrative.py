"""Prompt construction and output cleanup for the hosted narrative model.

The model call itself lives in the Dagster resource; everything here is pure.
"""

from __future__ import annotations

import re

SYSTEM_PROMPT = """You are a senior public-health strategist advising state health departments.
You receive a daily list of US states flagged by automated COVID-19 risk rules.

Think through the data step by step before writing:
1. Identify which states carry more than one risk flag and rank them by severity.
2. Compare cases per million across states rather than raw case counts.
3. Separate outbreak momentum (rising cases) from testing strain (high positivity)
   and from vaccination gaps (stalled uptake).

Then write the briefing:
- An executive summary of two or three sentences.
- A section per flagged state with the situation and one concrete recommended action.
- A closing list of the top three priorities for the next 48 hours.

Use only the facts in the data. Do not invent numbers.
Respond with an HTML fragment only (h2, h3, p, ul, li, strong). No markdown, no <html> or <body> tags."""

USER_PROMPT_TEMPLATE = """Daily COVID-19 risk data:

{full_report}

Write the strategic briefing now."""

_LEADING_FENCE = re.compile(r"^\s*```[ \t]*(?:html)?(?![ \t]*[\w+.-])[ \t]*\r?\n?", re.IGNORECASE)
_TRAILING_FENCE = re.compile(r"\r?\n?[ \t]*```\s*$")


def build_messages(full_report: str) -> list[dict[str, str]]:
    """Chat messages for a single briefing request."""
    return [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "user", "content": USER_PROMPT_TEMPLATE.format(full_report=full_report)},
    ]


def strip_code_fences(text: str) -> str:
    """Drop a markdown fence wrapped around model output.

    Only a leading ``` / ```html marker and a trailing ``` marker are removed.
    A fence tagged with any other language, and anything else, is returned
    unchanged; the HTML itself is not validated.
    """
    if "```" not in text:
        return text
    if text.lstrip().startswith("```") and not _LEADING_FENCE.match(text):
        # fenced with some other language tag
        return text
    cleaned = _LEADING_FENCE.sub("", text, count=1)
    cleaned = _TRAILING_FENCE.sub("", cleaned, count=1)
    return cleaned.strip() if cleaned != text else text
