"""
Parse free-text LLM output into a clean list of search queries.

The planner prompts ask for one query per line, but models still number
or bullet their output now and then. Markers are stripped in this order:
numeric ("1.", "1)"), then bullets ("-", "*").
"""

from __future__ import annotations

import re

_NUMBER_MARKER = re.compile(r"^\d+[.)]\s*")
_BULLET_MARKER = re.compile(r"^[-*]\s*")

MIN_QUERY_LENGTH = 3


def parse_sub_queries(text: str | None, max_items: int) -> list[str]:
    """
    Split `text` into at most `max_items` queries.

    Blank lines and anything shorter than three characters after marker
    stripping are dropped.

    Example:
        >>> parse_sub_queries("1. revenue growth 2024\\n- margin trend\\nok", 5)
        ['revenue growth 2024', 'margin trend']
    """
    if not text or not text.strip() or max_items <= 0:
        return []

    queries: list[str] = []
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line:
            continue
        line = _NUMBER_MARKER.sub("", line, count=1)
        line = _BULLET_MARKER.sub("", line, count=1).strip()
        if len(line) < MIN_QUERY_LENGTH:
            continue
        queries.append(line)
        if len(queries) >= max_items:
            break
    return queries
