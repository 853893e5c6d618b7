"""Render synthesized answers from Markdown to HTML."""

from __future__ import annotations

import markdown

# GitHub-style tables and fenced code; single newlines become <br />
_EXTENSIONS = ["tables", "fenced_code", "sane_lists", "nl2br"]


def render_markdown(text: str | None) -> str:
    """Return the HTML for `text`, or "" for empty input."""
    if not text or not text.strip():
        return ""
    return markdown.markdown(text, extensions=_EXTENSIONS)
