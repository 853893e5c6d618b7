"""
Intermediate summaries: a 2-3 sentence digest of one round's new evidence.

Summaries are optional. An empty round makes no call, and any failure
(including a timeout) just yields no summary.
"""

from __future__ import annotations

import logging

from agentic_rag.agents.retriever import EvidenceSource
from agentic_rag.services.llm import LLMProvider, complete_text

logger = logging.getLogger(__name__)

SUMMARY_SNIPPET_LENGTH = 200

_SUMMARY_SYSTEM = (
    "Briefly summarize the key findings from the following search results "
    "in 2-3 sentences. Focus on the most relevant information that helps "
    "answer the original question."
)


async def summarize(
    llm: LLMProvider,
    original_query: str,
    new_sources: list[EvidenceSource],
    timeout: float | None = None,
) -> str | None:
    if not new_sources:
        return None

    lines = []
    for source in new_sources:
        snippet = source.snippet or ""
        if len(snippet) > SUMMARY_SNIPPET_LENGTH:
            snippet = snippet[:SUMMARY_SNIPPET_LENGTH] + "..."
        lines.append(f"- From '{source.title}': {snippet}")

    user = (
        f"Original question: {original_query}\n\n"
        "Search results:\n" + "\n".join(lines)
    )

    try:
        summary = await complete_text(
            llm, _SUMMARY_SYSTEM, user, timeout=timeout, max_tokens=300,
        )
    except Exception as e:
        logger.warning("Failed to generate intermediate summary: %s", e)
        return None

    return summary.strip() or None
