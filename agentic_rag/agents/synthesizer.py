# =============================================================================
# Answer Synthesizer - Cited Final Answer from All Gathered Evidence
# =============================================================================
#
# Takes every source accumulated across all rounds and asks the LLM for one
# comprehensive answer. Sources are presented as numbered blocks:
#
#     [Source 1] (document) 'report.pdf':
#     Revenue grew 12% year over year...
#
#     [Source 2] (web) 'Market update' - https://example.com/update:
#     Analysts expect...
#
# and the model cites them with the same [Source k] notation. Citations that
# point outside 1..len(sources) are stripped from the answer.
#
# With no sources at all, a fixed message is returned and no LLM call is made.
# =============================================================================

from __future__ import annotations

import asyncio
import logging
import re

from agentic_rag.agents.retriever import EvidenceSource
from agentic_rag.exceptions import SynthesisError
from agentic_rag.services.llm import LLMProvider, complete_text

logger = logging.getLogger(__name__)

_CITATION = re.compile(r"\[Sources? (\d+(?:\s*,\s*\d+)*)\]", re.IGNORECASE)

_SYNTHESIS_SYSTEM = (
    "You are a research synthesis assistant. Based on the original question "
    "and all the information gathered from multiple search passes, provide a "
    "comprehensive, well-structured answer.\n\n"
    "Rules:\n"
    "- Cite sources using [Source N] notation where N matches the source "
    "number provided\n"
    "- If sources contain conflicting information, note the discrepancy "
    "explicitly\n"
    "- If the gathered information does not fully answer the question, "
    "clearly state what is unknown\n"
    "- Use Markdown formatting for readability (headings, lists, bold, etc.)\n"
    "- Be thorough but concise"
)


def no_results_message(iterations_run: int) -> str:
    """Answer used when no round produced any evidence."""
    return (
        "No relevant information was found for your query across "
        f"{iterations_run} search iteration(s). "
        "Try rephrasing your question or uploading relevant documents."
    )


async def synthesize(
    llm: LLMProvider,
    original_query: str,
    all_sources: list[EvidenceSource],
    iterations_run: int,
    timeout: float | None = None,
) -> str:
    """
    Produce the final answer for `original_query`.

    Args:
        llm: Completion provider.
        original_query: The user's question.
        all_sources: Deduplicated sources from every round, in order.
        iterations_run: Number of recorded rounds (for the no-result message).
        timeout: Per-call timeout in seconds.

    Returns:
        Plain-text (Markdown) answer.

    Raises:
        SynthesisError: The completion call failed or timed out.
    """
    if not all_sources:
        return no_results_message(iterations_run)

    user = (
        f"Original question: {original_query}\n\n"
        f"Gathered sources:\n\n{format_sources(all_sources)}\n\n"
        "Please provide a comprehensive answer to the original question "
        "using all relevant sources above."
    )

    logger.info("Synthesizing answer from %d sources", len(all_sources))

    try:
        answer = await complete_text(llm, _SYNTHESIS_SYSTEM, user, timeout=timeout)
    except asyncio.TimeoutError as e:
        raise SynthesisError(f"Answer synthesis timed out after {timeout}s") from e
    except Exception as e:
        raise SynthesisError(f"Answer synthesis failed: {e}") from e

    return strip_invalid_citations(answer, len(all_sources))


def format_sources(sources: list[EvidenceSource]) -> str:
    """Number sources as [Source k] blocks, with url when present."""
    blocks = []
    for i, source in enumerate(sources, 1):
        header = f"[Source {i}] ({source.source_type.value}) '{source.title}'"
        if source.url:
            header += f" - {source.url}"
        blocks.append(f"{header}:\n{source.snippet or ''}")
    return "\n\n".join(blocks)


def strip_invalid_citations(answer: str, source_count: int) -> str:
    """
    Drop citation numbers outside 1..source_count.

    Matches [Source k], [Sources j, k] in any case. A bracket keeps its
    in-range numbers; a bracket with none left is removed.
    """

    def _check(match: re.Match) -> str:
        numbers = [int(n) for n in match.group(1).split(",")]
        valid = [k for k in numbers if 1 <= k <= source_count]
        if len(valid) == len(numbers):
            return match.group(0)
        logger.debug("Dropping out-of-range citation %s", match.group(0))
        if not valid:
            return ""
        return "[Source " + ", ".join(str(k) for k in valid) + "]"

    return _CITATION.sub(_check, answer)
