# =============================================================================
# Query Planner - Decomposition & Refinement
# =============================================================================
#
# Round 1 - decompose(): split the user's question into 1..N focused,
#   search-friendly sub-queries (or echo the question if already simple).
#
# Round 2+ - refine(): show the model what has been gathered and which
#   queries were already tried, then either:
#     - reply SUFFICIENT   → stop searching
#     - list new queries   → search again
#
# The free-text SUFFICIENT sentinel is turned into a structured Refinement
# here, so the orchestrator never string-matches model output itself.
#
# Both operations are mandatory steps of a run: completion failures and
# timeouts raise PlanningError.
# =============================================================================

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

from agentic_rag.agents.query_parser import parse_sub_queries
from agentic_rag.agents.retriever import EvidenceSource
from agentic_rag.exceptions import PlanningError
from agentic_rag.services.llm import LLMProvider, complete_text

logger = logging.getLogger(__name__)

SUFFICIENT_SENTINEL = "SUFFICIENT"
NO_CONTEXT_MESSAGE = "No information gathered yet."


# ---------------------------------------------------------------------------
# Prompts
# ---------------------------------------------------------------------------

_DECOMPOSITION_SYSTEM = """You are a search query decomposition assistant. \
Your job is to break down a complex question into simpler, focused \
sub-queries that can be used to search a document knowledge base.

Rules:
- Generate between 1 and {max_sub_queries} sub-queries
- Each sub-query should target a specific aspect of the original question
- Sub-queries should be concise and search-friendly (no full sentences)
- If the question is already simple enough, return just the original question
- Return ONLY the sub-queries, one per line, with no numbering, bullets, \
or extra text"""

_REFINEMENT_SYSTEM = """You are a search refinement assistant. Based on the \
original question and the information gathered so far, determine if more \
searching is needed.

If the gathered information is sufficient to answer the original question, \
respond with exactly: SUFFICIENT

If more information is needed, generate between 1 and {max_sub_queries} \
refined sub-queries that target the gaps in the current information. \
Return ONLY the sub-queries, one per line, with no numbering, bullets, or \
extra text. Do not repeat queries that have already been tried."""


# ---------------------------------------------------------------------------
# Data Structures
# ---------------------------------------------------------------------------


@dataclass
class Refinement:
    """
    Outcome of a refinement step.

    `sufficient` is True only when the model explicitly answered with the
    SUFFICIENT sentinel. An empty `sub_queries` list without that flag
    means the model produced nothing usable.
    """

    sufficient: bool = False
    sub_queries: list[str] = field(default_factory=list)

    @property
    def should_stop(self) -> bool:
        return self.sufficient or not self.sub_queries


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


async def decompose(
    llm: LLMProvider,
    query: str,
    max_sub_queries: int,
    timeout: float | None = None,
) -> list[str]:
    """
    Break `query` into at most `max_sub_queries` sub-queries.

    Returns an empty list when the model output has nothing usable.

    Raises:
        PlanningError: The completion call failed or timed out.
    """
    system = _DECOMPOSITION_SYSTEM.format(max_sub_queries=max_sub_queries)
    response = await _complete(
        llm, system, f"Original question: {query}", timeout, "decomposition",
    )

    sub_queries = parse_sub_queries(response, max_sub_queries)
    logger.info(
        "Decomposed query into %d sub-queries: %s",
        len(sub_queries), sub_queries,
    )
    return sub_queries


async def refine(
    llm: LLMProvider,
    original_query: str,
    gathered_context: str,
    tried_queries: Iterable[str],
    max_sub_queries: int,
    timeout: float | None = None,
) -> Refinement:
    """
    Decide whether to keep searching and, if so, with which queries.

    Raises:
        PlanningError: The completion call failed or timed out.
    """
    system = _REFINEMENT_SYSTEM.format(max_sub_queries=max_sub_queries)
    tried_lines = "".join(f"- {q}\n" for q in tried_queries)
    user = (
        f"Original question: {original_query}\n\n"
        f"Information gathered so far:\n{gathered_context}\n\n"
        f"Queries already tried:\n{tried_lines}"
    )

    response = await _complete(llm, system, user, timeout, "refinement")

    if response.strip().upper() == SUFFICIENT_SENTINEL:
        logger.info("Refinement: model judged gathered information sufficient")
        return Refinement(sufficient=True)

    sub_queries = parse_sub_queries(response, max_sub_queries)
    if not sub_queries:
        logger.warning(
            "Refinement produced no usable sub-queries (response='%s')",
            response.strip()[:120],
        )
    return Refinement(sub_queries=sub_queries)


def format_gathered_context(sources: list[EvidenceSource]) -> str:
    """
    Render accumulated sources for the refinement prompt.

    Example:
        [Source 1] (document) 'report.pdf':
        Revenue grew 12% ...
    """
    if not sources:
        return NO_CONTEXT_MESSAGE

    blocks = []
    for i, source in enumerate(sources, 1):
        blocks.append(
            f"[Source {i}] ({source.source_type.value}) '{source.title}':\n"
            f"{source.snippet or ''}"
        )
    return "\n\n".join(blocks)


# ---------------------------------------------------------------------------
# Internal Helpers
# ---------------------------------------------------------------------------


async def _complete(
    llm: LLMProvider,
    system: str,
    user: str,
    timeout: float | None,
    step: str,
) -> str:
    try:
        return await complete_text(llm, system, user, timeout=timeout)
    except asyncio.TimeoutError as e:
        raise PlanningError(f"Query {step} timed out after {timeout}s") from e
    except Exception as e:
        raise PlanningError(f"Query {step} failed: {e}") from e
