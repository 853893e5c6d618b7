# =============================================================================
# LangGraph Orchestrator - Iterative Search State Machine
# =============================================================================
#
# Wires the planner, retriever, deduplicator, summarizer and synthesizer into
# a LangGraph StateGraph. One graph invocation is one search run.
#
# GRAPH TOPOLOGY:
#
#   START ──▶ plan ──(stop)──────────────────────────────────▶ synthesize ──▶ END
#              │                                                    ▲
#              └─(go)─▶ retrieve ──▶ dedupe ──▶ summarize ──▶ continue_check
#              ▲                                                    │
#              └──────────────────(more rounds)─────────────────────┘
#
#   plan           - round 1: decompose; round 2+: refine (may say stop)
#   retrieve       - concurrent fan-out over sub-queries and sources
#   dedupe         - single-threaded merge into the cumulative source list
#   summarize      - optional digest of this round's new sources
#   continue_check - record the round, then loop or finish
#   synthesize     - cited final answer (or the no-results message)
#
# FAILURE PATH: any exception raised by a node ends the run. The graph is
# streamed with stream_mode="values", so the last full state seen before the
# failure still holds every completed round; the result is built from it
# with an error message and is never re-raised.
#
# The graph is compiled once at module level and holds no per-run state.
# Providers travel in the state (no checkpointer is configured).
# =============================================================================

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field

from langgraph.graph import END, START, StateGraph
from typing_extensions import TypedDict

from agentic_rag.agents.dedup import SourceKey, dedupe
from agentic_rag.agents.planner import decompose, format_gathered_context, refine
from agentic_rag.agents.query_parser import MIN_QUERY_LENGTH
from agentic_rag.agents.retriever import EvidenceSource, Retriever
from agentic_rag.agents.summarizer import summarize
from agentic_rag.agents.synthesizer import synthesize
from agentic_rag.exceptions import SearchCancelledError
from agentic_rag.services.llm import LLMProvider

logger = logging.getLogger(__name__)

# Nodes executed per round, used to size LangGraph's recursion limit
_NODES_PER_ROUND = 5


# ---------------------------------------------------------------------------
# Result Types
# ---------------------------------------------------------------------------


@dataclass
class IterationRecord:
    """One completed round: what was asked and what was newly found."""

    iteration: int
    sub_queries: list[str]
    sources: list[EvidenceSource]
    intermediate_summary: str | None = None
    iteration_time_ms: int = 0


@dataclass
class SearchResult:
    """
    Outcome of one agentic search run.

    `answer` is None when the run failed. `sources` is the cumulative,
    deduplicated source list; `total_sources_found` is its length.
    """

    original_query: str
    answer: str | None = None
    rendered_answer: str | None = None
    iterations: list[IterationRecord] = field(default_factory=list)
    sources: list[EvidenceSource] = field(default_factory=list)
    total_sources_found: int = 0
    total_time_ms: int = 0
    error: str | None = None


# ---------------------------------------------------------------------------
# Graph State
# ---------------------------------------------------------------------------


class SearchState(TypedDict, total=False):
    """
    State flowing through the search graph.

    Uses total=False so nodes only return the keys they update.
    """

    # --- Input (set by caller, constant during the run) ---
    query: str
    scope: str | None
    max_iterations: int
    max_sub_queries: int
    top_k: int
    include_web_search: bool
    deadline: float | None
    llm_timeout: float | None
    llm: LLMProvider
    retriever: Retriever

    # --- Current round ---
    iteration: int
    round_started: float
    stop: bool
    sub_queries: list[str]
    candidates: list[EvidenceSource]
    new_sources: list[EvidenceSource]
    summary: str | None

    # --- Accumulated across rounds ---
    all_sources: list[EvidenceSource]
    seen_keys: set[SourceKey]
    tried_queries: list[str]
    iterations: list[IterationRecord]

    # --- Output ---
    answer: str


# ---------------------------------------------------------------------------
# Node Functions
# ---------------------------------------------------------------------------


async def plan_node(state: SearchState) -> dict:
    """Pick this round's sub-queries, or decide to stop searching."""
    iteration = state.get("iteration", 0) + 1
    started = time.monotonic()
    query = state["query"]
    tried = state.get("tried_queries", [])

    if iteration == 1:
        sub_queries = await decompose(
            state["llm"], query, state["max_sub_queries"],
            timeout=state.get("llm_timeout"),
        )
        if not sub_queries and len(query.strip()) >= MIN_QUERY_LENGTH:
            logger.info("Decomposition empty; searching the original query")
            sub_queries = [query.strip()]
    else:
        _check_deadline(state, iteration)
        refinement = await refine(
            state["llm"],
            query,
            format_gathered_context(state.get("all_sources", [])),
            tried,
            state["max_sub_queries"],
            timeout=state.get("llm_timeout"),
        )
        if refinement.sufficient:
            logger.info(
                "Information sufficient after %d iteration(s)", iteration - 1,
            )
            return {"stop": True}

        tried_lower = {q.lower() for q in tried}
        sub_queries = [
            q for q in refinement.sub_queries if q.lower() not in tried_lower
        ]
        if not sub_queries:
            logger.info(
                "No new sub-queries after %d iteration(s); stopping",
                iteration - 1,
            )
            return {"stop": True}

    logger.debug("Iteration %d: sub-queries = %s", iteration, sub_queries)

    tried_lower = {q.lower() for q in tried}
    new_tried = [q for q in sub_queries if q.lower() not in tried_lower]

    return {
        "iteration": iteration,
        "round_started": started,
        "stop": False,
        "sub_queries": sub_queries,
        "tried_queries": tried + new_tried,
    }


async def retrieve_node(state: SearchState) -> dict:
    """Fan every sub-query out to the evidence sources."""
    candidates = await state["retriever"].retrieve_all(
        state["sub_queries"],
        scope=state.get("scope"),
        top_k=state["top_k"],
        include_web=state.get("include_web_search", False),
    )
    return {"candidates": candidates}


async def dedupe_node(state: SearchState) -> dict:
    """Merge this round's candidates into the cumulative source list."""
    unique, seen_keys = dedupe(
        state.get("candidates", []), state.get("seen_keys", set()),
    )
    return {
        "candidates": [],
        "new_sources": unique,
        "all_sources": state.get("all_sources", []) + unique,
        "seen_keys": seen_keys,
    }


async def summarize_node(state: SearchState) -> dict:
    summary = await summarize(
        state["llm"],
        state["query"],
        state.get("new_sources", []),
        timeout=state.get("llm_timeout"),
    )
    return {"summary": summary}


async def continue_check_node(state: SearchState) -> dict:
    """Record the finished round."""
    iteration_time_ms = int((time.monotonic() - state["round_started"]) * 1000)
    record = IterationRecord(
        iteration=state["iteration"],
        sub_queries=list(state.get("sub_queries", [])),
        sources=list(state.get("new_sources", [])),
        intermediate_summary=state.get("summary"),
        iteration_time_ms=iteration_time_ms,
    )

    logger.info(
        "Iteration %d complete: %d new sources found in %dms",
        record.iteration, len(record.sources), iteration_time_ms,
    )

    return {"iterations": state.get("iterations", []) + [record]}


async def synthesize_node(state: SearchState) -> dict:
    answer = await synthesize(
        state["llm"],
        state["query"],
        state.get("all_sources", []),
        iterations_run=len(state.get("iterations", [])),
        timeout=state.get("llm_timeout"),
    )
    return {"answer": answer}


# ---------------------------------------------------------------------------
# Routing
# ---------------------------------------------------------------------------


def route_after_plan(state: SearchState) -> str:
    return "synthesize" if state.get("stop") else "retrieve"


def route_after_round(state: SearchState) -> str:
    if state["iteration"] >= state["max_iterations"]:
        return "synthesize"
    return "plan"


def _check_deadline(state: SearchState, iteration: int) -> None:
    deadline = state.get("deadline")
    if deadline is not None and time.monotonic() >= deadline:
        raise SearchCancelledError(
            f"deadline exceeded before iteration {iteration}"
        )


# ---------------------------------------------------------------------------
# Graph Assembly
# ---------------------------------------------------------------------------

_builder = StateGraph(SearchState)
_builder.add_node("plan", plan_node)
_builder.add_node("retrieve", retrieve_node)
_builder.add_node("dedupe", dedupe_node)
_builder.add_node("summarize", summarize_node)
_builder.add_node("continue_check", continue_check_node)
_builder.add_node("synthesize", synthesize_node)

_builder.add_edge(START, "plan")
_builder.add_conditional_edges(
    "plan",
    route_after_plan,
    {"retrieve": "retrieve", "synthesize": "synthesize"},
)
_builder.add_edge("retrieve", "dedupe")
_builder.add_edge("dedupe", "summarize")
_builder.add_edge("summarize", "continue_check")
_builder.add_conditional_edges(
    "continue_check",
    route_after_round,
    {"plan": "plan", "synthesize": "synthesize"},
)
_builder.add_edge("synthesize", END)

graph = _builder.compile()


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


async def run_agentic_search(
    query: str,
    *,
    llm: LLMProvider,
    retriever: Retriever,
    max_iterations: int,
    max_sub_queries: int,
    top_k: int,
    include_web_search: bool = False,
    scope: str | None = None,
    deadline: float | None = None,
    llm_timeout: float | None = None,
) -> SearchResult:
    """
    Run the iterative search loop and return the assembled result.

    Args:
        query: The user's question.
        llm: Completion provider for planning, summaries and synthesis.
        retriever: Evidence retriever.
        max_iterations: Upper bound on recorded rounds (>= 1).
        max_sub_queries: Upper bound on sub-queries per round (>= 1).
        top_k: Document hits per sub-query.
        include_web_search: Also query the web search backend.
        scope: Document search scope (owner id) of the caller.
        deadline: time.monotonic() value after which no new round starts.
        llm_timeout: Per-call completion timeout in seconds.

    Returns:
        SearchResult. Failures are reported in `error` with the rounds
        completed so far; this function does not raise.
    """
    start = time.monotonic()

    initial_state: SearchState = {
        "query": query,
        "scope": scope,
        "max_iterations": max_iterations,
        "max_sub_queries": max_sub_queries,
        "top_k": top_k,
        "include_web_search": include_web_search,
        "deadline": deadline,
        "llm_timeout": llm_timeout,
        "llm": llm,
        "retriever": retriever,
        "iteration": 0,
        "stop": False,
        "all_sources": [],
        "seen_keys": set(),
        "tried_queries": [],
        "iterations": [],
    }
    last_state: SearchState = initial_state

    logger.info(
        "Starting agentic search: query='%s', max_iterations=%d, "
        "max_sub_queries=%d, top_k=%d, web=%s",
        query[:100], max_iterations, max_sub_queries, top_k,
        include_web_search,
    )

    try:
        async for values in graph.astream(
            initial_state,
            config={"recursion_limit": _NODES_PER_ROUND * max_iterations + 10},
            stream_mode="values",
        ):
            last_state = values
    except SearchCancelledError as e:
        logger.warning("Agentic search cancelled for '%s': %s", query[:100], e)
        return _partial_result(query, last_state, start, f"Search cancelled: {e}")
    except Exception as e:
        logger.exception("Agentic search failed for '%s': %s", query[:100], e)
        return _partial_result(query, last_state, start, f"Search failed: {e}")

    all_sources = last_state.get("all_sources", [])
    iterations = last_state.get("iterations", [])
    total_time_ms = _elapsed_ms(start)

    logger.info(
        "Agentic search complete: %d iterations, %d total sources, %dms",
        len(iterations), len(all_sources), total_time_ms,
    )

    return SearchResult(
        original_query=query,
        answer=last_state.get("answer"),
        iterations=iterations,
        sources=all_sources,
        total_sources_found=len(all_sources),
        total_time_ms=total_time_ms,
    )


# ---------------------------------------------------------------------------
# Internal Helpers
# ---------------------------------------------------------------------------


def _partial_result(
    query: str,
    state: SearchState,
    start: float,
    error: str,
) -> SearchResult:
    all_sources = state.get("all_sources", [])
    return SearchResult(
        original_query=query,
        iterations=state.get("iterations", []),
        sources=all_sources,
        total_sources_found=len(all_sources),
        total_time_ms=_elapsed_ms(start),
        error=error,
    )


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)
