# =============================================================================
# Agentic Search Service - Entry Point Around the Orchestrator
# =============================================================================
#
# Everything that happens before and after the graph runs:
#
#   1. Feature flag    - disabled → "disabled" result, nothing else touched
#   2. Provider lookup - provider/model hint → LLMProvider, or a
#                        configuration-error result with zero iterations
#   3. Caps            - clamp request bounds to the server-side maximums
#   4. Deadline        - optional overall budget, checked between rounds
#   5. Run             - orchestrator.run_agentic_search()
#   6. Rendering       - Markdown answer → HTML
#
# The service holds no per-request mutable state; one instance serves all
# requests.
# =============================================================================

from __future__ import annotations

import logging
import time
from dataclasses import dataclass

from agentic_rag.agents.orchestrator import SearchResult, run_agentic_search
from agentic_rag.agents.retriever import Retriever
from agentic_rag.config import Settings
from agentic_rag.exceptions import ConfigurationError
from agentic_rag.services.llm import ProviderRegistry
from agentic_rag.services.rendering import render_markdown

logger = logging.getLogger(__name__)

DISABLED_MESSAGE = "Agentic search is currently disabled"
NO_PROVIDER_MESSAGE = "No chat model available for the specified provider/model"


@dataclass(frozen=True)
class SearchRequest:
    """Parameters of one search run. Immutable for the run's lifetime."""

    query: str
    max_iterations: int = 3
    max_sub_queries: int = 3
    top_k: int | None = None
    include_web_search: bool = False
    provider: str | None = None
    model: str | None = None


class AgenticSearchService:
    """Runs agentic searches with configured providers and retriever."""

    def __init__(
        self,
        config: Settings,
        registry: ProviderRegistry,
        retriever: Retriever,
    ) -> None:
        self._settings = config
        self._registry = registry
        self._retriever = retriever

        logger.info(
            "AgenticSearchService initialized - enabled: %s, webSearch: %s",
            config.agentic_search_enabled, retriever.web_available,
        )

    @property
    def enabled(self) -> bool:
        return self._settings.agentic_search_enabled

    def status(self) -> dict[str, bool]:
        """Report {enabled, available} for the status probe."""
        enabled = self.enabled
        available = enabled and self._registry.resolve() is not None
        return {"enabled": enabled, "available": available}

    async def search(
        self,
        request: SearchRequest,
        scope: str | None = None,
        deadline: float | None = None,
    ) -> SearchResult:
        """
        Execute one agentic search.

        Args:
            request: Query and bounds.
            scope: Caller's document scope (owner id).
            deadline: Optional time.monotonic() deadline; the configured
                search_deadline_seconds applies when this is None.

        Returns:
            SearchResult. Disabled, configuration and run failures are
            reported through `error`; this method does not raise.
        """
        if not self.enabled:
            return SearchResult(original_query=request.query, error=DISABLED_MESSAGE)

        start = time.monotonic()
        config = self._settings

        max_iterations = max(1, min(request.max_iterations, config.max_search_iterations))
        max_sub_queries = max(1, min(request.max_sub_queries, config.max_sub_queries))
        top_k = request.top_k if request.top_k and request.top_k > 0 else config.retrieval_top_k

        if deadline is None and config.search_deadline_seconds:
            deadline = start + config.search_deadline_seconds

        try:
            llm = self._resolve_llm(request.provider, request.model)
        except ConfigurationError as e:
            logger.error("Agentic search configuration error: %s", e)
            return SearchResult(
                original_query=request.query,
                error=str(e),
                total_time_ms=int((time.monotonic() - start) * 1000),
            )

        result = await run_agentic_search(
            request.query,
            llm=llm,
            retriever=self._retriever,
            max_iterations=max_iterations,
            max_sub_queries=max_sub_queries,
            top_k=top_k,
            include_web_search=request.include_web_search,
            scope=scope,
            deadline=deadline,
            llm_timeout=config.llm_timeout_seconds,
        )

        if result.answer:
            result.rendered_answer = render_markdown(result.answer)
        return result

    def _resolve_llm(self, provider: str | None, model: str | None):
        llm = self._registry.resolve(provider, model)
        if llm is None:
            raise ConfigurationError(NO_PROVIDER_MESSAGE)
        return llm
