# =============================================================================
# Retriever - Fan a Sub-Query Out to Evidence Sources
# =============================================================================
#
# For each sub-query the retriever:
#   1. Searches the caller's documents (vector similarity, top_k hits)
#   2. Optionally searches the web (fixed small cap, independent of top_k)
#   3. Normalises every hit into an EvidenceSource
#
# FAILURE ISOLATION: each source call is bounded by a timeout and wrapped in
# its own try/except. A failing or slow source contributes zero results for
# that sub-query only. Nothing raised here reaches the orchestrator.
#
# ORDERING: sources run concurrently, but results are always returned as
# document hits first, then web hits; retrieve_all() keeps sub-queries in the
# order the planner issued them.
# =============================================================================

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable
from dataclasses import dataclass
from enum import Enum

from agentic_rag.exceptions import SourceRetrievalError
from agentic_rag.services.vectorstore import DocumentHit, DocumentSearch
from agentic_rag.services.web_search import WebHit, WebSearch

logger = logging.getLogger(__name__)

DEFAULT_DOCUMENT_TITLE = "document"
TRUNCATION_MARKER = "..."


# ---------------------------------------------------------------------------
# Data Structures
# ---------------------------------------------------------------------------


class SourceType(str, Enum):
    """Where an evidence source came from."""

    DOCUMENT = "document"
    WEB = "web"


@dataclass
class EvidenceSource:
    """
    A single retrieved snippet with provenance.

    `query` is the sub-query that surfaced it. Web sources carry a url and
    a relevance of 0.0 since web hits are not natively scored.
    """

    query: str
    source_type: SourceType
    title: str
    snippet: str | None = None
    url: str | None = None
    relevance: float = 0.0


def truncate_snippet(text: str | None, max_length: int) -> str | None:
    """Cut `text` to `max_length` characters plus an ellipsis marker."""
    if text is None or len(text) <= max_length:
        return text
    return text[:max_length] + TRUNCATION_MARKER


# ---------------------------------------------------------------------------
# Retriever
# ---------------------------------------------------------------------------


class Retriever:
    """
    Runs sub-queries against document search and (optionally) web search.

    Either backend may be None; a missing document backend simply yields no
    document sources.
    """

    def __init__(
        self,
        document_search: DocumentSearch | None,
        web_search: WebSearch | None = None,
        max_snippet_length: int = 500,
        web_max_results: int = 3,
        timeout: float | None = 15.0,
    ) -> None:
        self._document_search = document_search
        self._web_search = web_search
        self._max_snippet_length = max_snippet_length
        self._web_max_results = web_max_results
        self._timeout = timeout

    @property
    def web_available(self) -> bool:
        return self._web_search is not None and self._web_search.enabled

    async def retrieve(
        self,
        sub_query: str,
        scope: str | None,
        top_k: int,
        include_web: bool,
    ) -> list[EvidenceSource]:
        """Collect evidence for one sub-query. Never raises."""
        document_task = self._search_documents(sub_query, scope, top_k)
        if include_web and self.web_available:
            documents, web = await asyncio.gather(
                document_task, self._search_web(sub_query),
            )
            return documents + web
        return await document_task

    async def retrieve_all(
        self,
        sub_queries: list[str],
        scope: str | None,
        top_k: int,
        include_web: bool,
    ) -> list[EvidenceSource]:
        """Fan out over `sub_queries` concurrently; concatenate in order."""
        per_query = await asyncio.gather(*[
            self.retrieve(q, scope, top_k, include_web) for q in sub_queries
        ])
        return [source for sources in per_query for source in sources]

    # -------------------------------------------------------------------------
    # Per-source calls
    # -------------------------------------------------------------------------

    async def _search_documents(
        self,
        sub_query: str,
        scope: str | None,
        top_k: int,
    ) -> list[EvidenceSource]:
        if self._document_search is None:
            logger.debug("Document search not configured")
            return []

        try:
            hits = await self._guarded(
                "document",
                sub_query,
                self._document_search.similarity_search(sub_query, scope, top_k),
            )
        except SourceRetrievalError as e:
            logger.warning("%s", e)
            return []

        return [self._from_document_hit(sub_query, hit) for hit in hits]

    async def _search_web(self, sub_query: str) -> list[EvidenceSource]:
        if self._web_search is None:
            return []

        try:
            hits = await self._guarded(
                "web",
                sub_query,
                self._web_search.search(sub_query, self._web_max_results),
            )
        except SourceRetrievalError as e:
            logger.warning("%s", e)
            return []

        return [
            self._from_web_hit(sub_query, hit)
            for hit in hits[: self._web_max_results]
        ]

    async def _guarded(self, label: str, sub_query: str, call: Awaitable):
        """Await `call` under the timeout; wrap any failure."""
        try:
            return await asyncio.wait_for(call, timeout=self._timeout)
        except asyncio.TimeoutError as e:
            raise SourceRetrievalError(
                f"{label.capitalize()} search timed out for query "
                f"'{sub_query[:80]}'"
            ) from e
        except Exception as e:
            raise SourceRetrievalError(
                f"{label.capitalize()} search failed for query "
                f"'{sub_query[:80]}': {e}"
            ) from e

    # -------------------------------------------------------------------------
    # Normalisation
    # -------------------------------------------------------------------------

    def _from_document_hit(self, sub_query: str, hit: DocumentHit) -> EvidenceSource:
        metadata = hit.metadata or {}
        title = (
            metadata.get("filename")
            or metadata.get("title")
            or DEFAULT_DOCUMENT_TITLE
        )
        return EvidenceSource(
            query=sub_query,
            source_type=SourceType.DOCUMENT,
            title=str(title),
            snippet=truncate_snippet(hit.text, self._max_snippet_length),
            relevance=hit.score if hit.score is not None else 0.0,
        )

    def _from_web_hit(self, sub_query: str, hit: WebHit) -> EvidenceSource:
        return EvidenceSource(
            query=sub_query,
            source_type=SourceType.WEB,
            title=hit.title,
            url=hit.url or None,
            snippet=truncate_snippet(hit.snippet, self._max_snippet_length),
        )
