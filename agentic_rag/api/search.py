# =============================================================================
# Agentic Search API - Multi-Round Research Endpoint
# =============================================================================
#
#   POST /api/agentic-search         - run one agentic search
#   GET  /api/agentic-search/status  - {enabled, available}
#
# The heavy lifting happens in the agents package; this module only does
# auth, the feature-flag gate, and mapping the engine's dataclasses onto
# the response schema. Engine failures come back inside the response body
# (`error`), never as unhandled exceptions.
# =============================================================================

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from agentic_rag.agents.orchestrator import IterationRecord, SearchResult
from agentic_rag.agents.retriever import EvidenceSource
from agentic_rag.api.deps import Caller, get_current_caller, get_search_service
from agentic_rag.models.requests import AgenticSearchRequest
from agentic_rag.models.responses import (
    AgenticSearchResponse,
    AgenticSearchStatusResponse,
    ErrorResponse,
    SearchIterationResponse,
    SearchSourceResponse,
)
from agentic_rag.services.search_service import (
    DISABLED_MESSAGE,
    AgenticSearchService,
    SearchRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/agentic-search", tags=["Agentic Search"])

# ---------------------------------------------------------------------------
# POST /api/agentic-search
# ---------------------------------------------------------------------------


@router.post(
    "",
    response_model=AgenticSearchResponse,
    response_model_exclude_none=True,
    responses={400: {"model": ErrorResponse}},
    summary="Run a multi-round agentic search",
    description=(
        "Decomposes the query into sub-queries, searches documents (and "
        "optionally the web) over several rounds until the evidence is "
        "judged sufficient, then synthesizes a cited answer."
    ),
)
async def agentic_search_endpoint(
    request: AgenticSearchRequest,
    caller: Caller = Depends(get_current_caller),
    service: AgenticSearchService = Depends(get_search_service),
):
    if not service.enabled:
        return JSONResponse(status_code=400, content={"error": DISABLED_MESSAGE})

    logger.info(
        "Agentic search request (owner=%s, key=%s): query='%s', "
        "maxIterations=%d, includeWeb=%s",
        caller.owner_id,
        caller.key_prefix,
        request.query[:100],
        request.max_iterations,
        request.include_web_search,
    )

    result = await service.search(
        SearchRequest(
            query=request.query,
            max_iterations=request.max_iterations,
            max_sub_queries=request.max_sub_queries,
            top_k=request.top_k,
            include_web_search=request.include_web_search,
            provider=request.provider,
            model=request.model,
        ),
        scope=caller.owner_id,
    )

    return to_response(result)


# ---------------------------------------------------------------------------
# GET /api/agentic-search/status
# ---------------------------------------------------------------------------


@router.get(
    "/status",
    response_model=AgenticSearchStatusResponse,
    summary="Report whether agentic search is enabled and available",
)
async def agentic_search_status(
    service: AgenticSearchService = Depends(get_search_service),
) -> AgenticSearchStatusResponse:
    return AgenticSearchStatusResponse(**service.status())


# ---------------------------------------------------------------------------
# Mapping
# ---------------------------------------------------------------------------


def to_response(result: SearchResult) -> AgenticSearchResponse:
    return AgenticSearchResponse(
        original_query=result.original_query,
        answer=result.answer,
        rendered_answer=result.rendered_answer,
        iterations=[_iteration(record) for record in result.iterations],
        total_sources_found=result.total_sources_found,
        total_time_ms=result.total_time_ms,
        error=result.error,
    )


def _iteration(record: IterationRecord) -> SearchIterationResponse:
    return SearchIterationResponse(
        iteration=record.iteration,
        sub_queries=record.sub_queries,
        sources=[_source(source) for source in record.sources],
        intermediate_summary=record.intermediate_summary,
        iteration_time_ms=record.iteration_time_ms,
    )


def _source(source: EvidenceSource) -> SearchSourceResponse:
    return SearchSourceResponse(
        query=source.query,
        source_type=source.source_type.value,
        title=source.title,
        url=source.url,
        snippet=source.snippet,
        relevance=source.relevance,
    )
