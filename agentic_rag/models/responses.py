# =============================================================================
# API Response Models - Pydantic V2 Schemas
# =============================================================================
#
# These models define the shape of data coming OUT of the API. Internal
# dataclasses (SearchResult, IterationRecord, EvidenceSource) are mapped
# onto them in the route handlers, so the wire contract can evolve
# independently of the engine.
#
# Serialised in camelCase; null fields are omitted by the routes.
# =============================================================================

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

_CAMEL = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class HealthResponse(BaseModel):
    """Response for GET /health - confirms the API is running."""

    status: str = "ok"
    version: str
    service: str


class SearchSourceResponse(BaseModel):
    """A single evidence source surfaced by one sub-query."""

    model_config = _CAMEL

    query: str = Field(description="The sub-query that found this source")
    source_type: str = Field(description="'document' or 'web'")
    title: str = Field(description="Document filename or web page title")
    url: str | None = Field(default=None, description="URL for web sources")
    snippet: str | None = Field(
        default=None, description="Relevant text, truncated",
    )
    relevance: float = Field(
        default=0.0,
        description="Similarity score for document sources; 0.0 for web",
    )


class SearchIterationResponse(BaseModel):
    """One search round."""

    model_config = _CAMEL

    iteration: int = Field(description="Round number (1-based)")
    sub_queries: list[str] = Field(description="Sub-queries issued this round")
    sources: list[SearchSourceResponse] = Field(
        description="Sources newly found this round (after deduplication)",
    )
    intermediate_summary: str | None = Field(
        default=None, description="Short digest of this round's sources",
    )
    iteration_time_ms: int = Field(description="Round duration in milliseconds")


class AgenticSearchResponse(BaseModel):
    """
    Response for POST /api/agentic-search.

    On failure `answer` is absent and `error` explains why; the rounds
    completed before the failure are still listed.
    """

    model_config = _CAMEL

    original_query: str = Field(description="The submitted query (echoed back)")
    answer: str | None = Field(
        default=None, description="Synthesized answer with [Source N] citations",
    )
    rendered_answer: str | None = Field(
        default=None, description="HTML rendering of the answer",
    )
    iterations: list[SearchIterationResponse] = Field(default_factory=list)
    total_sources_found: int = Field(
        default=0, description="Distinct sources gathered across all rounds",
    )
    total_time_ms: int = Field(default=0, description="End-to-end duration (ms)")
    error: str | None = Field(default=None, description="Why the search failed")


class AgenticSearchStatusResponse(BaseModel):
    """Response for GET /api/agentic-search/status."""

    enabled: bool
    available: bool


class ErrorResponse(BaseModel):
    """Body returned when the feature is disabled."""

    error: str
