# =============================================================================
# API Request Models - Pydantic V2 Schemas
# =============================================================================
#
# These models define the shape of data coming INTO the API. FastAPI uses
# them for body validation (automatic 422 errors), OpenAPI docs and typing.
#
# Field names are snake_case in Python and camelCase on the wire
# ("maxIterations"); either spelling is accepted on input.
# =============================================================================

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class AgenticSearchRequest(BaseModel):
    """
    Request body for POST /api/agentic-search.

    Example:
        {
            "query": "How did revenue and margins change in 2024?",
            "maxIterations": 3,
            "maxSubQueries": 3,
            "topK": 5,
            "includeWebSearch": false
        }
    """

    query: str = Field(
        ...,
        min_length=1,
        max_length=10_000,
        description="The question to research",
        examples=["How did revenue and margins change in 2024?"],
    )

    max_iterations: int = Field(
        default=3,
        ge=1,
        le=5,
        description="Maximum number of search rounds (capped server-side)",
    )

    max_sub_queries: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Maximum number of sub-queries per round (capped server-side)",
    )

    top_k: int = Field(
        default=5,
        ge=1,
        le=20,
        description="Document hits retrieved per sub-query",
    )

    include_web_search: bool = Field(
        default=False,
        description="Also search the web when web search is configured",
    )

    provider: str | None = Field(
        default=None,
        description=(
            "Completion provider: 'anthropic', 'openai_compatible' "
            "(alias 'openai'), 'ollama' or 'external'. Defaults to the "
            "server's configured provider."
        ),
    )

    model: str | None = Field(
        default=None,
        description="Model name for the provider, or an externally bound model",
    )

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "examples": [
                {
                    "query": "What is the capital of France?",
                    "maxIterations": 1,
                },
                {
                    "query": "Compare our 2023 and 2024 churn drivers",
                    "maxIterations": 3,
                    "maxSubQueries": 3,
                    "includeWebSearch": True,
                },
            ]
        },
    )

    @field_validator("query")
    @classmethod
    def _query_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("query must not be blank")
        return value
