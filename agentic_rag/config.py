# =============================================================================
# Application Configuration - Pydantic Settings
# =============================================================================
#
# Pydantic Settings loads values in this priority order (highest first):
#   1. Environment variables (e.g., `AGENTIC_SEARCH_ENABLED=false`)
#   2. Values from the .env file
#   3. Default values defined below
#
# USAGE:
#   from agentic_rag.config import settings
#   print(settings.max_search_iterations)
# =============================================================================

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings have defaults suitable for local development. In production,
    override via environment variables or a .env file.
    """

    # -------------------------------------------------------------------------
    # Application
    # -------------------------------------------------------------------------
    app_name: str = "Agentic RAG Search"
    app_version: str = "0.1.0"
    debug: bool = True
    log_level: str = "INFO"

    # -------------------------------------------------------------------------
    # Agentic Search - Feature Flag & Loop Bounds
    # -------------------------------------------------------------------------
    # agentic_search_enabled: Kill switch for the whole feature. When off,
    # searches return a "disabled" response without touching any provider.
    #
    # max_search_iterations / max_sub_queries are server-side CAPS. Requests
    # may ask for fewer rounds or sub-queries, never more.
    # retrieval_top_k is used when a request does not set topK.
    # web_search_max_results is a fixed per-sub-query cap, independent of topK.
    # -------------------------------------------------------------------------
    agentic_search_enabled: bool = True
    max_search_iterations: int = 3
    max_sub_queries: int = 3
    retrieval_top_k: int = 5
    max_snippet_length: int = 500
    web_search_max_results: int = 3

    # -------------------------------------------------------------------------
    # Timeouts (seconds)
    # -------------------------------------------------------------------------
    # llm_timeout_seconds bounds every completion call. A timeout during
    # decompose/refine/synthesize fails the run; during summarize it only
    # drops the summary.
    # retrieval_timeout_seconds bounds each vector/web search call; a timeout
    # there yields zero results for that source.
    # search_deadline_seconds, when set, is the overall budget for one search.
    # It is checked between rounds.
    # -------------------------------------------------------------------------
    llm_timeout_seconds: float = 60.0
    retrieval_timeout_seconds: float = 15.0
    search_deadline_seconds: float | None = None

    # -------------------------------------------------------------------------
    # LLM Configuration - Multi-Provider
    # -------------------------------------------------------------------------
    # llm_provider is the default when a request does not name one:
    #   - "anthropic": Claude via native Anthropic SDK
    #   - "openai_compatible": any OpenAI-compatible API (OpenAI, DeepSeek,
    #     Qwen, GLM, ...)
    #   - "ollama": a local Ollama server through its OpenAI-compatible API
    #
    # external_models maps a bound model name to a provider id of the form
    # "provider_type/model" or "provider_type/model@base_url", e.g.
    #   EXTERNAL_MODELS='{"team-llama": "openai_compatible/llama-3.1-70b@https://llm.internal/v1"}'
    # -------------------------------------------------------------------------
    anthropic_api_key: str = ""
    openai_api_key: str = ""

    llm_provider: str = "anthropic"
    llm_base_url: str | None = None
    llm_api_key: str | None = None
    llm_model: str = "claude-sonnet-4-6"
    llm_temperature: float = 0.1
    llm_max_tokens: int = 4096

    ollama_base_url: str = "http://localhost:11434/v1"
    ollama_model: str = "llama3.1"

    external_models: dict[str, str] = {}

    # -------------------------------------------------------------------------
    # Embedding Configuration
    # -------------------------------------------------------------------------
    embedding_model: str = "text-embedding-3-small"
    embedding_dimensions: int = 1536
    embedding_base_url: str | None = None

    # -------------------------------------------------------------------------
    # Vector Store - ChromaDB
    # -------------------------------------------------------------------------
    # chroma_url: Set for client/server mode. Unset means in-process.
    # Documents are expected to carry an "owner_id" metadata field; searches
    # are scoped to the caller's owner id.
    # -------------------------------------------------------------------------
    chroma_url: str | None = None
    chroma_collection: str = "document_chunks"

    # -------------------------------------------------------------------------
    # Web Search
    # -------------------------------------------------------------------------
    # web_search_provider: "duckduckgo" (no key), "tavily" or "brave".
    # -------------------------------------------------------------------------
    web_search_enabled: bool = False
    web_search_provider: str = "duckduckgo"
    tavily_api_key: str = ""
    brave_api_key: str = ""

    # -------------------------------------------------------------------------
    # Authorisation
    # -------------------------------------------------------------------------
    # api_keys maps the SHA-256 hex digest of a raw key to the owner id whose
    # documents that key may search. Disabled for local development.
    # -------------------------------------------------------------------------
    auth_enabled: bool = False
    api_keys: dict[str, str] = {}
    anonymous_owner_id: str | None = None

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    """
    Create and cache a Settings instance.

    create_app() uses this when no settings are passed. Tests build their
    own instance instead:
        create_app(config=Settings(auth_enabled=True), search_service=...)
    """
    return Settings()


settings = Settings()
