# =============================================================================
# Application Entry Point - FastAPI App Factory
# =============================================================================
#
# create_app() wires the collaborators once and stores them on app.state:
#
#   ProviderRegistry ─┐
#   Retriever ────────┼─► AgenticSearchService ─► app.state.search_service
#     ├── ChromaDocumentSearch
#     └── HttpWebSearch
#
# Tests pass a prebuilt service (and settings) to skip all external wiring.
#
# Run locally:
#   uvicorn agentic_rag.main:create_app --factory --reload
#   agentic-rag-search            (console script → main())
# =============================================================================

from __future__ import annotations

import logging
import os
from typing import Final

import uvicorn
from fastapi import FastAPI

from agentic_rag.agents.retriever import Retriever
from agentic_rag.api import health, search
from agentic_rag.config import Settings, get_settings
from agentic_rag.services.llm import ProviderRegistry
from agentic_rag.services.search_service import AgenticSearchService
from agentic_rag.services.vectorstore import ChromaDocumentSearch
from agentic_rag.services.web_search import HttpWebSearch

logger = logging.getLogger(__name__)

DEFAULT_HOST: Final[str] = "0.0.0.0"
DEFAULT_PORT: Final[int] = 8000

_LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(config: Settings) -> None:
    logging.basicConfig(level=config.log_level.upper(), format=_LOG_FORMAT)


def build_search_service(config: Settings) -> AgenticSearchService:
    """Construct the search service and its collaborators from settings."""
    retriever = Retriever(
        document_search=ChromaDocumentSearch(config=config),
        web_search=HttpWebSearch(config=config),
        max_snippet_length=config.max_snippet_length,
        web_max_results=config.web_search_max_results,
        timeout=config.retrieval_timeout_seconds,
    )
    return AgenticSearchService(
        config=config,
        registry=ProviderRegistry(config),
        retriever=retriever,
    )


def create_app(
    *,
    config: Settings | None = None,
    search_service: AgenticSearchService | None = None,
) -> FastAPI:
    config = config or get_settings()
    configure_logging(config)

    app = FastAPI(
        title=config.app_name,
        version=config.app_version,
        debug=config.debug,
    )

    app.state.settings = config
    app.state.search_service = search_service or build_search_service(config)

    app.include_router(health.router)
    app.include_router(search.router)

    logger.info(
        "%s v%s started (auth=%s)",
        config.app_name, config.app_version, config.auth_enabled,
    )
    return app


def _read_server_port() -> int:
    configured_port = os.getenv("PORT", str(DEFAULT_PORT)).strip()
    port = int(configured_port)
    if port <= 0:
        raise ValueError("PORT must be greater than zero")
    return port


def main() -> None:
    uvicorn.run(
        "agentic_rag.main:create_app",
        factory=True,
        host=os.getenv("HOST", DEFAULT_HOST).strip() or DEFAULT_HOST,
        port=_read_server_port(),
        reload=False,
    )


if __name__ == "__main__":
    main()
