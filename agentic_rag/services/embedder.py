# =============================================================================
# Embedding Service - Query Vectors (Provider-Agnostic)
# =============================================================================
#
# Generates vector embeddings using any OpenAI-compatible embedding API
# (OpenAI, Alibaba Cloud DashScope, ...). The base_url is configurable.
#
# Every call takes an optional Settings; None means the module-level
# settings. The OpenAI client is synchronous; async callers wrap these
# functions in asyncio.to_thread().
# =============================================================================

from __future__ import annotations

import logging
from collections.abc import Sequence

from openai import OpenAI

from agentic_rag.config import Settings, settings

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Embedding Clients - Cached per (api_key, base_url)
# ---------------------------------------------------------------------------
# API key resolution order:
#   1. OPENAI_API_KEY (explicit embedding key)
#   2. LLM_API_KEY (shared key)
# ---------------------------------------------------------------------------

_clients: dict[tuple[str, str | None], OpenAI] = {}


def _get_client(config: Settings) -> OpenAI:
    """Return the cached embedding client for this config's key and URL."""
    resolved_key = config.openai_api_key or config.llm_api_key
    if not resolved_key:
        raise ValueError(
            "No API key configured for embeddings. "
            "Set OPENAI_API_KEY or LLM_API_KEY in .env"
        )

    cache_key = (resolved_key, config.embedding_base_url)
    client = _clients.get(cache_key)
    if client is None:
        client_kwargs: dict = {"api_key": resolved_key}
        if config.embedding_base_url:
            client_kwargs["base_url"] = config.embedding_base_url

        client = OpenAI(**client_kwargs)
        _clients[cache_key] = client

        logger.info(
            "Initialized embedding client (model=%s, base_url=%s)",
            config.embedding_model,
            config.embedding_base_url or "https://api.openai.com/v1",
        )
    return client


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def embed_texts(
    texts: Sequence[str],
    config: Settings | None = None,
) -> list[list[float]]:
    """
    Embed `texts` in one API call, preserving input order.

    Raises:
        ValueError: If no API key is configured.
        openai.APIError: If the API call fails.
    """
    if not texts:
        return []

    config = config or settings
    create_kwargs: dict = {
        "model": config.embedding_model,
        "input": list(texts),
    }
    if config.embedding_dimensions:
        create_kwargs["dimensions"] = config.embedding_dimensions

    response = _get_client(config).embeddings.create(**create_kwargs)

    embeddings: list[list[float]] = [[] for _ in texts]
    for item in response.data:
        embeddings[item.index] = item.embedding

    logger.debug(
        "Embedded %d texts (model=%s, prompt_tokens=%d)",
        len(texts),
        config.embedding_model,
        response.usage.prompt_tokens if response.usage else 0,
    )
    return embeddings


def embed_query(text: str, config: Settings | None = None) -> list[float]:
    """Embed a single search query."""
    return embed_texts([text], config)[0]
