# =============================================================================
# Web Search - Pluggable Provider Client
# =============================================================================
#
# The agentic search engine consumes web search through the WebSearch
# protocol. HttpWebSearch talks to one of three HTTP providers:
#
#   duckduckgo - Instant Answer API, no key (abstract + related topics)
#   tavily     - POST https://api.tavily.com/search, needs TAVILY_API_KEY
#   brave      - GET  https://api.search.brave.com/res/v1/web/search,
#                needs BRAVE_API_KEY
#
# Errors are NOT swallowed here. The retriever owns failure isolation and
# logs/drops web results per sub-query.
# =============================================================================

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Protocol

import httpx

from agentic_rag.config import Settings, settings

logger = logging.getLogger(__name__)

_DUCKDUCKGO_URL = "https://api.duckduckgo.com/"
_TAVILY_URL = "https://api.tavily.com/search"
_BRAVE_URL = "https://api.search.brave.com/res/v1/web/search"

# Provider-side result bounds
_MIN_RESULTS = 1
_MAX_RESULTS = 10


@dataclass
class WebHit:
    """A single web search result."""

    title: str
    url: str
    snippet: str


class WebSearch(Protocol):
    """Web search capability, optionally disabled by configuration."""

    @property
    def enabled(self) -> bool:
        ...

    async def search(self, query: str, max_results: int) -> list[WebHit]:
        ...


class HttpWebSearch:
    """
    Web search over HTTP against DuckDuckGo, Tavily or Brave.

    `enabled` is False when the feature flag is off or the selected
    provider needs an API key that is not configured.
    """

    def __init__(
        self,
        config: Settings | None = None,
        client: httpx.AsyncClient | None = None,
        timeout: float = 10.0,
    ) -> None:
        self._settings = config or settings
        self._provider = self._settings.web_search_provider.strip().lower()
        self._client = client
        self._timeout = timeout

    @property
    def enabled(self) -> bool:
        if not self._settings.web_search_enabled:
            return False
        if self._provider == "tavily":
            return bool(self._settings.tavily_api_key)
        if self._provider == "brave":
            return bool(self._settings.brave_api_key)
        return True

    async def search(self, query: str, max_results: int) -> list[WebHit]:
        """Run one web search. Returns [] when disabled."""
        if not self.enabled:
            return []

        max_results = min(max(max_results, _MIN_RESULTS), _MAX_RESULTS)

        if self._client is not None:
            return await self._dispatch(self._client, query, max_results)
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            return await self._dispatch(client, query, max_results)

    async def _dispatch(
        self,
        client: httpx.AsyncClient,
        query: str,
        max_results: int,
    ) -> list[WebHit]:
        if self._provider == "tavily":
            hits = await self._search_tavily(client, query, max_results)
        elif self._provider == "brave":
            hits = await self._search_brave(client, query, max_results)
        else:
            hits = await self._search_duckduckgo(client, query, max_results)

        logger.debug(
            "Web search (%s) returned %d hits for '%s'",
            self._provider, len(hits), query[:80],
        )
        return hits

    # -------------------------------------------------------------------------
    # Providers
    # -------------------------------------------------------------------------

    async def _search_duckduckgo(
        self,
        client: httpx.AsyncClient,
        query: str,
        max_results: int,
    ) -> list[WebHit]:
        response = await client.get(
            _DUCKDUCKGO_URL,
            params={
                "q": query,
                "format": "json",
                "no_html": 1,
                "skip_disambig": 1,
            },
        )
        response.raise_for_status()
        body: dict[str, Any] = response.json() or {}

        hits: list[WebHit] = []
        abstract = body.get("AbstractText")
        if abstract:
            hits.append(WebHit(
                title="Summary",
                url=body.get("AbstractURL") or "",
                snippet=abstract,
            ))

        for topic in body.get("RelatedTopics") or []:
            if len(hits) >= max_results:
                break
            text = topic.get("Text")
            if not text:
                continue
            hits.append(WebHit(
                title=text if len(text) <= 100 else text[:100] + "...",
                url=topic.get("FirstURL") or "",
                snippet=text,
            ))

        return hits[:max_results]

    async def _search_tavily(
        self,
        client: httpx.AsyncClient,
        query: str,
        max_results: int,
    ) -> list[WebHit]:
        response = await client.post(
            _TAVILY_URL,
            json={
                "api_key": self._settings.tavily_api_key,
                "query": query,
                "max_results": max_results,
            },
        )
        response.raise_for_status()
        results = (response.json() or {}).get("results") or []

        return [
            WebHit(
                title=r.get("title") or "",
                url=r.get("url") or "",
                snippet=r.get("content") or "",
            )
            for r in results[:max_results]
        ]

    async def _search_brave(
        self,
        client: httpx.AsyncClient,
        query: str,
        max_results: int,
    ) -> list[WebHit]:
        response = await client.get(
            _BRAVE_URL,
            params={"q": query, "count": max_results},
            headers={
                "Accept": "application/json",
                "X-Subscription-Token": self._settings.brave_api_key,
            },
        )
        response.raise_for_status()
        web = (response.json() or {}).get("web") or {}

        return [
            WebHit(
                title=r.get("title") or "",
                url=r.get("url") or "",
                snippet=r.get("description") or "",
            )
            for r in (web.get("results") or [])[:max_results]
        ]
