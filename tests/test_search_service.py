# =============================================================================
# Unit Tests - AgenticSearchService
# =============================================================================
#
# The service sits between the HTTP layer and the orchestrator: feature flag,
# provider resolution, server-side caps, deadline and answer rendering.
# =============================================================================

from __future__ import annotations

import asyncio
from unittest.mock import MagicMock

from fakes import FakeDocumentSearch, ScriptedLLM, doc_hit

from agentic_rag.agents.retriever import Retriever
from agentic_rag.config import Settings
from agentic_rag.services.search_service import (
    DISABLED_MESSAGE,
    NO_PROVIDER_MESSAGE,
    AgenticSearchService,
    SearchRequest,
)


def _run(coro):
    """Helper to run async functions in sync tests."""
    return asyncio.run(coro)


def _service(llm=None, docs=None, **settings_overrides):
    config = Settings(_env_file=None, **settings_overrides)
    registry = MagicMock()
    registry.resolve.return_value = llm
    service = AgenticSearchService(
        config=config,
        registry=registry,
        retriever=Retriever(docs or FakeDocumentSearch()),
    )
    return service, registry


class TestDisabled:

    def test_search_returns_disabled_result(self):
        llm = ScriptedLLM()
        docs = FakeDocumentSearch()
        service, registry = _service(llm, docs, agentic_search_enabled=False)

        result = _run(service.search(SearchRequest(query="anything")))

        assert result.error == DISABLED_MESSAGE
        assert result.iterations == []
        assert result.answer is None
        assert llm.calls == []
        assert docs.calls == []
        registry.resolve.assert_not_called()

    def test_status_disabled(self):
        service, registry = _service(ScriptedLLM(), agentic_search_enabled=False)
        assert service.status() == {"enabled": False, "available": False}
        registry.resolve.assert_not_called()


class TestStatus:

    def test_available_with_provider(self):
        service, _ = _service(ScriptedLLM())
        assert service.status() == {"enabled": True, "available": True}

    def test_unavailable_without_provider(self):
        service, _ = _service(None)
        assert service.status() == {"enabled": True, "available": False}


class TestConfigurationError:

    def test_no_provider_ends_before_iterating(self):
        docs = FakeDocumentSearch()
        service, registry = _service(None, docs)

        result = _run(service.search(SearchRequest(query="q", provider="nope", model="m")))

        assert result.error == NO_PROVIDER_MESSAGE
        assert result.iterations == []
        assert result.total_sources_found == 0
        assert result.total_time_ms >= 0
        assert docs.calls == []
        registry.resolve.assert_called_once_with("nope", "m")


class TestBounds:

    def test_caps_clamp_request(self):
        llm = ScriptedLLM(
            decompose="q one\nq two\nq three",
            refine=["q four\nq five\nq six", "q seven", "q eight"],
        )
        service, _ = _service(llm, max_search_iterations=2, max_sub_queries=2)

        result = _run(service.search(SearchRequest(query="q", max_iterations=5, max_sub_queries=10)))

        assert len(result.iterations) == 2
        assert all(len(r.sub_queries) <= 2 for r in result.iterations)

    def test_top_k_defaults_to_settings(self):
        docs = FakeDocumentSearch()
        service, _ = _service(ScriptedLLM(decompose="revenue 2024"), docs, retrieval_top_k=4)

        _run(service.search(SearchRequest(query="q", max_iterations=1)))

        assert docs.calls[0][2] == 4

    def test_request_top_k_used(self):
        docs = FakeDocumentSearch()
        service, _ = _service(ScriptedLLM(decompose="revenue 2024"), docs)

        _run(service.search(SearchRequest(query="q", max_iterations=1, top_k=9)))

        assert docs.calls[0][2] == 9

    def test_scope_forwarded(self):
        docs = FakeDocumentSearch()
        service, _ = _service(ScriptedLLM(decompose="revenue 2024"), docs)

        _run(service.search(SearchRequest(query="q", max_iterations=1), scope="team-a"))

        assert docs.calls[0][1] == "team-a"

    def test_expired_deadline_cancels(self):
        llm = ScriptedLLM(decompose="revenue 2024", refine=["margins 2024"])
        service, _ = _service(llm, search_deadline_seconds=0.000001)

        result = _run(service.search(SearchRequest(query="q", max_iterations=3)))

        assert result.error.startswith("Search cancelled:")
        assert len(result.iterations) == 1


class TestRendering:

    def test_answer_rendered_to_html(self):
        llm = ScriptedLLM(decompose="revenue 2024", answer="**Revenue** rose [Source 1].")
        docs = FakeDocumentSearch(default=[doc_hit("Revenue was $10B.")])
        service, _ = _service(llm, docs)

        result = _run(service.search(SearchRequest(query="q", max_iterations=1)))

        assert result.answer == "**Revenue** rose [Source 1]."
        assert "<strong>Revenue</strong>" in result.rendered_answer

    def test_failed_run_not_rendered(self):
        service, _ = _service(ScriptedLLM(fail_on={"decompose"}))
        result = _run(service.search(SearchRequest(query="q")))
        assert result.rendered_answer is None
        assert result.error.startswith("Search failed:")
