# =============================================================================
# Unit Tests - HTTP Layer
# =============================================================================
#
# Uses FastAPI's TestClient against create_app() with a prebuilt service
# (scripted LLM, in-memory document search), so no provider or database is
# touched.
# =============================================================================

from __future__ import annotations

import logging
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from fakes import FakeDocumentSearch, ScriptedLLM, doc_hit

from agentic_rag.agents.retriever import Retriever
from agentic_rag.config import Settings
from agentic_rag import main as main_module
from agentic_rag.main import create_app
from agentic_rag.services.auth import hash_api_key
from agentic_rag.services.search_service import DISABLED_MESSAGE, AgenticSearchService

API_KEY = "ars-test-key"


def _client(llm=None, docs=None, **settings_overrides) -> tuple[TestClient, FakeDocumentSearch]:
    config = Settings(_env_file=None, **settings_overrides)
    docs = docs or FakeDocumentSearch(default=[doc_hit("Paris is the capital of France.", "France.pdf")])
    registry = MagicMock()
    registry.resolve.return_value = llm
    service = AgenticSearchService(config=config, registry=registry, retriever=Retriever(docs))
    return TestClient(create_app(config=config, search_service=service)), docs


@pytest.fixture
def llm():
    return ScriptedLLM(
        decompose="capital of France",
        answer="The capital is **Paris** [Source 1].",
    )


class TestHealth:

    def test_health(self):
        client, _ = _client()
        response = client.get("/health")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "ok"
        assert body["version"] == "0.1.0"
        assert body["service"] == "Agentic RAG Search"


class TestStatusEndpoint:

    def test_enabled_and_available(self, llm):
        client, _ = _client(llm)
        assert client.get("/api/agentic-search/status").json() == {
            "enabled": True, "available": True,
        }

    def test_disabled(self, llm):
        client, _ = _client(llm, agentic_search_enabled=False)
        assert client.get("/api/agentic-search/status").json() == {
            "enabled": False, "available": False,
        }


class TestSearchEndpoint:

    def test_camel_case_response(self, llm):
        client, _ = _client(llm)

        response = client.post(
            "/api/agentic-search",
            json={"query": "What is the capital of France?", "maxIterations": 1},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["originalQuery"] == "What is the capital of France?"
        assert body["answer"] == "The capital is **Paris** [Source 1]."
        assert "<strong>Paris</strong>" in body["renderedAnswer"]
        assert body["totalSourcesFound"] == 1
        assert body["totalTimeMs"] >= 0
        assert "error" not in body

        iteration = body["iterations"][0]
        assert iteration["iteration"] == 1
        assert iteration["subQueries"] == ["capital of France"]
        assert iteration["intermediateSummary"] == "Round summary."
        assert "iterationTimeMs" in iteration

        source = iteration["sources"][0]
        assert source["sourceType"] == "document"
        assert source["title"] == "France.pdf"
        assert source["relevance"] == 0.9
        assert "url" not in source

    def test_disabled_returns_400(self, llm):
        client, docs = _client(llm, agentic_search_enabled=False)

        response = client.post("/api/agentic-search", json={"query": "anything"})

        assert response.status_code == 400
        assert response.json() == {"error": DISABLED_MESSAGE}
        assert llm.calls == []
        assert docs.calls == []

    def test_no_provider_reports_error(self):
        client, _ = _client(None)

        response = client.post(
            "/api/agentic-search",
            json={"query": "q", "provider": "nope"},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["error"] == "No chat model available for the specified provider/model"
        assert body["iterations"] == []
        assert "answer" not in body

    def test_engine_failure_in_body(self):
        client, _ = _client(ScriptedLLM(fail_on={"decompose"}))

        response = client.post("/api/agentic-search", json={"query": "q"})

        assert response.status_code == 200
        assert response.json()["error"].startswith("Search failed:")

    @pytest.mark.parametrize("body", [
        {"query": ""},
        {"query": "   "},
        {"query": "q", "maxIterations": 0},
        {"query": "q", "maxIterations": 6},
        {"query": "q", "maxSubQueries": 11},
        {"query": "q", "topK": 0},
        {},
    ])
    def test_invalid_body_rejected(self, llm, body):
        client, _ = _client(llm)
        assert client.post("/api/agentic-search", json=body).status_code == 422

    def test_snake_case_input_accepted(self, llm):
        client, docs = _client(llm)
        response = client.post(
            "/api/agentic-search",
            json={"query": "q", "max_iterations": 1, "top_k": 2},
        )
        assert response.status_code == 200
        assert docs.calls[0][2] == 2


class TestAuth:

    def _auth_client(self, llm):
        return _client(
            llm,
            auth_enabled=True,
            api_keys={hash_api_key(API_KEY): "team-a"},
        )

    def test_missing_key_401(self, llm):
        client, _ = self._auth_client(llm)
        response = client.post("/api/agentic-search", json={"query": "q"})
        assert response.status_code == 401

    def test_invalid_key_401(self, llm):
        client, docs = self._auth_client(llm)
        response = client.post(
            "/api/agentic-search",
            json={"query": "q"},
            headers={"Authorization": "Bearer wrong-key"},
        )
        assert response.status_code == 401
        assert docs.calls == []

    def test_valid_key_scopes_search(self, llm):
        client, docs = self._auth_client(llm)
        response = client.post(
            "/api/agentic-search",
            json={"query": "q", "maxIterations": 1},
            headers={"Authorization": f"Bearer {API_KEY}"},
        )
        assert response.status_code == 200
        assert docs.calls[0][1] == "team-a"

    def test_request_log_names_owner_and_key_prefix(self, llm, caplog):
        client, _ = self._auth_client(llm)
        caplog.set_level(logging.INFO, logger="agentic_rag.api.search")
        client.post(
            "/api/agentic-search",
            json={"query": "q", "maxIterations": 1},
            headers={"Authorization": f"Bearer {API_KEY}"},
        )
        assert "owner=team-a, key=ars-test" in caplog.text
        assert API_KEY not in caplog.text

    def test_anonymous_scope_when_auth_disabled(self, llm):
        client, docs = _client(llm, anonymous_owner_id="public")
        client.post("/api/agentic-search", json={"query": "q", "maxIterations": 1})
        assert docs.calls[0][1] == "public"


class TestEntryPoint:

    def test_import_builds_no_app(self):
        assert not hasattr(main_module, "app")

    def test_main_runs_app_factory(self, monkeypatch):
        run = MagicMock()
        monkeypatch.setattr(main_module.uvicorn, "run", run)
        monkeypatch.setenv("PORT", "9001")

        main_module.main()

        args, kwargs = run.call_args
        assert args == ("agentic_rag.main:create_app",)
        assert kwargs["factory"] is True
        assert kwargs["port"] == 9001

    def test_invalid_port_rejected(self, monkeypatch):
        monkeypatch.setattr(main_module.uvicorn, "run", MagicMock())
        monkeypatch.setenv("PORT", "0")
        with pytest.raises(ValueError, match="PORT"):
            main_module.main()
