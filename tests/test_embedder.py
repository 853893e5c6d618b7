# =============================================================================
# Unit Tests - Embedding Service
# =============================================================================
#
# The OpenAI client class is replaced with a recording fake; no network
# calls are made.
# =============================================================================

from __future__ import annotations

from types import SimpleNamespace

import pytest

from agentic_rag.config import Settings
from agentic_rag.services import embedder as embedder_module
from agentic_rag.services.embedder import embed_query, embed_texts


def _settings(**overrides) -> Settings:
    values = {
        "openai_api_key": "",
        "llm_api_key": None,
        "embedding_base_url": None,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


class _FakeEmbeddings:

    def __init__(self, owner: "_FakeOpenAI") -> None:
        self._owner = owner

    def create(self, **kwargs):
        self._owner.requests.append(kwargs)
        # Returned in reverse; embed_texts places vectors by index
        data = [
            SimpleNamespace(index=i, embedding=[float(i), float(len(text))])
            for i, text in reversed(list(enumerate(kwargs["input"])))
        ]
        return SimpleNamespace(data=data, usage=SimpleNamespace(prompt_tokens=7))


class _FakeOpenAI:
    instances: list["_FakeOpenAI"] = []

    def __init__(self, **kwargs) -> None:
        self.kwargs = kwargs
        self.requests: list[dict] = []
        self.embeddings = _FakeEmbeddings(self)
        _FakeOpenAI.instances.append(self)


@pytest.fixture(autouse=True)
def _fake_client(monkeypatch):
    _FakeOpenAI.instances = []
    monkeypatch.setattr(embedder_module, "OpenAI", _FakeOpenAI)
    monkeypatch.setattr(embedder_module, "_clients", {})
    monkeypatch.setattr(embedder_module, "settings", _settings())


class TestEmbedTexts:

    def test_empty_input_makes_no_call(self):
        assert embed_texts([], _settings(openai_api_key="sk-test")) == []
        assert _FakeOpenAI.instances == []

    def test_results_follow_input_order(self):
        vectors = embed_texts(["a", "bbb"], _settings(openai_api_key="sk-test"))
        assert vectors == [[0.0, 1.0], [1.0, 3.0]]

    def test_uses_passed_config(self):
        config = _settings(
            llm_api_key="sk-shared",
            embedding_model="text-embedding-3-large",
            embedding_dimensions=256,
            embedding_base_url="https://embeddings.internal/v1",
        )
        embed_texts(["revenue"], config)

        client = _FakeOpenAI.instances[0]
        assert client.kwargs == {
            "api_key": "sk-shared",
            "base_url": "https://embeddings.internal/v1",
        }
        assert client.requests[0] == {
            "model": "text-embedding-3-large",
            "input": ["revenue"],
            "dimensions": 256,
        }

    def test_missing_key_ignores_module_settings(self, monkeypatch):
        monkeypatch.setattr(
            embedder_module, "settings", _settings(openai_api_key="sk-global"),
        )
        with pytest.raises(ValueError, match="No API key configured"):
            embed_texts(["revenue"], _settings())

    def test_defaults_to_module_settings(self, monkeypatch):
        monkeypatch.setattr(
            embedder_module, "settings", _settings(openai_api_key="sk-global"),
        )
        embed_texts(["revenue"])
        assert _FakeOpenAI.instances[0].kwargs == {"api_key": "sk-global"}

    def test_client_cached_per_key(self):
        config = _settings(openai_api_key="sk-test")
        embed_texts(["a"], config)
        embed_texts(["b"], config)
        embed_texts(["c"], _settings(openai_api_key="sk-other"))
        assert len(_FakeOpenAI.instances) == 2


class TestEmbedQuery:

    def test_single_vector(self):
        assert embed_query("abcd", _settings(openai_api_key="sk-test")) == [0.0, 4.0]
