# =============================================================================
# Unit Tests - Document Search (ChromaDB backend)
# =============================================================================
#
# Tests ChromaDocumentSearch add + scoped similarity search.
# Uses ChromaDB's in-process mode (no external services needed) and a fake
# embedding function, so no embedding API key is required.
# =============================================================================

import asyncio

import chromadb

from agentic_rag.config import Settings
from agentic_rag.services import vectorstore as vectorstore_module
from agentic_rag.services.vectorstore import ChromaDocumentSearch, DocumentHit

_VECTORS = {
    "revenue": [1.0, 0.0, 0.0],
    "expenses": [0.0, 1.0, 0.0],
    "headcount": [0.0, 0.0, 1.0],
}


def _fake_embed(text: str) -> list[float]:
    for word, vector in _VECTORS.items():
        if word in text.lower():
            return vector
    return [0.5, 0.5, 0.5]


def _run(coro):
    """Helper to run async functions in sync tests."""
    return asyncio.run(coro)


class TestChromaDocumentSearch:
    """Tests for ChromaDocumentSearch (in-process mode)."""

    _test_counter = 0

    def _make_store(self) -> ChromaDocumentSearch:
        """Create a store on a unique collection per test."""
        TestChromaDocumentSearch._test_counter += 1
        return ChromaDocumentSearch(
            client=chromadb.Client(),
            collection_name=f"test_documents_{TestChromaDocumentSearch._test_counter}",
            embed=_fake_embed,
        )

    def _seed(self, store: ChromaDocumentSearch) -> None:
        store.add_chunks(
            owner_id="team-a",
            filename="annual.pdf",
            contents=["Revenue increased by 15%", "Expenses decreased by 5%"],
            embeddings=[_VECTORS["revenue"], _VECTORS["expenses"]],
        )
        store.add_chunks(
            owner_id="team-b",
            filename="hr.pdf",
            contents=["Headcount grew to 120", "Revenue per head was flat"],
            embeddings=[_VECTORS["headcount"], [0.9, 0.0, 0.1]],
        )

    def test_add_chunks_returns_ids(self):
        store = self._make_store()
        ids = store.add_chunks(
            owner_id="team-a",
            filename="annual.pdf",
            contents=["Hello world", "Goodbye world"],
            embeddings=[[0.1] * 3, [0.2] * 3],
        )
        assert ids == ["team-a:annual.pdf:0", "team-a:annual.pdf:1"]

    def test_search_ranks_by_similarity(self):
        store = self._make_store()
        self._seed(store)

        hits = _run(store.similarity_search("revenue growth", scope=None, top_k=2))

        assert len(hits) == 2
        assert all(isinstance(h, DocumentHit) for h in hits)
        assert hits[0].text == "Revenue increased by 15%"
        assert hits[0].score >= hits[1].score
        assert hits[0].metadata["filename"] == "annual.pdf"

    def test_search_scoped_to_owner(self):
        store = self._make_store()
        self._seed(store)

        hits = _run(store.similarity_search("revenue", scope="team-b", top_k=5))

        assert {h.metadata["owner_id"] for h in hits} == {"team-b"}
        assert hits[0].text == "Revenue per head was flat"

    def test_identical_vector_scores_one(self):
        store = self._make_store()
        self._seed(store)

        hits = _run(store.similarity_search("expenses", scope="team-a", top_k=1))

        assert hits[0].text == "Expenses decreased by 5%"
        assert abs(hits[0].score - 1.0) < 1e-3

    def test_search_empty_collection(self):
        store = self._make_store()
        assert _run(store.similarity_search("revenue", scope=None, top_k=3)) == []

    def test_default_embedder_receives_store_config(self, monkeypatch):
        seen: list[tuple[str, Settings | None]] = []

        def _recording_embed(text: str, config: Settings | None = None) -> list[float]:
            seen.append((text, config))
            return _fake_embed(text)

        monkeypatch.setattr(vectorstore_module, "embed_query", _recording_embed)
        config = Settings(_env_file=None, chroma_url=None, openai_api_key="sk-store")
        TestChromaDocumentSearch._test_counter += 1
        store = ChromaDocumentSearch(
            client=chromadb.Client(),
            collection_name=f"test_documents_{TestChromaDocumentSearch._test_counter}",
            config=config,
        )

        _run(store.similarity_search("revenue", scope=None, top_k=1))

        assert seen == [("revenue", config)]
