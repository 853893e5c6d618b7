# =============================================================================
# Document Search - Vector Similarity over Ingested Documents
# =============================================================================
#
# The agentic search engine consumes document search through the
# DocumentSearch protocol: a query string, a caller scope and top_k in,
# scored text hits out. Ingestion and chunking happen elsewhere; this module
# only reads (add_chunks exists for seeding local collections).
#
# ARCHITECTURE:
#   DocumentSearch (Protocol)
#   └── ChromaDocumentSearch    - ChromaDB (in-process or client/server)
#       ├── add_chunks()        - sync (ChromaDB client is sync)
#       └── similarity_search() - embeds the query, then queries Chroma,
#                                 both via asyncio.to_thread()
#
# SCOPING: every chunk carries an "owner_id" metadata value. A non-null
# scope restricts results to that owner's chunks.
# =============================================================================

from __future__ import annotations

import asyncio
import functools
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Protocol

import chromadb

from agentic_rag.config import Settings, settings
from agentic_rag.services.embedder import embed_query

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Data Structures
# ---------------------------------------------------------------------------


@dataclass
class DocumentHit:
    """
    A single result from vector similarity search.

    `score` is a similarity in [0, 1] when the backend reports one.
    """

    text: str
    metadata: dict[str, Any] = field(default_factory=dict)
    score: float | None = None


# ---------------------------------------------------------------------------
# Protocol Definition
# ---------------------------------------------------------------------------


class DocumentSearch(Protocol):
    """Similarity search over the caller's documents."""

    async def similarity_search(
        self,
        query: str,
        scope: str | None,
        top_k: int,
    ) -> list[DocumentHit]:
        """
        Find the chunks most similar to `query`.

        Args:
            query: Natural-language search string.
            scope: Owner id to restrict the search to, or None for all.
            top_k: Maximum number of hits.

        Returns:
            Hits sorted by similarity (highest first).
        """
        ...


# ---------------------------------------------------------------------------
# Implementation: ChromaDB
# ---------------------------------------------------------------------------


class ChromaDocumentSearch:
    """
    ChromaDB-backed document search.

    ChromaDB supports both in-process and client/server modes:
    - In-process (default): No extra infra, data stored in memory
    - Client/server: Set CHROMA_URL for Docker deployment
    """

    def __init__(
        self,
        client: Any | None = None,
        collection_name: str | None = None,
        embed: Callable[[str], list[float]] | None = None,
        config: Settings | None = None,
    ) -> None:
        config = config or settings
        if client is not None:
            self._client = client
        elif config.chroma_url:
            self._client = chromadb.HttpClient(host=config.chroma_url)
        else:
            self._client = chromadb.Client()

        self._collection = self._client.get_or_create_collection(
            name=collection_name or config.chroma_collection,
            metadata={"hnsw:space": "cosine"},
        )
        self._embed = embed or functools.partial(embed_query, config=config)

    def add_chunks(
        self,
        owner_id: str,
        filename: str,
        contents: list[str],
        embeddings: list[list[float]],
    ) -> list[str]:
        """Store chunks for one file, tagged with owner_id and filename."""
        ids = [f"{owner_id}:{filename}:{i}" for i in range(len(contents))]
        metadatas = [
            {"owner_id": owner_id, "filename": filename, "chunk_index": i}
            for i in range(len(contents))
        ]

        self._collection.add(
            ids=ids,
            documents=contents,
            embeddings=embeddings,
            metadatas=metadatas,
        )

        logger.info(
            "Stored %d chunks for '%s' (owner_id=%s) in ChromaDB",
            len(ids), filename, owner_id,
        )
        return ids

    async def similarity_search(
        self,
        query: str,
        scope: str | None,
        top_k: int,
    ) -> list[DocumentHit]:
        """Embed the query and run a cosine similarity search."""
        query_embedding = await asyncio.to_thread(self._embed, query)

        def _sync_search() -> list[DocumentHit]:
            where_filter = {"owner_id": scope} if scope is not None else None

            results = self._collection.query(
                query_embeddings=[query_embedding],
                n_results=top_k,
                where=where_filter,
                include=["documents", "metadatas", "distances"],
            )

            hits: list[DocumentHit] = []
            if results and results["ids"] and results["ids"][0]:
                for i in range(len(results["ids"][0])):
                    # Chroma cosine distance is in [0, 2]
                    distance = (
                        results["distances"][0][i]
                        if results["distances"]
                        else None
                    )
                    metadata = (
                        results["metadatas"][0][i]
                        if results["metadatas"]
                        else None
                    )
                    text = (
                        results["documents"][0][i]
                        if results["documents"]
                        else ""
                    )
                    hits.append(DocumentHit(
                        text=text or "",
                        metadata=dict(metadata or {}),
                        score=(
                            round(1.0 - distance, 4)
                            if distance is not None
                            else None
                        ),
                    ))
            return hits

        hits = await asyncio.to_thread(_sync_search)
        logger.debug(
            "Chroma search returned %d hits (top_k=%d, scope=%s)",
            len(hits), top_k, scope,
        )
        return hits
