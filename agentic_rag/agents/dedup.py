"""
Deduplicate evidence sources across rounds of one search.

Two sources are the same when they share source type, title and the first
100 characters of their snippet. Relevance, url and originating sub-query
play no part.
"""

from __future__ import annotations

from agentic_rag.agents.retriever import EvidenceSource

SNIPPET_KEY_LENGTH = 100

SourceKey = tuple[str, str, str]


def source_key(source: EvidenceSource) -> SourceKey:
    snippet = source.snippet or ""
    return (
        source.source_type.value,
        source.title or "",
        snippet[:SNIPPET_KEY_LENGTH],
    )


def dedupe(
    new_sources: list[EvidenceSource],
    seen_keys: set[SourceKey],
) -> tuple[list[EvidenceSource], set[SourceKey]]:
    """
    Keep the sources in `new_sources` whose key has not been seen.

    Duplicates inside `new_sources` are dropped as well (first one wins).
    Order is preserved. `seen_keys` is not modified; the updated key set is
    returned alongside the survivors.
    """
    updated = set(seen_keys)
    unique: list[EvidenceSource] = []
    for source in new_sources:
        key = source_key(source)
        if key in updated:
            continue
        updated.add(key)
        unique.append(source)
    return unique, updated
