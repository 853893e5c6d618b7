# =============================================================================
# Unit Tests - Source Deduplication
# =============================================================================

from agentic_rag.agents.dedup import dedupe, source_key
from agentic_rag.agents.retriever import EvidenceSource, SourceType


def _source(title="report.pdf", snippet="Revenue grew 12%.", kind=SourceType.DOCUMENT, **kw):
    return EvidenceSource(query=kw.pop("query", "q"), source_type=kind, title=title, snippet=snippet, **kw)


class TestSourceKey:

    def test_uses_first_100_chars_of_snippet(self):
        a = _source(snippet="x" * 100 + "tail A")
        b = _source(snippet="x" * 100 + "tail B")
        assert source_key(a) == source_key(b)

    def test_ignores_relevance_url_and_query(self):
        a = _source(query="first", relevance=0.9)
        b = _source(query="second", relevance=0.1, url="https://example.com")
        assert source_key(a) == source_key(b)

    def test_source_type_distinguishes(self):
        assert source_key(_source(kind=SourceType.WEB)) != source_key(_source())

    def test_none_snippet(self):
        assert source_key(_source(snippet=None)) == ("document", "report.pdf", "")


class TestDedupe:

    def test_drops_already_seen(self):
        seen = {source_key(_source())}
        unique, updated = dedupe([_source(), _source(title="other.pdf")], seen)
        assert [s.title for s in unique] == ["other.pdf"]
        assert len(updated) == 2

    def test_drops_duplicates_within_batch(self):
        first = _source(query="first")
        second = _source(query="second")
        unique, _ = dedupe([first, second], set())
        assert unique == [first]

    def test_preserves_order(self):
        batch = [_source(title=t) for t in ("c.pdf", "a.pdf", "b.pdf")]
        unique, _ = dedupe(batch, set())
        assert [s.title for s in unique] == ["c.pdf", "a.pdf", "b.pdf"]

    def test_input_set_not_mutated(self):
        seen: set = set()
        _, updated = dedupe([_source()], seen)
        assert seen == set()
        assert updated == {source_key(_source())}

    def test_empty_batch(self):
        seen = {source_key(_source())}
        unique, updated = dedupe([], seen)
        assert unique == []
        assert updated == seen
