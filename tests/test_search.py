"""
Tests for the similarity search engine: ranking, tie-breaking, stage
filtering and request-level failure semantics.
"""

import pytest

from patent_search.core.errors import (
    DegenerateVector,
    DimensionMismatch,
    InvalidArgument,
    ModelUnavailable,
)
from patent_search.db import EmbeddingMetadata, InMemoryRecordStore
from patent_search.embeddings.models import IndexConfig
from patent_search.search.engine import SimilaritySearchEngine

from conftest import StubEmbedder, make_document


async def build_store(vectors):
    """Store where every key of ``vectors`` is fully enriched and embedded."""
    store = InMemoryRecordStore([make_document(doc_id) for doc_id in vectors])
    for doc_id, vector in vectors.items():
        await store.insert_summary(doc_id, f"summary {doc_id}")
        await store.insert_embedding(doc_id, vector, EmbeddingMetadata())
    return store


CORPUS = {
    "A": [1.0, 0.0, 0.0],
    "B": [0.0, 1.0, 0.0],
    "C": [1.0, 1.0, 0.0],
    "D": [-1.0, 0.0, 0.0],
    "E": [0.0, 0.0, 1.0],
}


class TestRanking:

    @pytest.mark.asyncio
    async def test_results_ordered_by_ascending_distance(self):
        store = await build_store(CORPUS)
        embedder = StubEmbedder(vectors={"x-axis": [2.0, 0.0, 0.0]})
        engine = SimilaritySearchEngine(store, embedder)

        hits = await engine.search("x-axis", 5)

        assert [h.document_id for h in hits] == ["A", "C", "B", "E", "D"]
        assert hits[0].distance == pytest.approx(0.0, abs=1e-12)
        assert hits[-1].distance == pytest.approx(2.0)
        assert hits[0].title == "Title A"
        assert hits[0].abstract == "Abstract of patent A."

    @pytest.mark.asyncio
    async def test_ties_are_broken_by_document_id(self):
        store = await build_store({
            "Z9": [0.0, 1.0],
            "B2": [0.0, 3.0],
            "A1": [0.0, 2.0],
            "M5": [1.0, 0.0],
        })
        embedder = StubEmbedder(vectors={"q": [0.0, 1.0]})

        hits = await SimilaritySearchEngine(store, embedder).search("q", 3)

        assert [h.document_id for h in hits] == ["A1", "B2", "Z9"]
        assert all(h.distance == 0.0 for h in hits)

    @pytest.mark.asyncio
    async def test_repeated_searches_are_deterministic(self):
        store = await build_store(CORPUS)
        embedder = StubEmbedder(vectors={"q": [0.3, 0.7, 0.1]})
        engine = SimilaritySearchEngine(store, embedder)

        first = await engine.search("q", 4)
        second = await engine.search("q", 4)

        assert first == second

    @pytest.mark.asyncio
    async def test_result_length_is_at_most_k(self):
        store = await build_store(CORPUS)
        engine = SimilaritySearchEngine(store, StubEmbedder())

        assert len(await engine.search("q", 2)) == 2
        assert len(await engine.search("q", 50)) == len(CORPUS)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("chunk_size", [1, 2, 3, 1000])
    async def test_chunked_scan_matches_single_pass(self, chunk_size):
        store = await build_store(CORPUS)
        embedder = StubEmbedder(vectors={"q": [0.2, 0.9, 0.4]})
        baseline = await SimilaritySearchEngine(store, embedder).search("q", 3)

        config = IndexConfig(scan_chunk_size=chunk_size)
        hits = await SimilaritySearchEngine(store, embedder, config).search("q", 3)

        assert [h.document_id for h in hits] == [h.document_id for h in baseline]

    @pytest.mark.asyncio
    async def test_query_is_embedded_exactly_once(self):
        store = await build_store(CORPUS)
        embedder = StubEmbedder()

        await SimilaritySearchEngine(store, embedder).search("solar panels", 3)

        assert embedder.texts == ["solar panels"]


class TestCandidateSet:

    @pytest.mark.asyncio
    async def test_documents_missing_a_stage_are_never_returned(self):
        store = await build_store({"A": [1.0, 0.0]})
        store.add_document(make_document("NOSUMMARY"))
        store.add_document(make_document("NOEMBED"))
        await store.insert_summary("NOEMBED", "summary only")

        hits = await SimilaritySearchEngine(store, StubEmbedder(default=[1.0, 0.0])).search("q", 10)

        assert [h.document_id for h in hits] == ["A"]

    @pytest.mark.asyncio
    async def test_empty_corpus_returns_nothing(self):
        store = InMemoryRecordStore([make_document("A")])

        assert await SimilaritySearchEngine(store, StubEmbedder()).search("q", 3) == []


class TestSearchErrors:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("k", [0, -1, True, 1.5])
    async def test_non_positive_k_rejected_before_embedding(self, k):
        store = await build_store(CORPUS)
        embedder = StubEmbedder()

        with pytest.raises(InvalidArgument):
            await SimilaritySearchEngine(store, embedder).search("q", k)

        assert embedder.texts == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("query", ["", "   "])
    async def test_blank_query_rejected(self, query):
        embedder = StubEmbedder()

        with pytest.raises(InvalidArgument):
            await SimilaritySearchEngine(InMemoryRecordStore(), embedder).search(query, 3)

        assert embedder.texts == []

    @pytest.mark.asyncio
    async def test_zero_query_vector_is_an_error(self):
        store = await build_store(CORPUS)
        embedder = StubEmbedder(default=[0.0, 0.0, 0.0])

        with pytest.raises(DegenerateVector):
            await SimilaritySearchEngine(store, embedder).search("q", 3)

    @pytest.mark.asyncio
    async def test_zero_stored_vector_is_an_error(self):
        store = await build_store({"A": [1.0, 0.0], "B": [0.0, 0.0]})

        with pytest.raises(DegenerateVector):
            await SimilaritySearchEngine(store, StubEmbedder(default=[1.0, 0.0])).search("q", 1)

    @pytest.mark.asyncio
    async def test_query_dimension_mismatch(self):
        store = await build_store(CORPUS)
        embedder = StubEmbedder(default=[1.0, 0.0])

        with pytest.raises(DimensionMismatch) as excinfo:
            await SimilaritySearchEngine(store, embedder).search("q", 3)
        assert excinfo.value.expected == 3
        assert excinfo.value.actual == 2

    @pytest.mark.asyncio
    async def test_configured_dimension_checked_before_scan(self):
        store = await build_store(CORPUS)
        config = IndexConfig(embedding_dim=4)

        with pytest.raises(DimensionMismatch):
            await SimilaritySearchEngine(store, StubEmbedder(), config).search("q", 3)

    @pytest.mark.asyncio
    async def test_embedding_failure_surfaces_without_partial_result(self):
        store = await build_store(CORPUS)

        class DownEmbedder:
            async def embed(self, text):
                raise ModelUnavailable("down")

        with pytest.raises(ModelUnavailable):
            await SimilaritySearchEngine(store, DownEmbedder()).search("q", 3)
