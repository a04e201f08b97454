"""
Similarity Search Engine

Exact top-k cosine-distance search over every stored embedding.

Responsibilities
----------------
- Validate the request before any remote call
- Embed the query exactly once
- Linearly scan the corpus in numpy-vectorised chunks
- Rank by (distance, document_id) ascending
- Join the winners back to their title and abstract

The scan is a deliberate full-corpus pass; there is no approximate index.
"""

from __future__ import annotations

import heapq
import logging
from typing import AsyncIterator, List, Tuple

import numpy as np

from ..api.models import SearchHit
from ..core.errors import DimensionMismatch, InvalidArgument
from ..core.gateway import TextEmbedder
from ..core.vectors import as_vector, cosine_distances, require_nonzero
from ..db.record_store import RecordStore
from ..embeddings.models import IndexConfig

logger = logging.getLogger("patents.search")


class SimilaritySearchEngine:
    """
    Read-only, stateless search over a RecordStore.

    Safe to share between concurrent requests; each call observes whatever
    the pipelines have committed so far.
    """

    def __init__(
        self,
        store: RecordStore,
        embedder: TextEmbedder,
        config: IndexConfig | None = None,
    ) -> None:
        self._store = store
        self._embedder = embedder
        self._config = config or IndexConfig()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def search(self, query_text: str, k: int) -> List[SearchHit]:
        """
        Return up to ``k`` documents closest to ``query_text``.

        Parameters
        ----------
        query_text : str
            Free-text query. Must not be blank.

        k : int
            Maximum number of results. Must be positive.

        Returns
        -------
        List[SearchHit]
            Ordered by ascending distance, ties by document ID.

        Raises
        ------
        InvalidArgument
            For a blank query or non-positive ``k``.
        ModelUnavailable, ModelError
            If the query embedding call fails.
        DimensionMismatch
            If the query or a stored vector has the wrong dimensionality.
        DegenerateVector
            If the query or a stored vector is all zeros.
        """
        if isinstance(k, bool) or not isinstance(k, int) or k <= 0:
            raise InvalidArgument(f"k must be a positive integer, got {k!r}")
        if not isinstance(query_text, str) or not query_text.strip():
            raise InvalidArgument("Query text must not be empty.")

        result = await self._embedder.embed(query_text)
        query = as_vector(result.vector, expected_dim=self._config.embedding_dim)
        require_nonzero(query, "query vector")

        ranked = await self.rank(query, k)

        hits: List[SearchHit] = []
        for distance, document_id in ranked:
            document = await self._store.get_document(document_id)
            hits.append(
                SearchHit(
                    document_id=document_id,
                    title=document.title,
                    abstract=document.abstract,
                    distance=distance,
                )
            )

        logger.debug("Search returned %d of k=%d results", len(hits), k)
        return hits

    async def rank(self, query: np.ndarray, k: int) -> List[Tuple[float, str]]:
        """
        Return the ``k`` smallest ``(distance, document_id)`` pairs in the corpus.
        """
        best: List[Tuple[float, str]] = []

        async for document_ids, matrix in self._chunks(query.size):
            distances = cosine_distances(query, matrix)
            candidates = list(zip(distances.tolist(), document_ids))
            best = heapq.nsmallest(k, best + candidates)

        return best

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _chunks(self, query_dim: int) -> AsyncIterator[Tuple[List[str], np.ndarray]]:
        chunk_size = self._config.scan_chunk_size
        document_ids: List[str] = []
        rows: List[np.ndarray] = []

        async for document_id, vector in self._store.scan_embeddings():
            row = as_vector(vector)
            # Stored vectors define the corpus dimensionality
            if row.size != query_dim:
                raise DimensionMismatch(expected=int(row.size), actual=query_dim)
            rows.append(row)
            document_ids.append(document_id)
            if len(rows) >= chunk_size:
                yield document_ids, np.vstack(rows)
                document_ids, rows = [], []

        if rows:
            yield document_ids, np.vstack(rows)
