"""
Embedding Pipeline

Embeds the summary of every enriched document that has no embedding yet.

Dimensionality is taken from the IndexConfig when set, otherwise from the
vectors already stored, otherwise pinned by the first vector written. Any
vector of another length aborts the run with DimensionMismatch.
"""

from __future__ import annotations

from typing import Collection, List, Optional

from ..core.errors import DimensionMismatch
from ..core.gateway import TextEmbedder
from ..core.vectors import as_vector, require_nonzero
from ..db.record_store import EmbeddingMetadata, RecordStore
from ..embeddings.models import IndexConfig
from .base import BatchPipeline


class EmbeddingPipeline(BatchPipeline):
    """
    Summary -> Embedding stage.
    """

    stage = "embedding"

    def __init__(
        self,
        store: RecordStore,
        embedder: TextEmbedder,
        config: IndexConfig | None = None,
    ) -> None:
        super().__init__(store, config)
        self._embedder = embedder
        self._dim: Optional[int] = self._config.embedding_dim

    @property
    def dimensions(self) -> Optional[int]:
        return self._dim

    async def embed(self, batch_size: int) -> int:
        """Embed up to ``batch_size`` pending summaries; return the number created."""
        report = await self.run_batch(batch_size)
        return report.processed

    async def _select(self, limit: int, exclude: Collection[str]) -> List[str]:
        return await self._store.get_unembedded_ids(limit, exclude)

    async def _prepare(self) -> None:
        stored_dim = await self._store.get_embedding_dim()
        if stored_dim is None:
            return
        if self._dim is None:
            self._dim = stored_dim
        elif self._dim != stored_dim:
            raise DimensionMismatch(self._dim, stored_dim)

    async def _process(self, document_id: str) -> None:
        summary = await self._store.get_summary(document_id)
        result = await self._embedder.embed(summary.text)

        vector = as_vector(result.vector, expected_dim=self._dim)
        require_nonzero(vector, "embedding")

        if result.truncated:
            self._logger.warning(
                "Summary for %s was truncated by the embedding model; indexing anyway",
                document_id,
            )

        await self._store.insert_embedding(
            document_id,
            vector.tolist(),
            EmbeddingMetadata(
                truncated=result.truncated,
                token_count=result.token_count,
                model=self._config.embedding_model,
            ),
        )

        if self._dim is None:
            self._dim = int(vector.size)
