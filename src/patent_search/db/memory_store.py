"""
In-memory record store for tests and local development.

Check-and-set inserts run without an await in between, so they are atomic
with respect to other coroutines on the same event loop.
"""

from __future__ import annotations

from typing import AsyncIterator, Collection, Dict, Iterable, List, Optional, Sequence, Tuple

from ..core.errors import AlreadyProcessed, NotFound
from .models import PatentDocument, PatentSummary, PatentEmbedding
from .record_store import EmbeddingMetadata, build_stats


class InMemoryRecordStore:
    """Record store keeping all three stages in dictionaries."""

    def __init__(self, documents: Iterable[PatentDocument] = ()) -> None:
        self._documents: Dict[str, PatentDocument] = {}
        self._summaries: Dict[str, PatentSummary] = {}
        self._embeddings: Dict[str, PatentEmbedding] = {}
        for document in documents:
            self.add_document(document)

    def add_document(self, document: PatentDocument) -> None:
        if document.id in self._documents:
            raise AlreadyProcessed(f"Document {document.id!r} already exists")
        self._documents[document.id] = document

    async def commit(self) -> None:
        return None

    async def get_unenriched_ids(
        self, limit: int, exclude: Collection[str] = ()
    ) -> List[str]:
        pending = sorted(set(self._documents) - set(self._summaries) - set(exclude))
        return pending[:limit]

    async def get_unembedded_ids(
        self, limit: int, exclude: Collection[str] = ()
    ) -> List[str]:
        pending = sorted(set(self._summaries) - set(self._embeddings) - set(exclude))
        return pending[:limit]

    async def insert_summary(self, document_id: str, text: str) -> None:
        if document_id not in self._documents:
            raise NotFound(f"Cannot create summary for unknown record {document_id!r}")
        if document_id in self._summaries:
            raise AlreadyProcessed(f"Summary for {document_id!r} already exists")
        self._summaries[document_id] = PatentSummary(document_id=document_id, text=text)

    async def insert_embedding(
        self,
        document_id: str,
        vector: Sequence[float],
        metadata: EmbeddingMetadata,
    ) -> None:
        if document_id not in self._summaries:
            raise NotFound(f"Cannot create embedding for unknown record {document_id!r}")
        if document_id in self._embeddings:
            raise AlreadyProcessed(f"Embedding for {document_id!r} already exists")
        self._embeddings[document_id] = PatentEmbedding(
            document_id=document_id,
            embedding=[float(x) for x in vector],
            truncated=metadata.truncated,
            token_count=metadata.token_count,
            model=metadata.model,
        )

    async def get_document(self, document_id: str) -> PatentDocument:
        try:
            return self._documents[document_id]
        except KeyError:
            raise NotFound(f"Document {document_id!r} not found") from None

    async def get_summary(self, document_id: str) -> PatentSummary:
        try:
            return self._summaries[document_id]
        except KeyError:
            raise NotFound(f"Summary for {document_id!r} not found") from None

    async def get_embedding(self, document_id: str) -> PatentEmbedding:
        try:
            return self._embeddings[document_id]
        except KeyError:
            raise NotFound(f"Embedding for {document_id!r} not found") from None

    async def scan_embeddings(self) -> AsyncIterator[Tuple[str, Sequence[float]]]:
        snapshot = sorted(self._embeddings.items())
        for document_id, record in snapshot:
            if document_id in self._summaries and document_id in self._documents:
                yield document_id, record.embedding

    async def get_embedding_dim(self) -> Optional[int]:
        for record in self._embeddings.values():
            return len(record.embedding)
        return None

    async def get_stats(self) -> Dict[str, int]:
        return build_stats(
            len(self._documents),
            len(self._summaries),
            len(self._embeddings),
        )
