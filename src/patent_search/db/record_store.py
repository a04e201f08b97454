"""
Record Store

The storage contract consumed by the pipelines and the search engine, and its
PostgreSQL implementation.

Atomicity of the "process each document once" guarantee lives here: inserts
are conditional on the document_id primary key, so two concurrent writers
can never both create a summary or embedding for the same document.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import (
    AsyncIterator,
    Collection,
    Dict,
    List,
    Optional,
    Protocol,
    Sequence,
    Tuple,
    runtime_checkable,
)

from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.dialects.postgresql import insert as pg_insert

from ..core.errors import AlreadyProcessed, NotFound
from .models import PatentDocument, PatentSummary, PatentEmbedding


@dataclass(frozen=True)
class EmbeddingMetadata:
    """Metadata persisted alongside an embedding vector."""
    truncated: bool = False
    token_count: Optional[float] = None
    model: Optional[str] = None


@runtime_checkable
class RecordStore(Protocol):
    """
    Contract for durable storage of documents, summaries and embeddings.

    Implementations:
    - SqlRecordStore (PostgreSQL + pgvector)
    - InMemoryRecordStore (testing/development)
    """

    async def get_unenriched_ids(
        self, limit: int, exclude: Collection[str] = ()
    ) -> List[str]:
        """Document IDs with no summary and not in ``exclude``, ascending, at most ``limit``."""
        ...

    async def get_unembedded_ids(
        self, limit: int, exclude: Collection[str] = ()
    ) -> List[str]:
        """Summary IDs with no embedding and not in ``exclude``, ascending, at most ``limit``."""
        ...

    async def insert_summary(self, document_id: str, text: str) -> None:
        """Create a summary; raises AlreadyProcessed or NotFound."""
        ...

    async def insert_embedding(
        self,
        document_id: str,
        vector: Sequence[float],
        metadata: EmbeddingMetadata,
    ) -> None:
        """Create an embedding; raises AlreadyProcessed or NotFound."""
        ...

    async def get_document(self, document_id: str) -> PatentDocument:
        ...

    async def get_summary(self, document_id: str) -> PatentSummary:
        ...

    def scan_embeddings(self) -> AsyncIterator[Tuple[str, Sequence[float]]]:
        """
        Lazily yield ``(document_id, vector)`` for every document that has a
        summary and an embedding. Each call starts a fresh, finite scan.
        """
        ...

    async def get_embedding_dim(self) -> Optional[int]:
        """Dimensionality established by the stored corpus, if any."""
        ...

    async def get_stats(self) -> Dict[str, int]:
        ...

    async def commit(self) -> None:
        ...


def build_stats(documents: int, summaries: int, embeddings: int) -> Dict[str, int]:
    return {
        "documents": documents,
        "summaries": summaries,
        "embeddings": embeddings,
        "pending_enrichment": documents - summaries,
        "pending_embedding": summaries - embeddings,
    }


class SqlRecordStore:
    """
    PostgreSQL-backed record store.

    Pending work is selected with anti-joins; writes use
    ``INSERT ... ON CONFLICT DO NOTHING RETURNING`` and are committed by the
    caller through ``commit()``.
    """

    def __init__(self, session: AsyncSession, yield_per: int = 1000) -> None:
        """
        Initialize with an async database session.

        Parameters
        ----------
        session : AsyncSession
            SQLAlchemy async session for database operations.
        yield_per : int
            Rows fetched per round trip while scanning embeddings.
        """
        self._session = session
        self._yield_per = yield_per

    async def commit(self) -> None:
        """
        Commit the current transaction.
        """
        await self._session.commit()

    # ------------------------------------------------------------------
    # Pending work selection
    # ------------------------------------------------------------------

    @staticmethod
    def unenriched_ids_statement(limit: int, exclude: Collection[str] = ()):
        stmt = (
            select(PatentDocument.id)
            .outerjoin(PatentSummary, PatentSummary.document_id == PatentDocument.id)
            .where(PatentSummary.document_id.is_(None))
        )
        if exclude:
            stmt = stmt.where(PatentDocument.id.not_in(list(exclude)))
        return stmt.order_by(PatentDocument.id).limit(limit)

    @staticmethod
    def unembedded_ids_statement(limit: int, exclude: Collection[str] = ()):
        stmt = (
            select(PatentSummary.document_id)
            .outerjoin(
                PatentEmbedding,
                PatentEmbedding.document_id == PatentSummary.document_id,
            )
            .where(PatentEmbedding.document_id.is_(None))
        )
        if exclude:
            stmt = stmt.where(PatentSummary.document_id.not_in(list(exclude)))
        return stmt.order_by(PatentSummary.document_id).limit(limit)

    async def get_unenriched_ids(
        self, limit: int, exclude: Collection[str] = ()
    ) -> List[str]:
        result = await self._session.execute(self.unenriched_ids_statement(limit, exclude))
        return list(result.scalars().all())

    async def get_unembedded_ids(
        self, limit: int, exclude: Collection[str] = ()
    ) -> List[str]:
        result = await self._session.execute(self.unembedded_ids_statement(limit, exclude))
        return list(result.scalars().all())

    # ------------------------------------------------------------------
    # Conditional inserts
    # ------------------------------------------------------------------

    async def insert_summary(self, document_id: str, text: str) -> None:
        stmt = (
            pg_insert(PatentSummary)
            .values(document_id=document_id, text=text)
            .on_conflict_do_nothing(index_elements=[PatentSummary.document_id])
            .returning(PatentSummary.document_id)
        )
        await self._insert_once(stmt, document_id, "summary")

    async def insert_embedding(
        self,
        document_id: str,
        vector: Sequence[float],
        metadata: EmbeddingMetadata,
    ) -> None:
        stmt = (
            pg_insert(PatentEmbedding)
            .values(
                document_id=document_id,
                embedding=list(vector),
                truncated=metadata.truncated,
                token_count=metadata.token_count,
                model=metadata.model,
            )
            .on_conflict_do_nothing(index_elements=[PatentEmbedding.document_id])
            .returning(PatentEmbedding.document_id)
        )
        await self._insert_once(stmt, document_id, "embedding")

    async def _insert_once(self, stmt, document_id: str, kind: str) -> None:
        try:
            result = await self._session.execute(stmt)
        except IntegrityError as exc:
            # Only the foreign key can fail here; the primary key conflict is absorbed.
            await self._session.rollback()
            raise NotFound(f"Cannot create {kind} for unknown record {document_id!r}") from exc

        if result.scalar_one_or_none() is None:
            raise AlreadyProcessed(f"{kind.capitalize()} for {document_id!r} already exists")

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_document(self, document_id: str) -> PatentDocument:
        document = await self._session.get(PatentDocument, document_id)
        if document is None:
            raise NotFound(f"Document {document_id!r} not found")
        return document

    async def get_summary(self, document_id: str) -> PatentSummary:
        summary = await self._session.get(PatentSummary, document_id)
        if summary is None:
            raise NotFound(f"Summary for {document_id!r} not found")
        return summary

    async def scan_embeddings(self) -> AsyncIterator[Tuple[str, Sequence[float]]]:
        stmt = (
            select(PatentEmbedding.document_id, PatentEmbedding.embedding)
            .join(PatentSummary, PatentSummary.document_id == PatentEmbedding.document_id)
            .join(PatentDocument, PatentDocument.id == PatentSummary.document_id)
            .order_by(PatentEmbedding.document_id)
            .execution_options(yield_per=self._yield_per)
        )
        result = await self._session.stream(stmt)
        async for row in result:
            yield row.document_id, row.embedding

    async def get_embedding_dim(self) -> Optional[int]:
        stmt = select(func.vector_dims(PatentEmbedding.embedding)).limit(1)
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_stats(self) -> Dict[str, int]:
        counts = []
        for model in (PatentDocument, PatentSummary, PatentEmbedding):
            result = await self._session.execute(
                select(func.count()).select_from(model)
            )
            counts.append(result.scalar() or 0)
        return build_stats(*counts)
