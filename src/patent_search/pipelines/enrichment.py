"""
Enrichment Pipeline

Generates a keyword summary for every document that does not have one yet.
"""

from __future__ import annotations

from typing import Collection, List

from ..core.errors import ModelError
from ..core.gateway import TextGenerator
from ..db.record_store import RecordStore
from ..embeddings.models import IndexConfig
from .base import BatchPipeline


class EnrichmentPipeline(BatchPipeline):
    """
    Document -> Summary stage.

    Call ``enrich`` repeatedly until it returns 0 to drain the backlog.
    """

    stage = "enrichment"

    def __init__(
        self,
        store: RecordStore,
        generator: TextGenerator,
        config: IndexConfig | None = None,
    ) -> None:
        super().__init__(store, config)
        self._generator = generator

    async def enrich(self, batch_size: int) -> int:
        """Summarize up to ``batch_size`` pending documents; return the number created."""
        report = await self.run_batch(batch_size)
        return report.processed

    async def _select(self, limit: int, exclude: Collection[str]) -> List[str]:
        return await self._store.get_unenriched_ids(limit, exclude)

    async def _process(self, document_id: str) -> None:
        document = await self._store.get_document(document_id)
        prompt = self._config.build_prompt(document.abstract)

        text = await self._generator.generate(prompt)
        if not text or not text.strip():
            raise ModelError(f"Empty summary generated for {document_id!r}")

        await self._store.insert_summary(document_id, text.strip())
