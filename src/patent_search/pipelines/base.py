"""
Batch pipeline skeleton shared by the enrichment and embedding stages.

A batch selects up to ``batch_size`` pending IDs, processes each one in
isolation and commits every successful write immediately, so a crash
mid-batch loses at most the item in flight.
"""

from __future__ import annotations

import logging
from typing import Collection, List

from ..api.models import BatchReport
from ..core.errors import (
    AlreadyProcessed,
    DegenerateVector,
    InvalidArgument,
    ModelError,
    ModelUnavailable,
    NotFound,
)
from ..db.record_store import RecordStore
from ..embeddings.models import IndexConfig


def validate_batch_size(batch_size: int) -> None:
    if isinstance(batch_size, bool) or not isinstance(batch_size, int) or batch_size <= 0:
        raise InvalidArgument(f"batch_size must be a positive integer, got {batch_size!r}")


class BatchPipeline:
    """
    Base class for one idempotent, resumable enrichment stage.

    Subclasses implement ``_select`` and ``_process``.
    """

    stage = "enrichment"

    def __init__(self, store: RecordStore, config: IndexConfig | None = None) -> None:
        self._store = store
        self._config = config or IndexConfig()
        self._logger = logging.getLogger(f"patents.{self.stage}")

    async def _select(self, limit: int, exclude: Collection[str]) -> List[str]:
        raise NotImplementedError

    async def _process(self, document_id: str) -> None:
        raise NotImplementedError

    async def _prepare(self) -> None:
        """Hook run once per batch before any item is processed."""

    async def run_batch(
        self, batch_size: int, exclude: Collection[str] = ()
    ) -> BatchReport:
        """
        Process one batch and return its detailed report.

        IDs in ``exclude`` are not selected; callers running several batches
        pass the IDs that already failed so they cannot starve the rest.

        Raises
        ------
        InvalidArgument
            If ``batch_size`` is not a positive integer.
        ModelUnavailable
            If every selected item failed because the backend was unavailable.
        DimensionMismatch
            If a vector does not match the corpus dimensionality.
        """
        validate_batch_size(batch_size)

        document_ids = await self._select(batch_size, exclude)
        report = BatchReport(stage=self.stage, selected=len(document_ids))
        if not document_ids:
            return report

        await self._prepare()
        unavailable = 0

        for document_id in document_ids:
            try:
                await self._process(document_id)
            except AlreadyProcessed:
                self._logger.debug("Skipping %s: already processed", document_id)
                report.skipped += 1
                continue
            except ModelUnavailable as exc:
                unavailable += 1
                self._logger.warning("Model unavailable for %s: %s", document_id, exc)
                report.failed_ids.append(document_id)
                continue
            except (ModelError, DegenerateVector, NotFound, InvalidArgument) as exc:
                self._logger.warning("Failed to process %s: %s", document_id, exc)
                report.failed_ids.append(document_id)
                continue

            await self._store.commit()
            report.processed += 1

        if unavailable == len(document_ids):
            raise ModelUnavailable(
                f"Model backend unavailable for all {unavailable} items in {self.stage} batch"
            )

        self._logger.info(
            "%s batch done: selected=%d processed=%d skipped=%d failed=%d",
            self.stage,
            report.selected,
            report.processed,
            report.skipped,
            report.failed,
        )
        return report
