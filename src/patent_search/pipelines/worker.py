"""
Pipeline drain loop and periodic background worker.
"""
import asyncio
import logging
from typing import Optional

from ..core.errors import ModelUnavailable
from ..core.gateway import TextEmbedder, TextGenerator
from ..db import AsyncSessionLocal, SqlRecordStore
from ..embeddings.models import IndexConfig
from .base import BatchPipeline
from .embedding import EmbeddingPipeline
from .enrichment import EnrichmentPipeline

logger = logging.getLogger(__name__)


async def drain(
    pipeline: BatchPipeline,
    batch_size: int,
    max_batches: Optional[int] = None,
) -> int:
    """
    Run batches until one selects nothing. Returns the total created.

    IDs that fail are excluded from the following batches of this drain, so a
    run of failing items at the head of the queue cannot hide the items behind
    them. They stay pending for the next drain.
    """
    total = 0
    batches = 0
    failed: set[str] = set()
    while max_batches is None or batches < max_batches:
        report = await pipeline.run_batch(batch_size, exclude=failed)
        batches += 1
        total += report.processed
        if report.selected == 0:
            break
        failed.update(report.failed_ids)
    return total


async def process_pipelines_worker_task(
    generator: TextGenerator,
    embedder: TextEmbedder,
    config: IndexConfig,
    batch_size: int,
    interval: float,
):
    """
    Background worker that drains both stages, then sleeps for ``interval``.
    """
    logger.info("Pipeline worker started (batch_size=%d, interval=%.0fs).", batch_size, interval)

    while True:
        try:
            await run_pipelines_once(generator, embedder, config, batch_size)
        except asyncio.CancelledError:
            logger.info("Pipeline worker cancelled.")
            break
        except ModelUnavailable as exc:
            logger.warning("Model backend unavailable, retrying next cycle: %s", exc)
        except Exception:
            logger.exception("Unexpected error in pipeline worker")

        try:
            await asyncio.sleep(interval)
        except asyncio.CancelledError:
            logger.info("Pipeline worker cancelled.")
            break


async def run_pipelines_once(
    generator: TextGenerator,
    embedder: TextEmbedder,
    config: IndexConfig,
    batch_size: int,
) -> tuple[int, int]:
    """
    Drain enrichment then embedding inside dedicated DB sessions.
    """
    async with AsyncSessionLocal() as session:
        store = SqlRecordStore(session)
        enriched = await drain(EnrichmentPipeline(store, generator, config), batch_size)

    async with AsyncSessionLocal() as session:
        store = SqlRecordStore(session)
        embedded = await drain(EmbeddingPipeline(store, embedder, config), batch_size)

    if enriched or embedded:
        logger.info("Pipeline cycle: %d summaries, %d embeddings created", enriched, embedded)
    return enriched, embedded
