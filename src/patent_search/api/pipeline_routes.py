"""
Pipeline Routes

Trigger a single enrichment or embedding batch. Callers (schedulers, ops
scripts) invoke these repeatedly until ``processed`` is 0.
"""

from fastapi import APIRouter, Depends
from typing import Annotated

from .models import BatchRequest, BatchReport
from .dependencies import get_embedder, get_index_config, get_llm_client, get_record_store
from ..config import settings
from ..core.gateway import TextEmbedder, TextGenerator
from ..db import RecordStore
from ..embeddings.models import IndexConfig
from ..pipelines.embedding import EmbeddingPipeline
from ..pipelines.enrichment import EnrichmentPipeline

router = APIRouter(prefix="/pipeline", tags=["pipeline"])


@router.post(
    "/enrich",
    response_model=BatchReport,
    summary="Summarize one batch of pending documents",
)
async def run_enrichment_batch(
    req: BatchRequest,
    store: Annotated[RecordStore, Depends(get_record_store)],
    generator: Annotated[TextGenerator, Depends(get_llm_client)],
    config: Annotated[IndexConfig, Depends(get_index_config)],
) -> BatchReport:
    pipeline = EnrichmentPipeline(store, generator, config)
    return await pipeline.run_batch(req.batch_size or settings.default_batch_size)


@router.post(
    "/embed",
    response_model=BatchReport,
    summary="Embed one batch of pending summaries",
)
async def run_embedding_batch(
    req: BatchRequest,
    store: Annotated[RecordStore, Depends(get_record_store)],
    embedder: Annotated[TextEmbedder, Depends(get_embedder)],
    config: Annotated[IndexConfig, Depends(get_index_config)],
) -> BatchReport:
    pipeline = EmbeddingPipeline(store, embedder, config)
    return await pipeline.run_batch(req.batch_size or settings.default_batch_size)
