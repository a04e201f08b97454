from functools import lru_cache
from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import settings
from ..db import get_async_session, SqlRecordStore, RecordStore
from ..llm.client import LLMClient
from ..embeddings.embedder import Embedder
from ..embeddings.models import IndexConfig


@lru_cache
def get_llm_client() -> LLMClient:
    return LLMClient()


@lru_cache
def get_embedder() -> Embedder:
    return Embedder()


@lru_cache
def get_index_config() -> IndexConfig:
    return IndexConfig.from_settings(settings)


async def get_record_store(
    session: Annotated[AsyncSession, Depends(get_async_session)],
) -> RecordStore:
    return SqlRecordStore(session, yield_per=settings.scan_chunk_size)
