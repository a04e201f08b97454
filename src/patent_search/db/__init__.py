"""
Database Package

Provides SQLAlchemy async session management, model definitions for
PostgreSQL with pgvector, and the record store implementations.
"""

from .session import get_async_session, async_engine, AsyncSessionLocal, create_schema
from .models import Base, PatentDocument, PatentSummary, PatentEmbedding
from .record_store import RecordStore, SqlRecordStore, EmbeddingMetadata
from .memory_store import InMemoryRecordStore

__all__ = [
    "get_async_session",
    "async_engine",
    "AsyncSessionLocal",
    "create_schema",
    "Base",
    "PatentDocument",
    "PatentSummary",
    "PatentEmbedding",
    "RecordStore",
    "SqlRecordStore",
    "EmbeddingMetadata",
    "InMemoryRecordStore",
]
