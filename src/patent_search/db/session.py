"""
Engine and sessions for the patent database.

Pool sizing and SQL echo come from ``Settings`` (``DB_POOL_SIZE``,
``DB_MAX_OVERFLOW``, ``DB_ECHO``). The API opens one session per request;
the background worker and the indexing script open one per drained stage.
"""

from __future__ import annotations

from typing import Any, AsyncGenerator, Dict

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from ..config import Settings, settings
from .models import Base


def engine_options(config: Settings) -> Dict[str, Any]:
    return {
        "echo": config.db_echo,
        "pool_pre_ping": True,
        "pool_size": config.db_pool_size,
        "max_overflow": config.db_max_overflow,
    }


def build_engine(config: Settings) -> AsyncEngine:
    return create_async_engine(config.database_url, **engine_options(config))


async_engine = build_engine(settings)

AsyncSessionLocal = async_sessionmaker(
    bind=async_engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Request-scoped session. Pipelines commit per item; whatever is left is
    committed when the request succeeds and rolled back when it raises.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def create_schema() -> None:
    """
    Create the pgvector extension and the three patent tables if missing.
    """
    async with async_engine.begin() as conn:
        await conn.execute(text("CREATE EXTENSION IF NOT EXISTS vector"))
        await conn.run_sync(Base.metadata.create_all)
