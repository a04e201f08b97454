"""
Patent Search Application Entry Point

This module defines the FastAPI application instance, registers all routers,
configures global exception handling, and provides a test-friendly application
factory.

Design Goals
------------
- Deterministic startup
- Centralized router registration
- Domain errors mapped to stable HTTP responses
- Test-friendly via create_app()
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import AsyncIterator

from fastapi import FastAPI

from .config import settings
from .core.errors import (
    PatentSearchError,
    patent_search_error_handler,
    unhandled_exception_handler,
)

from .api import (
    health_routes,
    search_routes,
    pipeline_routes,
    stats_routes,
)
from .api.dependencies import get_embedder, get_index_config, get_llm_client
from .db import async_engine
from .pipelines.worker import process_pipelines_worker_task


logger = logging.getLogger("patents.app")


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


@contextlib.asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    Fail-fast configuration check, optional pipeline worker, engine disposal.
    """
    configure_logging(settings.log_level)
    logger.info("Starting patent-search")

    if not settings.openai_api_key.get_secret_value():
        raise RuntimeError("OPENAI_API_KEY is not configured")

    worker = None
    if settings.pipeline_worker_enabled:
        worker = asyncio.create_task(
            process_pipelines_worker_task(
                generator=get_llm_client(),
                embedder=get_embedder(),
                config=get_index_config(),
                batch_size=settings.default_batch_size,
                interval=settings.pipeline_worker_interval,
            )
        )

    yield

    logger.info("Shutting down patent-search")
    if worker is not None:
        worker.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await worker
    await async_engine.dispose()


# ---------------------------------------------------------------------
# Application Factory (Test-Friendly)
# ---------------------------------------------------------------------

def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns
    -------
    FastAPI
        Fully configured FastAPI application.
    """
    app = FastAPI(
        title="patent-search",
        version="0.1.0",
        lifespan=lifespan,
    )

    # --------------------------------------------------------------
    # Exception Handling
    # --------------------------------------------------------------

    app.add_exception_handler(PatentSearchError, patent_search_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    # --------------------------------------------------------------
    # Router Registration
    # --------------------------------------------------------------

    app.include_router(health_routes.router)
    app.include_router(search_routes.router)
    app.include_router(pipeline_routes.router)
    app.include_router(stats_routes.router)

    return app


# ---------------------------------------------------------------------
# Default Application Instance (for Uvicorn/Gunicorn)
# ---------------------------------------------------------------------

app = create_app()
