"""
Error Model and Global Error Handling

This module defines the exception hierarchy shared by the record stores,
model clients, pipelines and search engine, together with the FastAPI
exception handlers that translate them into HTTP responses.

Propagation Rules
-----------------
- Batch pipelines isolate item-level failures (ModelError, ModelUnavailable)
  and swallow AlreadyProcessed as a no-op.
- DimensionMismatch aborts any run.
- Search surfaces every failure directly; there is no partial result.
- Nothing is retried here; retry policy belongs to the caller.
"""

from __future__ import annotations

import logging
from typing import Dict, Any

from fastapi import Request
from fastapi.responses import JSONResponse

logger = logging.getLogger("patents.errors")


# ---------------------------------------------------------------------
# Exception Hierarchy
# ---------------------------------------------------------------------

class PatentSearchError(RuntimeError):
    """Base class for all indexing and retrieval errors."""

    code = "patent_search_error"
    status_code = 500


class NotFound(PatentSearchError):
    """A document, summary or embedding required by a join is missing."""

    code = "not_found"
    status_code = 404


class AlreadyProcessed(PatentSearchError):
    """A conditional insert lost against an existing row for the same ID."""

    code = "already_processed"
    status_code = 409


class ModelUnavailable(PatentSearchError):
    """The remote inference backend could not be reached."""

    code = "model_unavailable"
    status_code = 503


class ModelTimeout(ModelUnavailable):
    """A remote inference call exceeded its timeout."""

    code = "model_timeout"
    status_code = 504


class ModelError(PatentSearchError):
    """The remote inference backend rejected the call or answered malformed data."""

    code = "model_error"
    status_code = 502


class DegenerateVector(PatentSearchError):
    """A zero vector was met where cosine distance is required."""

    code = "degenerate_vector"
    status_code = 502


class DimensionMismatch(PatentSearchError):
    """A vector does not match the dimensionality established for the corpus."""

    code = "dimension_mismatch"
    status_code = 500

    def __init__(self, expected: int, actual: int) -> None:
        super().__init__(
            f"Embedding dimensionality mismatch: expected {expected}, got {actual}"
        )
        self.expected = expected
        self.actual = actual


class InvalidArgument(PatentSearchError, ValueError):
    """Caller input rejected before any remote call is made."""

    code = "invalid_argument"
    status_code = 422


# ---------------------------------------------------------------------
# Public Exception Handlers
# ---------------------------------------------------------------------

async def patent_search_error_handler(
    request: Request,
    exc: PatentSearchError,
) -> JSONResponse:
    """
    Translate a PatentSearchError into its deterministic JSON error body.

    Model and storage failures are logged with their message; the message is
    returned to the client because it never contains credentials or payloads.
    """
    if exc.status_code >= 500:
        logger.error(
            "Request failed: %s %s -> %s: %s",
            request.method,
            request.url.path,
            exc.code,
            exc,
        )

    payload: Dict[str, Any] = {
        "error": exc.code,
        "detail": str(exc),
    }

    return JSONResponse(
        status_code=exc.status_code,
        content=payload,
    )


async def unhandled_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    """
    Catch-all handler for uncaught exceptions.

    Logs the full stack trace internally and returns a generic 500 with no
    internal details.
    """

    logger.exception(
        "Unhandled exception during request: %s %s",
        request.method,
        request.url.path,
        exc_info=exc,
    )

    payload: Dict[str, Any] = {
        "error": "internal_server_error",
        "detail": "Internal server error",
    }

    return JSONResponse(
        status_code=500,
        content=payload,
    )
