"""
API Models

This module defines the Pydantic models used for request/response validation
across the search, pipeline and stats endpoints. SearchHit and BatchReport
are also the return types of the core engine and pipelines.

Design Goals
------------
- Strong typing
- Safe defaults (no shared mutable state)
- Explicit output contracts shared by the HTTP layer and the core
"""

from __future__ import annotations

from typing import List, Literal
from pydantic import BaseModel, Field, ConfigDict, computed_field


# ---------------------------------------------------------------------
# Core Output Contracts (Authoritative)
# ---------------------------------------------------------------------

class SearchHit(BaseModel):
    """
    A single ranked search result.

    ``distance`` is cosine distance; smaller means more similar.
    """
    document_id: str = Field(..., min_length=1)
    title: str
    abstract: str
    distance: float = Field(..., ge=0.0, le=2.0)

    model_config = ConfigDict(extra="forbid", frozen=True)


class BatchReport(BaseModel):
    """
    Outcome of one pipeline batch.

    processed: rows created by this run
    skipped:   rows another run created first (idempotent no-op)
    failed:    items whose model call failed; they stay pending
    """
    stage: Literal["enrichment", "embedding"]
    selected: int = Field(default=0, ge=0)
    processed: int = Field(default=0, ge=0)
    skipped: int = Field(default=0, ge=0)
    failed_ids: List[str] = Field(default_factory=list)

    # "failed" is computed and comes back in when the response is re-validated
    model_config = ConfigDict(extra="ignore")

    @computed_field
    @property
    def failed(self) -> int:
        return len(self.failed_ids)


# ---------------------------------------------------------------------
# Search Models
# ---------------------------------------------------------------------

class SearchRequest(BaseModel):
    """
    Semantic search request payload.
    """
    query: str = Field(..., min_length=1)
    k: int = Field(default=5, ge=1)

    model_config = ConfigDict(extra="forbid")


# ---------------------------------------------------------------------
# Pipeline Models
# ---------------------------------------------------------------------

class BatchRequest(BaseModel):
    """
    Pipeline batch request payload. Omitted batch_size uses the configured default.
    """
    batch_size: int | None = Field(default=None, ge=1)

    model_config = ConfigDict(extra="forbid")


# ---------------------------------------------------------------------
# Stats Models
# ---------------------------------------------------------------------

class StatsResponse(BaseModel):
    """
    Row counts per stage and outstanding work.
    """
    documents: int = Field(..., ge=0)
    summaries: int = Field(..., ge=0)
    embeddings: int = Field(..., ge=0)
    pending_enrichment: int = Field(..., ge=0)
    pending_embedding: int = Field(..., ge=0)

    model_config = ConfigDict(extra="forbid")
