"""
Embedding Data Models

Canonical shapes exchanged between the model gateway, the pipelines and the
search engine.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from pydantic import BaseModel, Field, ConfigDict

from ..config import DEFAULT_PROMPT_TEMPLATE, Settings


class EmbeddingResult(BaseModel):
    """
    A single embedding returned by the embedding capability.
    """

    vector: List[float] = Field(
        ...,
        min_length=1,
        description="Embedding values, one float per dimension.",
    )

    truncated: bool = Field(
        default=False,
        description="True when the input exceeded the model's context window.",
    )

    token_count: Optional[float] = Field(
        default=None,
        ge=0,
        description="Number of input tokens reported by the model.",
    )

    model_config = ConfigDict(
        extra="forbid",
        frozen=True,
    )


@dataclass(frozen=True)
class IndexConfig:
    """
    Per-corpus indexing configuration passed to pipelines and search.

    Several IndexConfig instances can coexist in one process, one per
    corpus/model pairing.
    """

    prompt_template: str = DEFAULT_PROMPT_TEMPLATE
    embedding_dim: Optional[int] = None
    embedding_model: Optional[str] = None
    scan_chunk_size: int = 1000

    @classmethod
    def from_settings(cls, settings: Settings) -> "IndexConfig":
        return cls(
            prompt_template=settings.prompt_template,
            embedding_dim=settings.embedding_dim,
            embedding_model=settings.embedding_model,
            scan_chunk_size=settings.scan_chunk_size,
        )

    def build_prompt(self, abstract: str) -> str:
        return self.prompt_template.format(abstract=abstract)
