"""
Model Gateway Protocols

One protocol per remote inference capability. Production binds them to the
HTTP clients in ``llm.client`` and ``embeddings.embedder``; tests bind them to
deterministic stubs.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from ..embeddings.models import EmbeddingResult


@runtime_checkable
class TextGenerator(Protocol):
    """
    Contract for the text-generation capability.

    Raises ModelUnavailable or ModelError on failure.
    """

    async def generate(self, prompt: str) -> str:
        ...


@runtime_checkable
class TextEmbedder(Protocol):
    """
    Contract for the embedding capability.

    Raises ModelUnavailable, ModelError or DimensionMismatch on failure.
    """

    async def embed(self, text: str) -> EmbeddingResult:
        ...
