import asyncio
from typing import Callable, Dict, List, Optional, Sequence

import pytest

from patent_search.core.errors import InvalidArgument, ModelError, ModelUnavailable
from patent_search.db import InMemoryRecordStore, PatentDocument
from patent_search.embeddings.models import EmbeddingResult


def make_document(doc_id: str, abstract: Optional[str] = None, title: Optional[str] = None) -> PatentDocument:
    return PatentDocument(
        id=doc_id,
        title=title or f"Title {doc_id}",
        abstract=abstract or f"Abstract of patent {doc_id}.",
        classification_code="G06F",
        claim_count=10,
    )


class StubGenerator:
    """Deterministic text generator; fails for prompts containing chosen markers."""

    def __init__(
        self,
        reply: Optional[Callable[[str], str]] = None,
        errors: Sequence[str] = (),
        unavailable: Sequence[str] = (),
    ):
        self.reply = reply or (lambda prompt: "keywords: " + prompt.rsplit(":", 1)[-1].strip())
        self.errors = list(errors)
        self.unavailable = list(unavailable)
        self.prompts: List[str] = []

    async def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        # Yield to the loop so concurrent runs interleave like real remote calls
        await asyncio.sleep(0)
        if any(marker in prompt for marker in self.unavailable):
            raise ModelUnavailable("backend down")
        if any(marker in prompt for marker in self.errors):
            raise ModelError("content rejected")
        return self.reply(prompt)


class StubEmbedder:
    """Deterministic embedder backed by a text -> vector table."""

    def __init__(
        self,
        vectors: Optional[Dict[str, List[float]]] = None,
        default: Optional[List[float]] = None,
        truncated: Sequence[str] = (),
        errors: Sequence[str] = (),
    ):
        self.vectors = vectors or {}
        self.default = default if default is not None else [1.0, 0.0, 0.0]
        self.truncated = set(truncated)
        self.errors = set(errors)
        self.texts: List[str] = []

    async def embed(self, text: str) -> EmbeddingResult:
        self.texts.append(text)
        await asyncio.sleep(0)
        if not text.strip():
            raise InvalidArgument("Cannot embed blank text")
        if text in self.errors:
            raise ModelError("embedding rejected")
        return EmbeddingResult(
            vector=self.vectors.get(text, self.default),
            truncated=text in self.truncated,
            token_count=float(len(text.split())),
        )


@pytest.fixture
def documents():
    return [make_document(f"D{i}") for i in range(1, 6)]


@pytest.fixture
def store(documents):
    return InMemoryRecordStore(documents)


@pytest.fixture
def generator():
    return StubGenerator()


@pytest.fixture
def embedder():
    return StubEmbedder()
