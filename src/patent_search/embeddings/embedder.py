"""
Embedding Client

This module implements the embedding capability on top of an OpenAI-compatible
embeddings endpoint. It is responsible for:

- A single request per input text
- Network and transport error isolation
- Strict response validation, including dimensionality
- Reporting truncation and token usage metadata

Two response shapes are accepted:

    OpenAI:  {"data": [{"embedding": [...]}], "usage": {"prompt_tokens": n}}
    Vertex:  {"predictions": [{"embeddings": {"values": [...],
              "statistics": {"truncated": bool, "token_count": n}}}]}

The class is stateless and safe to reuse across requests.
"""

from __future__ import annotations

from typing import Any, Dict, Optional
import logging

import httpx

from ..config import settings
from ..core.errors import InvalidArgument, ModelError
from ..core.http import post_json
from ..core.vectors import as_vector
from .models import EmbeddingResult

logger = logging.getLogger("patents.embedder")


class Embedder:
    """
    Asynchronous embedding generator for single texts.

    This class performs no caching; persistence is handled by the
    embedding pipeline.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        dimensions: Optional[int] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """
        Initialize an Embedder.

        Parameters
        ----------
        api_key : Optional[str]
            Optional override for the API key. Defaults to settings.openai_api_key.

        model : Optional[str]
            Optional override for the embedding model. Defaults to settings.embedding_model.

        base_url : Optional[str]
            API root; ``/embeddings`` is appended.

        timeout : Optional[float]
            HTTP timeout for each request. Defaults to settings.request_timeout.

        dimensions : Optional[int]
            Expected vector length. When set, any other length raises
            DimensionMismatch. Defaults to settings.embedding_dim.

        transport : Optional[httpx.AsyncBaseTransport]
            Transport override, used by tests.
        """
        self.api_key = api_key or settings.openai_api_key.get_secret_value()
        self.model = model or settings.embedding_model
        self.url = (base_url or settings.openai_base_url).rstrip("/") + "/embeddings"
        self.timeout = timeout or settings.request_timeout
        self.dimensions = dimensions if dimensions is not None else settings.embedding_dim
        self._transport = transport

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def embed(self, text: str) -> EmbeddingResult:
        """
        Generate the embedding for one input text.

        Raises
        ------
        InvalidArgument
            If ``text`` is blank.
        ModelUnavailable
            If the backend is unreachable or times out.
        ModelError
            If the request is rejected or the response is malformed.
        DimensionMismatch
            If the vector length differs from ``self.dimensions``.
        """
        if not text or not text.strip():
            raise InvalidArgument("Cannot embed empty text.")

        data = await post_json(
            self.url,
            {"model": self.model, "input": [text]},
            headers={"Authorization": f"Bearer {self.api_key}"},
            timeout=self.timeout,
            transport=self._transport,
        )

        result = self._extract_embedding(data)
        as_vector(result.vector, expected_dim=self.dimensions)

        if result.truncated:
            logger.warning(
                "Embedding input was truncated by the model (%s tokens).",
                result.token_count,
            )

        return result

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _extract_embedding(data: Dict[str, Any]) -> EmbeddingResult:
        """
        Parse and validate a single-input embedding response.

        Raises
        ------
        ModelError
            If the API returns an unexpected structure.
        """
        if "data" in data:
            records = data["data"]
            if not isinstance(records, list) or len(records) != 1:
                raise ModelError("'data' field must be a list with exactly one record.")
            record = records[0]
            if not isinstance(record, dict) or "embedding" not in record:
                raise ModelError(f"Malformed embedding record: {record!r}")
            values = record["embedding"]
            token_count = _field(data, "usage").get("prompt_tokens")
            truncated = bool(record.get("truncated", False))
        elif "predictions" in data:
            predictions = data["predictions"]
            if not isinstance(predictions, list) or len(predictions) != 1:
                raise ModelError("'predictions' field must be a list with exactly one record.")
            if not isinstance(predictions[0], dict):
                raise ModelError(f"Malformed prediction record: {predictions[0]!r}")
            embeddings = predictions[0].get("embeddings")
            if not isinstance(embeddings, dict) or "values" not in embeddings:
                raise ModelError("Prediction record missing 'embeddings.values'.")
            values = embeddings["values"]
            statistics = _field(embeddings, "statistics")
            token_count = statistics.get("token_count")
            truncated = bool(statistics.get("truncated", False))
        else:
            raise ModelError("Embedding response missing 'data' field.")

        if not isinstance(values, list) or not values or not all(
            isinstance(x, (float, int)) and not isinstance(x, bool) for x in values
        ):
            raise ModelError("Invalid embedding vector: must be a non-empty float list.")

        if token_count is not None and (
            isinstance(token_count, bool)
            or not isinstance(token_count, (float, int))
            or token_count < 0
        ):
            raise ModelError(f"Invalid token count: {token_count!r}")

        try:
            return EmbeddingResult(
                vector=[float(x) for x in values],
                truncated=truncated,
                token_count=float(token_count) if token_count is not None else None,
            )
        except (TypeError, ValueError) as exc:
            raise ModelError(f"Invalid embedding response: {exc}") from exc


def _field(container: Dict[str, Any], name: str) -> Dict[str, Any]:
    """Optional nested object; absent or null reads as empty."""
    value = container.get(name)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ModelError(f"'{name}' field must be an object, got {value!r}")
    return value
