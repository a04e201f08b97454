"""
Vector Helpers

Validation and cosine-distance math shared by the embedding pipeline and the
similarity search engine.
"""

from __future__ import annotations

from typing import Optional, Sequence

import numpy as np

from .errors import DegenerateVector, DimensionMismatch, ModelError


def as_vector(values: Sequence[float], expected_dim: Optional[int] = None) -> np.ndarray:
    """
    Convert a float sequence into a 1-d float64 array.

    Raises
    ------
    ModelError
        If the sequence is empty or contains non-finite values.
    DimensionMismatch
        If ``expected_dim`` is given and the length differs.
    """
    vector = np.asarray(values, dtype=np.float64)

    if vector.ndim != 1 or vector.size == 0:
        raise ModelError("Embedding vector must be a non-empty flat sequence.")

    if not np.all(np.isfinite(vector)):
        raise ModelError("Embedding vector contains non-finite values.")

    if expected_dim is not None and vector.size != expected_dim:
        raise DimensionMismatch(expected_dim, vector.size)

    return vector


def require_nonzero(vector: np.ndarray, label: str = "vector") -> float:
    """Return the L2 norm of ``vector``; a zero norm raises DegenerateVector."""
    norm = float(np.linalg.norm(vector))
    if norm == 0.0:
        raise DegenerateVector(f"Cosine distance is undefined for a zero {label}.")
    return norm


def cosine_distance(query: Sequence[float], vector: Sequence[float]) -> float:
    """
    Cosine distance ``1 - dot(q, v) / (|q| * |v|)`` in the range [0, 2].
    """
    v = as_vector(vector)
    q = as_vector(query, expected_dim=v.size)
    return float(cosine_distances(q, v[np.newaxis, :])[0])


def cosine_distances(query: np.ndarray, matrix: np.ndarray) -> np.ndarray:
    """
    Cosine distance between ``query`` and every row of ``matrix``.

    Rows of ``matrix`` must already share the query's dimensionality.
    """
    query_norm = require_nonzero(query, "query vector")
    row_norms = np.linalg.norm(matrix, axis=1)

    if np.any(row_norms == 0.0):
        raise DegenerateVector("Cosine distance is undefined for a zero stored vector.")

    similarity = (matrix @ query) / (row_norms * query_norm)
    # float rounding can push similarity a hair outside [-1, 1]
    return np.clip(1.0 - similarity, 0.0, 2.0)
