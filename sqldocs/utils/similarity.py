"""Vector similarity math for the in-memory vector store."""

from __future__ import annotations

from typing import Sequence

import numpy as np


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Return the cosine of the angle between vectors *a* and *b*.

    A zero-magnitude vector has similarity ``0.0`` with everything
    (including itself), never NaN.

    Raises
    ------
    ValueError
        If the vectors have different lengths.
    """
    if len(a) != len(b):
        raise ValueError(f"Vectors must have same dimension: {len(a)} != {len(b)}")

    vec_a = np.asarray(a, dtype=np.float64)
    vec_b = np.asarray(b, dtype=np.float64)

    magnitude = np.linalg.norm(vec_a) * np.linalg.norm(vec_b)
    if magnitude == 0:
        return 0.0
    return float(np.dot(vec_a, vec_b) / magnitude)


def cosine_similarities(matrix: np.ndarray, query: Sequence[float]) -> np.ndarray:
    """Cosine of *query* against every row of *matrix* in one product.

    Rows (or a query) with zero magnitude score ``0.0``.

    Raises
    ------
    ValueError
        If the query length differs from the matrix row length.
    """
    query_vec = np.asarray(query, dtype=np.float64)
    if matrix.shape[1] != query_vec.shape[0]:
        raise ValueError(
            f"Vectors must have same dimension: {matrix.shape[1]} != {query_vec.shape[0]}"
        )

    magnitudes = np.linalg.norm(matrix, axis=1) * np.linalg.norm(query_vec)
    dots = matrix @ query_vec
    scores = np.zeros_like(dots)
    np.divide(dots, magnitudes, out=scores, where=magnitudes != 0)
    return scores
