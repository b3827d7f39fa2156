"""Cosine similarity and ranking helpers."""

from __future__ import annotations

from typing import Iterable, List, Sequence, Tuple, TypeVar

import numpy as np

from ..errors import DimensionMismatchError

T = TypeVar("T")


def cosine_similarity(a: Sequence[float] | np.ndarray, b: Sequence[float] | np.ndarray) -> float:
    """Return dot(a, b) / (|a| * |b|), or 0.0 when either vector is all zeros."""

    vec_a = np.asarray(a, dtype=float)
    vec_b = np.asarray(b, dtype=float)
    if vec_a.shape != vec_b.shape:
        raise DimensionMismatchError(vec_a.shape[0] if vec_a.ndim else 0, vec_b.shape[0] if vec_b.ndim else 0)
    denom = float(np.linalg.norm(vec_a) * np.linalg.norm(vec_b))
    if denom == 0.0:
        return 0.0
    # Rounding can push |a.a| / |a|^2 slightly past 1.
    return float(np.clip(np.dot(vec_a, vec_b) / denom, -1.0, 1.0))


def top_k(scored: Iterable[Tuple[T, float]], k: int) -> List[Tuple[T, float]]:
    """Return the ``k`` highest-scoring pairs, best first.

    The sort is stable, so equal scores keep their input order. Asking for
    more entries than exist returns all of them.
    """

    if k <= 0:
        return []
    return sorted(scored, key=lambda pair: pair[1], reverse=True)[:k]


__all__ = ["cosine_similarity", "top_k"]
