"""Abstract ANN index interface and shared dataclasses."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional, Sequence

import numpy as np

from ...errors import (
    AlreadyInitializedError,
    CapacityExceededError,
    DimensionMismatchError,
    StoreNotInitializedError,
)

Vector = Sequence[float] | np.ndarray


@dataclass(frozen=True)
class SearchHit:
    """One neighbour returned by ``search_knn``; distance is ``1 - cosine``."""

    internal_id: int
    distance: float

    @property
    def similarity(self) -> float:
        return 1.0 - self.distance


class AnnIndex(ABC):
    """Capacity-bounded map from integer ids to fixed-dimension vectors.

    Implementations share the validation and capacity bookkeeping defined
    here and only provide storage and neighbour lookup.
    """

    backend_name = "abstract"

    def __init__(self, dimension: int) -> None:
        if dimension <= 0:
            raise ValueError(f"dimension must be positive, got {dimension}")
        self._dimension = dimension
        self._max_elements: Optional[int] = None
        self._ceiling: Optional[int] = None

    # Contract -----------------------------------------------------------
    def initialize(self, max_elements: int, ceiling: Optional[int] = None) -> None:
        """Allocate capacity for ``max_elements`` points.

        ``ceiling`` bounds later :meth:`resize` calls and defaults to
        ``max_elements``, which makes the capacity fixed.
        """

        if self._max_elements is not None:
            raise AlreadyInitializedError(f"{self.backend_name} index is already initialized")
        if max_elements <= 0:
            raise ValueError(f"max_elements must be positive, got {max_elements}")
        self._open()
        self._max_elements = max_elements
        self._ceiling = max(max_elements, ceiling or max_elements)

    def add_point(self, vector: Vector, internal_id: int) -> None:
        """Insert ``vector`` under ``internal_id``, overwriting an existing id."""

        max_elements = self._require_initialized()
        array = self._as_vector(vector)
        if not self._contains(internal_id) and self.count >= max_elements:
            raise CapacityExceededError(max_elements)
        self._store(internal_id, array)

    def search_knn(self, vector: Vector, k: int) -> List[SearchHit]:
        """Return up to ``k`` hits ordered by ascending distance."""

        self._require_initialized()
        array = self._as_vector(vector, context="query vector")
        if k <= 0 or self.count == 0:
            return []
        return self._search(array, min(k, self.count))

    def delete_point(self, internal_id: int) -> None:
        """Remove ``internal_id``; absent ids are ignored."""

        self._require_initialized()
        if self._contains(internal_id):
            self._remove(internal_id)

    def clear_index(self) -> None:
        """Drop every point and return to the uninitialized state."""

        self._reset()
        self._max_elements = None
        self._ceiling = None

    def close(self) -> None:
        """Release in-memory state and return to the uninitialized state.

        Unlike :meth:`clear_index`, persisted contents are kept, so a later
        ``initialize`` followed by ``load`` picks them up again.
        """

        self._release()
        self._max_elements = None
        self._ceiling = None

    def resize(self, new_max_elements: int) -> int:
        """Grow capacity to ``new_max_elements``, capped at the ceiling.

        Returns the resulting capacity. Shrinking raises ``ValueError``.
        """

        current = self._require_initialized()
        if new_max_elements < current:
            raise ValueError(f"cannot shrink {self.backend_name} index from {current} to {new_max_elements}")
        self._max_elements = min(new_max_elements, self.ceiling)
        return self._max_elements

    # Introspection ------------------------------------------------------
    @property
    def dimension(self) -> int:
        return self._dimension

    @property
    def max_elements(self) -> int:
        return self._max_elements or 0

    @property
    def ceiling(self) -> int:
        """Largest capacity :meth:`resize` may reach."""
        return self._ceiling or 0

    @property
    def is_initialized(self) -> bool:
        return self._max_elements is not None

    @property
    @abstractmethod
    def count(self) -> int:
        """Number of live points."""

    @abstractmethod
    def ids(self) -> List[int]:
        """Live ids in insertion order."""

    # Persistence --------------------------------------------------------
    @abstractmethod
    def save(self) -> None:
        """Flush index contents to durable storage."""

    @abstractmethod
    def load(self) -> bool:
        """Replace in-memory contents with persisted ones.

        Returns False when nothing has been persisted yet.
        """

    # Backend hooks ------------------------------------------------------
    def _open(self) -> None:
        """Prepare backend storage; called once per ``initialize``."""

    def _release(self) -> None:
        """Drop in-memory state without touching persisted data."""

    @abstractmethod
    def _contains(self, internal_id: int) -> bool:
        ...

    @abstractmethod
    def _store(self, internal_id: int, vector: np.ndarray) -> None:
        ...

    @abstractmethod
    def _search(self, vector: np.ndarray, k: int) -> List[SearchHit]:
        ...

    @abstractmethod
    def _remove(self, internal_id: int) -> None:
        ...

    @abstractmethod
    def _reset(self) -> None:
        ...

    # Helpers ------------------------------------------------------------
    def _require_initialized(self) -> int:
        if self._max_elements is None:
            raise StoreNotInitializedError(f"{self.backend_name} index is not initialized")
        return self._max_elements

    def _as_vector(self, vector: Vector, context: str = "vector") -> np.ndarray:
        array = np.asarray(vector, dtype=float).ravel()
        if array.shape[0] != self._dimension:
            raise DimensionMismatchError(self._dimension, array.shape[0], context)
        return array


__all__ = ["AnnIndex", "SearchHit", "Vector"]
