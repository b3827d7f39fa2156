"""Brute-force cosine index used as a fallback and as a test oracle."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Dict, List, Optional

import numpy as np

from ..similarity import cosine_similarity, top_k
from .base import AnnIndex, SearchHit

_INDEX_FILENAME = "vectors.npz"


class BruteForceIndex(AnnIndex):
    """Keeps every vector in process memory and scans them all per query.

    When ``path`` is given the index persists to ``<path>/vectors.npz``.
    """

    backend_name = "memory"

    def __init__(self, dimension: int, path: Optional[Path | str] = None) -> None:
        super().__init__(dimension)
        self._vectors: Dict[int, np.ndarray] = {}
        self._path = Path(path) if path is not None else None
        self.logger = logging.getLogger("pelican_store.index.memory")

    @property
    def count(self) -> int:
        return len(self._vectors)

    def ids(self) -> List[int]:
        return list(self._vectors)

    def _contains(self, internal_id: int) -> bool:
        return internal_id in self._vectors

    def _store(self, internal_id: int, vector: np.ndarray) -> None:
        self._vectors[internal_id] = vector

    def _search(self, vector: np.ndarray, k: int) -> List[SearchHit]:
        scored = [
            (internal_id, cosine_similarity(vector, stored))
            for internal_id, stored in self._vectors.items()
        ]
        return [
            SearchHit(internal_id=internal_id, distance=1.0 - score)
            for internal_id, score in top_k(scored, k)
        ]

    def _remove(self, internal_id: int) -> None:
        del self._vectors[internal_id]

    def _reset(self) -> None:
        self._vectors.clear()

    def _release(self) -> None:
        self._vectors.clear()

    # Persistence --------------------------------------------------------
    @property
    def file_path(self) -> Optional[Path]:
        return self._path / _INDEX_FILENAME if self._path is not None else None

    def save(self) -> None:
        target = self.file_path
        if target is None:
            return
        target.parent.mkdir(parents=True, exist_ok=True)
        ids = np.fromiter(self._vectors.keys(), dtype=np.int64, count=len(self._vectors))
        if self._vectors:
            matrix = np.vstack(list(self._vectors.values()))
        else:
            matrix = np.empty((0, self.dimension), dtype=float)
        tmp_path = target.with_suffix(".tmp")
        with tmp_path.open("wb") as fh:
            np.savez(fh, ids=ids, vectors=matrix, dimension=np.int64(self.dimension))
        os.replace(tmp_path, target)
        self.logger.debug("Saved brute-force index to %s", target, extra={"vectors": len(ids)})

    def load(self) -> bool:
        self._require_initialized()
        source = self.file_path
        if source is None or not source.exists():
            return False
        with np.load(source) as data:
            stored_dimension = int(data["dimension"])
            ids = data["ids"].tolist()
            matrix = data["vectors"]
        if stored_dimension != self.dimension:
            raise ValueError(
                f"Persisted index at {source} has dimension {stored_dimension}, expected {self.dimension}"
            )
        self._vectors.clear()
        if len(ids) > self.max_elements:
            self.resize(len(ids))
        for internal_id, row in zip(ids, matrix):
            self.add_point(row, int(internal_id))
        self.logger.info("Loaded brute-force index from %s", source, extra={"vectors": len(ids)})
        return True


__all__ = ["BruteForceIndex"]
