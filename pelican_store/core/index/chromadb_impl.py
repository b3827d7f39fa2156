"""Chroma (HNSW) backend for the ANN index abstraction."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, Optional

import numpy as np
from chromadb import PersistentClient
from chromadb.api.models.Collection import Collection

from .base import AnnIndex, SearchHit


class ChromaIndex(AnnIndex):
    """ANN index backed by a persistent Chroma collection in cosine space.

    Chroma keys records by string, so internal ids are stored as their
    decimal representation. Chroma writes through to disk on every call,
    which makes ``save`` a no-op.
    """

    backend_name = "chroma"

    def __init__(self, dimension: int, path: Path | str, collection: str = "documents") -> None:
        super().__init__(dimension)
        self._path = Path(path)
        self._collection_name = collection
        self._client = PersistentClient(path=str(self._path))
        self._collection: Optional[Collection] = None
        self._ids: Dict[int, None] = {}
        self.logger = logging.getLogger("pelican_store.index.chroma")

    def _get_collection(self) -> Collection:
        if self._collection is None:
            self._collection = self._client.get_or_create_collection(
                name=self._collection_name,
                metadata={"hnsw:space": "cosine"},
            )
        return self._collection

    def _sync_ids(self) -> None:
        response = self._get_collection().get(include=[])
        self._ids = {int(raw_id): None for raw_id in response.get("ids", [])}

    def _open(self) -> None:
        self._sync_ids()

    @property
    def count(self) -> int:
        return len(self._ids)

    def ids(self) -> List[int]:
        return list(self._ids)

    def _contains(self, internal_id: int) -> bool:
        return internal_id in self._ids

    def _store(self, internal_id: int, vector: np.ndarray) -> None:
        self._get_collection().upsert(
            ids=[str(internal_id)],
            embeddings=[vector.tolist()],
        )
        self._ids[internal_id] = None

    def _search(self, vector: np.ndarray, k: int) -> List[SearchHit]:
        response = self._get_collection().query(
            query_embeddings=[vector.tolist()],
            n_results=k,
            include=["distances"],
        )
        ids = response.get("ids", [[]])[0] or []
        distances = (response.get("distances") or [[]])[0] or []
        return [
            SearchHit(internal_id=int(raw_id), distance=float(distance))
            for raw_id, distance in zip(ids, distances)
        ]

    def _remove(self, internal_id: int) -> None:
        self._get_collection().delete(ids=[str(internal_id)])
        self._ids.pop(internal_id, None)

    def _reset(self) -> None:
        if self._collection is not None or self._ids:
            self._client.delete_collection(name=self._collection_name)
        self._collection = None
        self._ids = {}

    def _release(self) -> None:
        self._collection = None
        self._ids = {}

    def save(self) -> None:
        self.logger.debug("Chroma persists on write; nothing to flush", extra={"vectors": self.count})

    def load(self) -> bool:
        self._require_initialized()
        self._sync_ids()
        if self.count > self.max_elements:
            self.resize(self.count)
        self.logger.info(
            "Loaded chroma collection %s from %s",
            self._collection_name,
            self._path,
            extra={"vectors": self.count},
        )
        return bool(self._ids)


__all__ = ["ChromaIndex"]
