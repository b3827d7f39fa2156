"""Document store service coordinating chunking, embedding and the ANN index."""

from __future__ import annotations

import logging
import threading
import time
from functools import partial
from typing import Dict, List, Optional
from uuid import uuid4

import numpy as np

from ..config import AppConfig, CONFIG
from ..embedding_client import EmbeddingProvider
from ..errors import (
    CapacityExceededError,
    DimensionMismatchError,
    DocumentNotFoundError,
    IngestionError,
    StoreError,
    StoreNotInitializedError,
)
from ..request_queue import RequestQueue
from .chunking import chunk_document
from .document import Document, MappingEntry, SearchResult, StoreStats
from .index.base import AnnIndex
from .mapping import MappingTable


class VectorStoreService:
    """Owns documents, the id mapping table and the ANN index.

    All embedding calls go through ``queue``; index and mapping mutations are
    serialized by one lock. Persisted state is written index-first and
    mapping-second, and ``initialize`` reconciles the two so that only fully
    committed documents survive a crash.
    """

    def __init__(
        self,
        embedder: EmbeddingProvider,
        index: AnnIndex,
        *,
        queue: Optional[RequestQueue] = None,
        mapping: Optional[MappingTable] = None,
        config: AppConfig = CONFIG,
    ) -> None:
        self.config = config
        self.embedder = embedder
        self.index = index
        self.queue = queue or RequestQueue(
            base_delay=config.queue.base_delay,
            max_retries=config.queue.max_retries,
        )
        self.mapping = mapping or MappingTable(config.paths.mapping_path)
        self.logger = logging.getLogger("pelican_store.store")

        self._documents: Dict[str, Document] = {}
        self._entries: Dict[int, MappingEntry] = {}
        self._document_ids: Dict[str, List[int]] = {}
        self._next_id = 0
        self._generation = 0
        self._lock = threading.RLock()
        self._initialized = False

    # Lifecycle ----------------------------------------------------------
    def initialize(self) -> None:
        """Allocate the index and reload persisted state. Safe to call twice."""

        with self._lock:
            if self._initialized:
                return
            if self.queue.is_closed:
                self.queue.reopen()
            self._initialize_index()
            self._load_state()
            self._initialized = True
        self.logger.info(
            "Vector store initialized",
            extra={"backend": self.index.backend_name, "vectors": len(self._entries), "documents": len(self._documents)},
        )

    def cleanup(self) -> None:
        """Flush persistence and stop the request queue worker.

        The service can be brought back with :meth:`initialize`, which reloads
        the persisted state.
        """

        if not self._initialized:
            return
        with self._lock:
            self.index.save()
            self.mapping.set_next_id(self._next_id)
            self.index.close()
            self._documents.clear()
            self._entries.clear()
            self._document_ids.clear()
            self._initialized = False
        self.queue.shutdown(wait=True)
        self.logger.info("Vector store cleaned up")

    # Public API ---------------------------------------------------------
    def add_document(self, document: Document) -> str:
        """Chunk, embed and index ``document``; return its id.

        Indexing is all-or-nothing: if any chunk fails, the points already
        added for this call are deleted before the error propagates.
        Re-adding an existing id replaces the previous version only once the
        new one is fully indexed, so a replacement needs index capacity for
        both versions at once. When that is not available the call raises
        :class:`CapacityExceededError` and the previous version stays intact.
        """

        self._require_initialized()
        doc_id = document.id or uuid4().hex
        stored = Document(id=doc_id, content=document.content, metadata=dict(document.metadata))
        chunks = chunk_document(doc_id, stored.content, self.config.chunking.size, self.config.chunking.overlap)
        generation = self._generation
        start = time.perf_counter()

        futures = [self.queue.enqueue(partial(self._embed, chunk.text)) for chunk in chunks]
        added: List[MappingEntry] = []
        try:
            for chunk, future in zip(chunks, futures):
                vector = future.result()
                with self._lock:
                    if generation != self._generation:
                        raise StoreError("store was cleared during ingestion")
                    internal_id = self._allocate_id()
                    self._ensure_capacity()
                    self.index.add_point(vector, internal_id)
                    added.append(MappingEntry(internal_id, doc_id, chunk.index, chunk.text))
            with self._lock:
                if generation != self._generation:
                    raise StoreError("store was cleared during ingestion")
                self._commit(stored, added)
        except Exception as exc:
            for future in futures:
                future.cancel()
            self._rollback(added)
            self.logger.error(
                "Ingestion failed, rolled back: %s",
                exc,
                extra={"document_id": doc_id, "chunks": len(added)},
            )
            if isinstance(exc, (DimensionMismatchError, CapacityExceededError)):
                raise
            raise IngestionError(doc_id, exc) from exc

        self.logger.info(
            "Document indexed",
            extra={
                "document_id": doc_id,
                "chunks": len(added),
                "elapsed_ms": round((time.perf_counter() - start) * 1000, 2),
            },
        )
        return doc_id

    def search_similar(self, query: str, k: Optional[int] = None) -> List[SearchResult]:
        """Return up to ``k`` documents most similar to ``query``.

        Hits below the similarity threshold are dropped and each document
        appears once, represented by its best-scoring chunk.
        """

        self._require_initialized()
        k = self.config.search.default_k if k is None else k
        if k <= 0:
            return []
        vector = self.queue.enqueue(partial(self._embed, query)).result()
        threshold = self.config.search.similarity_threshold

        best: Dict[str, SearchResult] = {}
        with self._lock:
            hits = self.index.search_knn(vector, k)
            for hit in hits:
                score = hit.similarity
                if score < threshold:
                    continue
                entry = self._entries.get(hit.internal_id)
                if entry is None:
                    # Point belongs to a document still being ingested.
                    continue
                document = self._documents.get(entry.document_id)
                if document is None:
                    continue
                current = best.get(entry.document_id)
                if current is None or score > current.score:
                    best[entry.document_id] = SearchResult(document=document, score=score, chunk_text=entry.chunk_text)

        results = sorted(best.values(), key=lambda result: result.score, reverse=True)
        self.logger.debug("Similarity search completed", extra={"hits": len(results)})
        return results

    def get_document(self, document_id: str, strict: bool = False) -> Optional[Document]:
        self._require_initialized()
        with self._lock:
            document = self._documents.get(document_id)
        if document is None and strict:
            raise DocumentNotFoundError(document_id)
        return document

    def delete_document(self, document_id: str, strict: bool = False) -> bool:
        """Remove a document and all of its vectors.

        Returns False for unknown ids unless ``strict`` is set, in which case
        :class:`DocumentNotFoundError` is raised.
        """

        self._require_initialized()
        with self._lock:
            if document_id not in self._documents:
                if strict:
                    raise DocumentNotFoundError(document_id)
                return False
            self.mapping.delete_documents([document_id])
            internal_ids = self._document_ids.pop(document_id, [])
            for internal_id in internal_ids:
                self.index.delete_point(internal_id)
                self._entries.pop(internal_id, None)
            del self._documents[document_id]
            self.index.save()
        self.logger.info("Document deleted", extra={"document_id": document_id, "chunks": len(internal_ids)})
        return True

    def clear(self) -> None:
        """Empty the index and the mapping table. Internal ids are not reused."""

        self._require_initialized()
        with self._lock:
            self._generation += 1
            self.mapping.clear(self._next_id)
            self.index.clear_index()
            self._initialize_index()
            self.index.save()
            self._documents.clear()
            self._entries.clear()
            self._document_ids.clear()
        self.logger.info("Vector store cleared")

    def get_stats(self) -> StoreStats:
        with self._lock:
            return StoreStats(
                total_documents=len(self._documents),
                total_vectors=len(self._entries),
                index_size=self.index.count,
                max_elements=self.index.max_elements,
                dimension=self.index.dimension,
                backend=self.index.backend_name,
                pending_requests=len(self.queue),
            )

    # Internals ----------------------------------------------------------
    def _require_initialized(self) -> None:
        if not self._initialized:
            raise StoreNotInitializedError("Vector store not initialized")

    def _embed(self, text: str) -> np.ndarray:
        """Queue task: call the provider and validate the vector's length."""

        vector = np.asarray(self.embedder.embed(text), dtype=float).ravel()
        if vector.shape[0] != self.index.dimension:
            raise DimensionMismatchError(self.index.dimension, vector.shape[0], "embedding")
        return vector

    def _initialize_index(self) -> None:
        ceiling = self.config.index.max_elements
        self.index.initialize(min(self.config.index.initial_elements, ceiling), ceiling=ceiling)

    def _ensure_capacity(self) -> None:
        """Double the index capacity, up to its ceiling, when it is full."""

        capacity = self.index.max_elements
        if self.index.count < capacity or capacity >= self.index.ceiling:
            return
        new_capacity = self.index.resize(capacity * 2)
        self.logger.info("Resized vector index to %s elements", new_capacity, extra={"vectors": self.index.count})

    def _allocate_id(self) -> int:
        internal_id = self._next_id
        self._next_id += 1
        return internal_id

    def _commit(self, document: Document, entries: List[MappingEntry]) -> None:
        doc_id = document.id or ""
        replaced = self._document_ids.get(doc_id, [])
        self.index.save()
        self.mapping.commit_document(document, entries, self._next_id)
        for internal_id in replaced:
            self.index.delete_point(internal_id)
            self._entries.pop(internal_id, None)
        if replaced:
            self.index.save()
        self._documents[doc_id] = document
        self._document_ids[doc_id] = [entry.internal_id for entry in entries]
        for entry in entries:
            self._entries[entry.internal_id] = entry

    def _rollback(self, entries: List[MappingEntry]) -> None:
        with self._lock:
            # Ids handed out to the failed call stay burned across restarts.
            self.mapping.set_next_id(self._next_id)
            if not entries:
                return
            for entry in entries:
                self.index.delete_point(entry.internal_id)
            self.index.save()

    def _load_state(self) -> None:
        documents = self.mapping.load_documents()
        entries = self.mapping.load_entries()
        stored_next_id = self.mapping.get_next_id()
        self.index.load()

        index_ids = self.index.ids()
        live = set(index_ids)
        orphans = [internal_id for internal_id in index_ids if internal_id not in entries]
        for internal_id in orphans:
            self.index.delete_point(internal_id)

        broken = {entry.document_id for internal_id, entry in entries.items() if internal_id not in live}
        if broken:
            self.mapping.delete_documents(broken)
            for internal_id, entry in list(entries.items()):
                if entry.document_id in broken:
                    self.index.delete_point(internal_id)
                    del entries[internal_id]
            for doc_id in broken:
                documents.pop(doc_id, None)
            self.logger.warning(
                "Dropped documents with missing index points",
                extra={"documents": len(broken)},
            )

        self._documents = documents
        self._entries = entries
        self._document_ids = {doc_id: [] for doc_id in documents}
        for internal_id, entry in entries.items():
            self._document_ids.setdefault(entry.document_id, []).append(internal_id)
        self._next_id = max([stored_next_id, *(internal_id + 1 for internal_id in index_ids), *(i + 1 for i in entries)])

        if orphans or broken:
            self.index.save()
            self.mapping.set_next_id(self._next_id)
            self.logger.info("Reconciled persisted index with mapping table", extra={"vectors": len(orphans)})


__all__ = ["VectorStoreService"]
