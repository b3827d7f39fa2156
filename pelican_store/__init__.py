"""Local semantic document store: chunking, embedding and ANN search."""

from __future__ import annotations

from .core.chunking import Chunk, chunk_document, chunk_text
from .core.document import Document, MappingEntry, SearchResult, StoreStats
from .core.service import VectorStoreService
from .core.similarity import cosine_similarity, top_k
from .errors import (
    AlreadyInitializedError,
    CapacityExceededError,
    DimensionMismatchError,
    DocumentNotFoundError,
    IngestionError,
    ProviderError,
    StoreError,
    StoreNotInitializedError,
)
from .request_queue import RequestQueue

__all__ = [
    "AlreadyInitializedError",
    "CapacityExceededError",
    "Chunk",
    "DimensionMismatchError",
    "Document",
    "DocumentNotFoundError",
    "IngestionError",
    "MappingEntry",
    "ProviderError",
    "RequestQueue",
    "SearchResult",
    "StoreError",
    "StoreNotInitializedError",
    "StoreStats",
    "VectorStoreService",
    "chunk_document",
    "chunk_text",
    "cosine_similarity",
    "top_k",
]
