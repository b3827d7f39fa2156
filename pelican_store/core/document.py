"""Shared document abstractions for ingestion and search."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Optional

Metadata = Dict[str, Any]


@dataclass
class Document:
    """A free-form text document owned by the store."""

    content: str
    id: Optional[str] = None
    metadata: Metadata = field(default_factory=dict)


@dataclass(frozen=True)
class MappingEntry:
    """Links one internal vector id back to the chunk it was embedded from."""

    internal_id: int
    document_id: str
    chunk_index: int
    chunk_text: str


@dataclass
class SearchResult:
    """A document matched by similarity search, with its best chunk."""

    document: Document
    score: float
    chunk_text: str

    @property
    def document_id(self) -> str:
        return self.document.id or ""


@dataclass(frozen=True)
class StoreStats:
    """Point-in-time counters reported by ``VectorStoreService.get_stats``."""

    total_documents: int
    total_vectors: int
    index_size: int
    max_elements: int
    dimension: int
    backend: str
    pending_requests: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


__all__ = ["Document", "MappingEntry", "Metadata", "SearchResult", "StoreStats"]
