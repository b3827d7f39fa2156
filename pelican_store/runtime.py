"""Application runtime bootstrap helpers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .config import AppConfig, CONFIG
from .core.index.base import AnnIndex
from .core.index.factory import create_index
from .core.mapping import MappingTable
from .core.service import VectorStoreService
from .embedding_client import EmbeddingProvider
from .request_queue import RequestQueue


@dataclass
class AppRuntime:
    """Bundle of shared services for the document store."""

    config: AppConfig
    embedder: EmbeddingProvider
    index: AnnIndex
    queue: RequestQueue
    mapping: MappingTable
    store: VectorStoreService


def create_runtime(
    config: AppConfig = CONFIG,
    embedder: Optional[EmbeddingProvider] = None,
) -> AppRuntime:
    """Instantiate shared services once, wire them, and load persisted state.

    Dependency order:
    1. Embedding provider, ANN index, request queue, mapping table
    2. VectorStoreService (needs all of the above)
    """
    if embedder is None:
        # Deferred so the sentence-transformers stack is only imported when needed.
        from .embeddings import create_embedder

        embedder = create_embedder(config)
    index = create_index(config)
    queue = RequestQueue(base_delay=config.queue.base_delay, max_retries=config.queue.max_retries)
    mapping = MappingTable(config.paths.mapping_path)

    store = VectorStoreService(embedder, index, queue=queue, mapping=mapping, config=config)
    store.initialize()

    return AppRuntime(
        config=config,
        embedder=embedder,
        index=index,
        queue=queue,
        mapping=mapping,
        store=store,
    )


__all__ = ["AppRuntime", "create_runtime"]
