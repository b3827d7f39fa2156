"""Factory helpers for constructing ANN index instances."""

from __future__ import annotations

import logging

from ...config import AppConfig, CONFIG
from .base import AnnIndex
from .memory_impl import BruteForceIndex

_LOGGER = logging.getLogger("pelican_store.index")


def create_index(config: AppConfig = CONFIG) -> AnnIndex:
    """Instantiate the configured ANN backend.

    The chroma backend falls back to the brute-force index when chromadb is
    missing or cannot open its directory.
    """

    backend = config.index.backend.lower()
    dimension = config.index.dimension
    index_path = config.paths.index_path
    if backend in {"memory", "inmemory", "bruteforce"}:
        return BruteForceIndex(dimension, path=index_path)
    if backend == "chroma":
        try:
            from .chromadb_impl import ChromaIndex

            return ChromaIndex(dimension, path=index_path / "chroma", collection=config.index.collection)
        except Exception as exc:  # noqa: BLE001 - fallback to brute-force index
            _LOGGER.warning(
                "Failed to initialize Chroma backend, falling back to brute-force index: %s", exc
            )
            return BruteForceIndex(dimension, path=index_path)
    raise ValueError(f"Unsupported index backend: {config.index.backend}")


__all__ = ["create_index"]
