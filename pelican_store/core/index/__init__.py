"""ANN index backends and factory."""

from __future__ import annotations

from .base import AnnIndex, SearchHit
from .factory import create_index
from .memory_impl import BruteForceIndex

__all__ = ["AnnIndex", "BruteForceIndex", "SearchHit", "create_index"]
