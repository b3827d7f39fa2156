"""Central configuration constants for the Pelican document store."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Final

try:  # Python 3.11+
    import tomllib
except ModuleNotFoundError:  # pragma: no cover - fallback for 3.10
    import tomli as tomllib

PROJECT_ROOT: Final[Path] = Path(__file__).resolve().parent.parent
DEFAULT_CONFIG_PATH = Path(os.environ.get("PELICAN_CONFIG_FILE", PROJECT_ROOT / "pelican.toml"))


def _load_config_data() -> Dict[str, Any]:
    if DEFAULT_CONFIG_PATH.exists():
        with DEFAULT_CONFIG_PATH.open("rb") as fh:
            return tomllib.load(fh)
    return {}


_CONFIG_DATA = _load_config_data()


def _get_setting(section: str, name: str, default: Any) -> str:
    env_key = f"PELICAN_{section.upper()}_{name.upper()}"
    if env_key in os.environ:
        return os.environ[env_key]
    section_data = _CONFIG_DATA.get(section, {})
    return str(section_data.get(name, default))


DATA_ROOT = Path(_get_setting("data", "root", Path.home() / ".pelican_store")).expanduser()
INDEX_PATH = Path(_get_setting("data", "index_path", str(DATA_ROOT / "index")))
MAPPING_PATH = Path(_get_setting("data", "mapping_path", str(DATA_ROOT / "mapping.sqlite3")))
LOG_DIR = Path(_get_setting("data", "log_dir", str(DATA_ROOT / "logs")))


@dataclass(frozen=True)
class Paths:
    """Filesystem locations for persisted store state."""

    data_root: Path = DATA_ROOT
    index_path: Path = INDEX_PATH
    mapping_path: Path = MAPPING_PATH
    log_dir: Path = LOG_DIR
    config_file: Path = DEFAULT_CONFIG_PATH


@dataclass(frozen=True)
class ChunkingConfig:
    """Window sizes used when splitting documents, in characters."""

    size: int = int(_get_setting("chunking", "size", 1000))
    overlap: int = int(_get_setting("chunking", "overlap", 200))


@dataclass(frozen=True)
class IndexConfig:
    """ANN index settings.

    ``backend`` is ``chroma`` (HNSW via chromadb) or ``memory`` (brute-force
    cosine scan). ``dimension`` must match the embedding model; the default
    fits ``nomic-embed-text``. The index starts at ``initial_elements`` and
    doubles on demand up to ``max_elements``.
    """

    backend: str = _get_setting("index", "backend", "chroma")
    dimension: int = int(_get_setting("index", "dimension", 768))
    max_elements: int = int(_get_setting("index", "max_elements", 100000))
    initial_elements: int = int(_get_setting("index", "initial_elements", 10000))
    collection: str = _get_setting("index", "collection", "documents")


@dataclass(frozen=True)
class SearchConfig:
    """Similarity search defaults."""

    similarity_threshold: float = float(_get_setting("search", "similarity_threshold", 0.7))
    default_k: int = int(_get_setting("search", "default_k", 5))


@dataclass(frozen=True)
class QueueConfig:
    """Retry policy of the embedding request queue.

    A failed task is retried up to ``max_retries`` times, waiting
    ``2 ** attempt * base_delay`` seconds before each retry.
    """

    max_retries: int = int(_get_setting("queue", "max_retries", 3))
    base_delay: float = float(_get_setting("queue", "base_delay", 1.0))


@dataclass(frozen=True)
class EmbeddingConfig:
    """Embedding provider settings."""

    provider: str = _get_setting("embedding", "provider", "ollama")
    base_url: str = _get_setting("embedding", "base_url", "http://localhost:11434/api")
    model: str = _get_setting("embedding", "model", "nomic-embed-text")
    request_timeout: float = float(_get_setting("embedding", "request_timeout", 30))
    sentence_transformer_model: str = _get_setting(
        "embedding", "sentence_transformer_model", "all-mpnet-base-v2"
    )


@dataclass(frozen=True)
class AppConfig:
    """Aggregate configuration for the document store runtime."""

    paths: Paths = Paths()
    chunking: ChunkingConfig = ChunkingConfig()
    index: IndexConfig = IndexConfig()
    search: SearchConfig = SearchConfig()
    queue: QueueConfig = QueueConfig()
    embedding: EmbeddingConfig = EmbeddingConfig()


CONFIG: Final[AppConfig] = AppConfig()
