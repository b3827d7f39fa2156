"""Local sentence-transformers embedding backend and provider factory."""

from __future__ import annotations

from functools import lru_cache
from typing import List

from sentence_transformers import SentenceTransformer

from .config import AppConfig, CONFIG
from .embedding_client import EmbeddingProvider, OllamaEmbeddingClient


@lru_cache(maxsize=2)
def _get_model(model_name: str) -> SentenceTransformer:
    """Return a cached embedding model instance."""

    return SentenceTransformer(model_name)


class SentenceTransformerEmbedder:
    """Embeds text in-process with a sentence-transformers model."""

    def __init__(self, model_name: str = CONFIG.embedding.sentence_transformer_model) -> None:
        self.model_name = model_name

    def embed(self, text: str) -> List[float]:
        vector = _get_model(self.model_name).encode(text, normalize_embeddings=True)
        return vector.tolist() if hasattr(vector, "tolist") else list(vector)


def create_embedder(config: AppConfig = CONFIG) -> EmbeddingProvider:
    """Instantiate the configured embedding provider."""

    provider = config.embedding.provider.lower()
    if provider == "ollama":
        return OllamaEmbeddingClient(config.embedding)
    if provider in {"sentence_transformers", "sentence-transformers", "local"}:
        return SentenceTransformerEmbedder(config.embedding.sentence_transformer_model)
    raise ValueError(f"Unsupported embedding provider: {config.embedding.provider}")


__all__ = ["EmbeddingProvider", "SentenceTransformerEmbedder", "create_embedder"]
