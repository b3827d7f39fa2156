"""HTTP client for Ollama's embeddings endpoint."""

from __future__ import annotations

import json
import logging
import time
from typing import Dict, List, Optional, Protocol

import requests

from .config import CONFIG, EmbeddingConfig
from .errors import ProviderError


class EmbeddingProvider(Protocol):
    """Anything that turns one text into one fixed-dimension vector."""

    def embed(self, text: str) -> List[float]:
        """Return the embedding for ``text``; may raise on provider failure."""


class OllamaEmbeddingClient:
    """Thin wrapper over ``POST {base_url}/embeddings``.

    Every failure mode (transport, timeout, HTTP status, malformed body) is
    raised as :class:`ProviderError` so the request queue can retry it.
    """

    def __init__(self, config: Optional[EmbeddingConfig] = None, headers: Optional[Dict[str, str]] = None) -> None:
        self.config = config or CONFIG.embedding
        self.session = requests.Session()
        self.logger = logging.getLogger("pelican_store.embedding_client")
        default_headers = {"Content-Type": "application/json"}
        if headers:
            default_headers.update(headers)
        self.headers = default_headers

    @property
    def endpoint(self) -> str:
        return f"{self.config.base_url.rstrip('/')}/embeddings"

    def embed(self, text: str) -> List[float]:
        """Return the embedding vector for ``text``."""

        payload = {"model": self.config.model, "prompt": text}
        start = time.perf_counter()
        try:
            response = self.session.post(
                self.endpoint,
                data=json.dumps(payload),
                headers=self.headers,
                timeout=self.config.request_timeout,
            )
        except requests.exceptions.Timeout as exc:
            msg = (
                f"Embedding request timed out after {self.config.request_timeout}s "
                f"(endpoint={self.endpoint}). Ensure Ollama is running or raise "
                "PELICAN_EMBEDDING_REQUEST_TIMEOUT."
            )
            self.logger.error(msg)
            raise ProviderError(msg) from exc
        except requests.exceptions.ConnectionError as exc:
            msg = (
                f"Could not connect to embedding provider at {self.endpoint}. "
                "Start Ollama or set PELICAN_EMBEDDING_BASE_URL to the correct endpoint."
            )
            self.logger.error(msg)
            raise ProviderError(msg) from exc
        except requests.exceptions.RequestException as exc:
            msg = f"Embedding request failed for {self.endpoint}: {exc}"
            self.logger.error(msg)
            raise ProviderError(msg) from exc
        elapsed = time.perf_counter() - start

        if response.status_code != 200:
            self.logger.error(
                "Embedding request failed",
                extra={"status_code": response.status_code, "elapsed_ms": round(elapsed * 1000, 2)},
            )
            raise ProviderError(
                f"Embedding API error ({response.status_code}): {response.text[:500]}",
                status_code=response.status_code,
            )

        try:
            embedding = response.json()["embedding"]
        except (ValueError, KeyError, TypeError) as exc:
            raise ProviderError(f"Malformed embedding response from {self.endpoint}") from exc
        if not isinstance(embedding, list) or not embedding:
            raise ProviderError(f"Embedding provider returned an empty vector for model {self.config.model}")

        self.logger.debug(
            "Embedding request completed",
            extra={"status_code": response.status_code, "elapsed_ms": round(elapsed * 1000, 2)},
        )
        return [float(value) for value in embedding]

    def check_health(self) -> bool:
        """Return True when the provider answers a probe request."""

        try:
            self.embed("healthcheck")
        except ProviderError:
            return False
        return True


__all__ = ["EmbeddingProvider", "OllamaEmbeddingClient"]
