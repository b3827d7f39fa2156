"""Tests for the Ollama embeddings client and the provider factory."""

from __future__ import annotations

import json
import unittest
from unittest.mock import MagicMock, patch

import requests

from pelican_store.config import EmbeddingConfig
from pelican_store.embedding_client import OllamaEmbeddingClient
from pelican_store.errors import ProviderError


def _response(status_code: int = 200, payload=None, text: str = "") -> MagicMock:
    response = MagicMock()
    response.status_code = status_code
    response.text = text
    if isinstance(payload, Exception):
        response.json.side_effect = payload
    else:
        response.json.return_value = payload
    return response


class OllamaEmbeddingClientTests(unittest.TestCase):
    def setUp(self) -> None:
        self.config = EmbeddingConfig(
            provider="ollama",
            base_url="http://embed.test/api/",
            model="nomic-embed-text",
            request_timeout=5,
        )
        self.client = OllamaEmbeddingClient(self.config)
        self.client.session = MagicMock()

    def test_posts_model_and_prompt(self) -> None:
        self.client.session.post.return_value = _response(payload={"embedding": [0.5, 1, -2]})

        vector = self.client.embed("hello")

        self.assertEqual(vector, [0.5, 1.0, -2.0])
        args, kwargs = self.client.session.post.call_args
        self.assertEqual(args[0], "http://embed.test/api/embeddings")
        self.assertEqual(json.loads(kwargs["data"]), {"model": "nomic-embed-text", "prompt": "hello"})
        self.assertEqual(kwargs["timeout"], 5)

    def test_connection_error_becomes_provider_error(self) -> None:
        self.client.session.post.side_effect = requests.exceptions.ConnectionError("refused")
        with self.assertRaises(ProviderError) as ctx:
            self.client.embed("hello")
        self.assertIn("Could not connect", str(ctx.exception))
        self.assertTrue(ctx.exception.retryable)

    def test_timeout_becomes_provider_error(self) -> None:
        self.client.session.post.side_effect = requests.exceptions.Timeout()
        with self.assertRaises(ProviderError) as ctx:
            self.client.embed("hello")
        self.assertIn("timed out", str(ctx.exception))

    def test_http_error_keeps_status_code(self) -> None:
        self.client.session.post.return_value = _response(status_code=503, text="overloaded")
        with self.assertRaises(ProviderError) as ctx:
            self.client.embed("hello")
        self.assertEqual(ctx.exception.status_code, 503)
        self.assertIn("overloaded", str(ctx.exception))

    def test_malformed_body(self) -> None:
        self.client.session.post.return_value = _response(payload=ValueError("not json"))
        with self.assertRaises(ProviderError):
            self.client.embed("hello")
        self.client.session.post.return_value = _response(payload={"vector": [1.0]})
        with self.assertRaises(ProviderError):
            self.client.embed("hello")
        self.client.session.post.return_value = _response(payload={"embedding": []})
        with self.assertRaises(ProviderError):
            self.client.embed("hello")

    def test_check_health(self) -> None:
        self.client.session.post.return_value = _response(payload={"embedding": [1.0]})
        self.assertTrue(self.client.check_health())
        self.client.session.post.side_effect = requests.exceptions.ConnectionError("down")
        self.assertFalse(self.client.check_health())


class CreateEmbedderTests(unittest.TestCase):
    def test_provider_selection(self) -> None:
        from pelican_store.config import AppConfig
        from pelican_store.embeddings import SentenceTransformerEmbedder, create_embedder

        ollama = create_embedder(AppConfig(embedding=EmbeddingConfig(provider="ollama")))
        self.assertIsInstance(ollama, OllamaEmbeddingClient)
        local = create_embedder(AppConfig(embedding=EmbeddingConfig(provider="local", sentence_transformer_model="tiny")))
        self.assertIsInstance(local, SentenceTransformerEmbedder)
        self.assertEqual(local.model_name, "tiny")
        with self.assertRaises(ValueError):
            create_embedder(AppConfig(embedding=EmbeddingConfig(provider="openai")))

    def test_sentence_transformer_embedder_normalizes(self) -> None:
        from pelican_store import embeddings

        model = MagicMock()
        model.encode.return_value = MagicMock(tolist=lambda: [0.6, 0.8])
        embeddings._get_model.cache_clear()
        with patch.object(embeddings, "SentenceTransformer", return_value=model) as factory:
            vector = embeddings.SentenceTransformerEmbedder("fake-model").embed("text")
        embeddings._get_model.cache_clear()
        factory.assert_called_once_with("fake-model")
        model.encode.assert_called_once_with("text", normalize_embeddings=True)
        self.assertEqual(vector, [0.6, 0.8])


if __name__ == "__main__":
    unittest.main()
