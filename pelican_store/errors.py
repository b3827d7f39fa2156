"""Exception hierarchy shared by the index, queue and store service."""

from __future__ import annotations

from typing import Optional


class StoreError(RuntimeError):
    """Base class for document store failures.

    ``retryable`` tells the request queue whether running the same task again
    could succeed.
    """

    retryable: bool = True


class DimensionMismatchError(StoreError, ValueError):
    """Raised when a vector's length disagrees with the index dimension."""

    retryable = False

    def __init__(self, expected: int, actual: int, context: str = "vector") -> None:
        super().__init__(f"{context} dimension mismatch: expected {expected}, got {actual}")
        self.expected = expected
        self.actual = actual


class CapacityExceededError(StoreError):
    """Raised when adding a point would grow the index past ``max_elements``."""

    retryable = False

    def __init__(self, max_elements: int) -> None:
        super().__init__(f"Index is full ({max_elements} elements)")
        self.max_elements = max_elements


class AlreadyInitializedError(StoreError):
    """Raised when an index is initialized twice without being cleared."""

    retryable = False


class StoreNotInitializedError(StoreError):
    """Raised when an operation runs before ``initialize``."""

    retryable = False


class ProviderError(StoreError):
    """Transient failure talking to the embedding provider."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class IngestionError(StoreError):
    """Raised when a document could not be fully indexed and was rolled back."""

    retryable = False

    def __init__(self, document_id: str, cause: BaseException) -> None:
        super().__init__(f"Failed to ingest document {document_id}: {cause}")
        self.document_id = document_id
        self.cause = cause


class DocumentNotFoundError(StoreError, KeyError):
    """Raised by strict lookups and deletes for unknown document ids."""

    retryable = False

    def __init__(self, document_id: str) -> None:
        super().__init__(f"Document not found: {document_id}")
        self.document_id = document_id

    def __str__(self) -> str:
        return self.args[0]


__all__ = [
    "AlreadyInitializedError",
    "CapacityExceededError",
    "DimensionMismatchError",
    "DocumentNotFoundError",
    "IngestionError",
    "ProviderError",
    "StoreError",
    "StoreNotInitializedError",
]
