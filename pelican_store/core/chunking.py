"""Fixed-size, overlapping text windows used as the unit of embedding."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List


@dataclass(frozen=True)
class Chunk:
    """A window of a document's content, alive only during ingestion."""

    document_id: str
    index: int
    text: str
    offset: int

    @property
    def length(self) -> int:
        return len(self.text)


def _validate(size: int, overlap: int) -> None:
    if size <= 0:
        raise ValueError(f"chunk size must be positive, got {size}")
    if overlap < 0 or overlap >= size:
        raise ValueError(f"chunk overlap must satisfy 0 <= overlap < size, got {overlap} (size={size})")


def _windows(length: int, size: int, overlap: int) -> List[tuple[int, int]]:
    spans: List[tuple[int, int]] = []
    step = size - overlap
    start = 0
    while start < length:
        end = min(start + size, length)
        spans.append((start, end))
        if end >= length:
            break
        start += step
    return spans


def chunk_text(content: str, size: int, overlap: int) -> List[str]:
    """Split ``content`` into windows of ``size`` characters.

    Consecutive windows share ``overlap`` characters. The window that reaches
    the end of the content is the last one and keeps whatever remains, so the
    final chunk may be shorter than ``size``. Empty content yields no chunks.
    """

    _validate(size, overlap)
    return [content[start:end] for start, end in _windows(len(content), size, overlap)]


def chunk_document(document_id: str, content: str, size: int, overlap: int) -> List[Chunk]:
    """Like :func:`chunk_text` but keeps each window's position."""

    _validate(size, overlap)
    return [
        Chunk(document_id=document_id, index=idx, text=content[start:end], offset=start)
        for idx, (start, end) in enumerate(_windows(len(content), size, overlap))
    ]


__all__ = ["Chunk", "chunk_document", "chunk_text"]
