"""SQLite persistence for documents and the internal id mapping table."""

from __future__ import annotations

import json
import sqlite3
from pathlib import Path
from typing import Dict, Iterable, List

from ..config import CONFIG
from .document import Document, MappingEntry


class MappingTable:
    """Durable ``internal_id -> (document_id, chunk)`` table plus documents.

    Each document is committed together with all of its mapping rows in one
    transaction, so a reload never sees half a document.
    """

    def __init__(self, path: Path | str = CONFIG.paths.mapping_path) -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.path)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    def _ensure_schema(self) -> None:
        with self._connect() as conn:
            conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS documents (
                    id TEXT PRIMARY KEY,
                    content TEXT NOT NULL,
                    metadata TEXT NOT NULL DEFAULT '{}',
                    seq INTEGER NOT NULL,
                    created_at TEXT DEFAULT CURRENT_TIMESTAMP
                );

                CREATE TABLE IF NOT EXISTS vectors (
                    internal_id INTEGER PRIMARY KEY,
                    document_id TEXT NOT NULL,
                    chunk_index INTEGER NOT NULL,
                    chunk_text TEXT NOT NULL,
                    FOREIGN KEY(document_id) REFERENCES documents(id) ON DELETE CASCADE
                );
                CREATE INDEX IF NOT EXISTS idx_vectors_document
                    ON vectors(document_id);

                CREATE TABLE IF NOT EXISTS store_meta (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                );
                """
            )

    # Reads --------------------------------------------------------------
    def load_documents(self) -> Dict[str, Document]:
        with self._connect() as conn:
            rows = conn.execute("SELECT id, content, metadata FROM documents ORDER BY seq ASC").fetchall()
        return {
            row["id"]: Document(id=row["id"], content=row["content"], metadata=json.loads(row["metadata"]))
            for row in rows
        }

    def load_entries(self) -> Dict[int, MappingEntry]:
        with self._connect() as conn:
            rows = conn.execute(
                """
                SELECT internal_id, document_id, chunk_index, chunk_text
                FROM vectors
                ORDER BY internal_id ASC
                """
            ).fetchall()
        return {row["internal_id"]: MappingEntry(**dict(row)) for row in rows}

    def get_next_id(self) -> int:
        with self._connect() as conn:
            row = conn.execute("SELECT value FROM store_meta WHERE key = 'next_id'").fetchone()
        return int(row[0]) if row else 0

    # Writes -------------------------------------------------------------
    def commit_document(
        self,
        document: Document,
        entries: Iterable[MappingEntry],
        next_id: int,
    ) -> None:
        """Replace ``document`` and all of its mapping rows atomically."""

        with self._connect() as conn:
            conn.execute("DELETE FROM vectors WHERE document_id = ?", (document.id,))
            conn.execute(
                """
                INSERT INTO documents(id, content, metadata, seq)
                VALUES (?, ?, ?, (SELECT COALESCE(MAX(seq), 0) + 1 FROM documents))
                ON CONFLICT(id) DO UPDATE SET
                    content=excluded.content,
                    metadata=excluded.metadata,
                    seq=excluded.seq
                """,
                (document.id, document.content, json.dumps(document.metadata, default=str)),
            )
            conn.executemany(
                """
                INSERT INTO vectors(internal_id, document_id, chunk_index, chunk_text)
                VALUES (?, ?, ?, ?)
                """,
                [
                    (entry.internal_id, entry.document_id, entry.chunk_index, entry.chunk_text)
                    for entry in entries
                ],
            )
            self._set_next_id(conn, next_id)

    def delete_documents(self, document_ids: Iterable[str]) -> int:
        ids: List[str] = list(document_ids)
        if not ids:
            return 0
        with self._connect() as conn:
            cursor = conn.executemany("DELETE FROM documents WHERE id = ?", [(doc_id,) for doc_id in ids])
            return int(cursor.rowcount)

    def clear(self, next_id: int) -> None:
        """Drop every document and mapping row; the id counter survives."""

        with self._connect() as conn:
            conn.execute("DELETE FROM vectors")
            conn.execute("DELETE FROM documents")
            self._set_next_id(conn, next_id)

    def set_next_id(self, next_id: int) -> None:
        with self._connect() as conn:
            self._set_next_id(conn, next_id)

    @staticmethod
    def _set_next_id(conn: sqlite3.Connection, next_id: int) -> None:
        conn.execute(
            """
            INSERT INTO store_meta(key, value) VALUES ('next_id', ?)
            ON CONFLICT(key) DO UPDATE SET value=excluded.value
            """,
            (str(next_id),),
        )


__all__ = ["MappingTable"]
