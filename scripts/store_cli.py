"""Command-line access to the local document store."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Dict, List, Optional

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from pelican_store.core.document import Document
from pelican_store.errors import StoreError
from pelican_store.log_setup import setup_logging
from pelican_store.runtime import create_runtime


def _parse_metadata(parser: argparse.ArgumentParser, pairs: List[str]) -> Dict[str, str]:
    metadata: Dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key.strip():
            parser.error(f"--meta must look like key=value, got {pair!r}")
        metadata[key.strip()] = value.strip()
    return metadata


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Manage the local semantic document store.")
    parser.add_argument("--log-level", default="INFO", help="Logging level (default: INFO)")
    sub = parser.add_subparsers(dest="command", required=True)

    add = sub.add_parser("add", help="Ingest a UTF-8 text file")
    add.add_argument("path", type=Path)
    add.add_argument("--id", dest="doc_id", help="Document id (default: generated)")
    add.add_argument("--meta", action="append", default=[], help="Metadata as key=value; repeatable")

    search = sub.add_parser("search", help="Find documents similar to a query")
    search.add_argument("query")
    search.add_argument("-k", type=int, default=None, help="Maximum number of documents")

    delete = sub.add_parser("delete", help="Delete a document and its vectors")
    delete.add_argument("doc_id")
    delete.add_argument("--strict", action="store_true", help="Fail when the id is unknown")

    sub.add_parser("stats", help="Show store counters")
    sub.add_parser("clear", help="Remove every document")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    metadata = _parse_metadata(parser, args.meta) if args.command == "add" else {}
    setup_logging(args.log_level)

    try:
        runtime = create_runtime()
    except StoreError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    store = runtime.store
    try:
        if args.command == "add":
            content = args.path.read_text(encoding="utf-8")
            metadata.setdefault("source_path", str(args.path))
            doc_id = store.add_document(Document(content=content, id=args.doc_id, metadata=metadata))
            print(f"Indexed {args.path} as {doc_id}")
        elif args.command == "search":
            results = store.search_similar(args.query, args.k)
            if not results:
                print("No documents above the similarity threshold.")
            for rank, result in enumerate(results, start=1):
                snippet = " ".join(result.chunk_text.split())[:120]
                print(f"{rank}. [{result.score:.3f}] {result.document_id}: {snippet}")
        elif args.command == "delete":
            if store.delete_document(args.doc_id, strict=args.strict):
                print(f"Deleted {args.doc_id}")
            else:
                print(f"No document with id {args.doc_id}")
        elif args.command == "stats":
            for key, value in store.get_stats().to_dict().items():
                print(f"{key:<18} {value}")
        elif args.command == "clear":
            store.clear()
            print("Store cleared.")
    except StoreError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    finally:
        store.cleanup()
    return 0


if __name__ == "__main__":
    sys.exit(main())
