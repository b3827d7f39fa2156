"""Tests for the store command-line entry point."""

from __future__ import annotations

import contextlib
import io
import tempfile
import unittest
from pathlib import Path
from unittest.mock import MagicMock, patch

from pelican_store.errors import ProviderError
from scripts import store_cli


class StoreCliTests(unittest.TestCase):
    def setUp(self) -> None:
        patcher = patch.object(store_cli, "setup_logging")
        patcher.start()
        self.addCleanup(patcher.stop)
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        self.doc_path = Path(self._tmp.name) / "note.txt"
        self.doc_path.write_text("AAAA", encoding="utf-8")

    def test_bad_metadata_is_a_usage_error(self) -> None:
        stderr = io.StringIO()
        with patch.object(store_cli, "create_runtime") as create_runtime:
            with contextlib.redirect_stderr(stderr), self.assertRaises(SystemExit) as ctx:
                store_cli.main(["add", str(self.doc_path), "--meta", "novalue"])
        self.assertEqual(ctx.exception.code, 2)
        self.assertIn("key=value", stderr.getvalue())
        create_runtime.assert_not_called()

    def test_startup_failure_is_reported(self) -> None:
        stderr = io.StringIO()
        with patch.object(store_cli, "create_runtime", side_effect=ProviderError("provider unreachable")):
            with contextlib.redirect_stderr(stderr):
                code = store_cli.main(["stats"])
        self.assertEqual(code, 1)
        self.assertIn("Error: provider unreachable", stderr.getvalue())

    def test_add_passes_metadata_and_cleans_up(self) -> None:
        runtime = MagicMock()
        runtime.store.add_document.return_value = "note"
        stdout = io.StringIO()
        with patch.object(store_cli, "create_runtime", return_value=runtime):
            with contextlib.redirect_stdout(stdout):
                code = store_cli.main(["add", str(self.doc_path), "--id", "note", "--meta", "lang=en"])

        self.assertEqual(code, 0)
        [document] = runtime.store.add_document.call_args.args
        self.assertEqual(document.id, "note")
        self.assertEqual(document.content, "AAAA")
        self.assertEqual(document.metadata, {"lang": "en", "source_path": str(self.doc_path)})
        runtime.store.cleanup.assert_called_once_with()
        self.assertIn("as note", stdout.getvalue())


if __name__ == "__main__":
    unittest.main()
