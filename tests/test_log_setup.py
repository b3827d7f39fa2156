from __future__ import annotations

import logging
import unittest

from pelican_store.log_setup import ExtraFormatter


class ExtraFormatterTests(unittest.TestCase):
    def _record(self, **extra) -> logging.LogRecord:
        record = logging.LogRecord("pelican_store.store", logging.INFO, __file__, 1, "Document indexed", None, None)
        for key, value in extra.items():
            setattr(record, key, value)
        return record

    def test_known_extras_are_rendered(self) -> None:
        formatter = ExtraFormatter("%(message)s")
        record = self._record(document_id="d1", chunks=3, status_code=200)
        self.assertEqual(formatter.format(record), "Document indexed [status=200, doc=d1, chunks=3]")

    def test_record_is_not_mutated(self) -> None:
        formatter = ExtraFormatter("%(message)s")
        record = self._record(elapsed_ms=1.5)
        first = formatter.format(record)
        self.assertEqual(formatter.format(record), first)
        self.assertEqual(record.msg, "Document indexed")

    def test_unknown_extras_are_ignored(self) -> None:
        formatter = ExtraFormatter("%(message)s")
        self.assertEqual(formatter.format(self._record(session="x")), "Document indexed")


if __name__ == "__main__":
    unittest.main()
