"""Centralized logging utilities for the document store."""

from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from .config import CONFIG

_LOGGER: Optional[logging.Logger] = None

# Record attributes appended to the message when passed through ``extra``.
_EXTRA_FIELDS = (
    ("elapsed_ms", "elapsed_ms"),
    ("status_code", "status"),
    ("document_id", "doc"),
    ("chunks", "chunks"),
    ("internal_id", "internal_id"),
    ("attempt", "attempt"),
    ("delay_s", "delay_s"),
    ("hits", "hits"),
    ("vectors", "vectors"),
    ("documents", "documents"),
    ("backend", "backend"),
    ("pending", "pending"),
)


class ExtraFormatter(logging.Formatter):
    """Formatter that renders known ``extra`` fields as ``key=value`` pairs."""

    def format(self, record: logging.LogRecord) -> str:
        extras = [
            f"{label}={getattr(record, attr)}"
            for attr, label in _EXTRA_FIELDS
            if hasattr(record, attr)
        ]
        formatted = super().format(record)
        if extras:
            # Records are shared between handlers, so leave record.msg untouched.
            formatted = f"{formatted} [{', '.join(extras)}]"
        return formatted


def setup_logging(level: str | int = "INFO", log_dir: Optional[Path] = None) -> logging.Logger:
    """Configure package-wide logging and return the ``pelican_store`` logger."""

    global _LOGGER
    if _LOGGER is not None:
        return _LOGGER

    log_dir = Path(log_dir or CONFIG.paths.log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_path = log_dir / "pelican_store.log"

    logger = logging.getLogger("pelican_store")
    logger.setLevel(level if isinstance(level, int) else getattr(logging, str(level).upper(), logging.INFO))

    formatter = ExtraFormatter(
        fmt="%(asctime)s [%(levelname)s] %(name)s - %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
    )

    file_handler = RotatingFileHandler(log_path, maxBytes=5 * 1024 * 1024, backupCount=5)
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    if os.environ.get("PELICAN_LOG_TO_STDOUT", "0") == "1":
        stream_handler = logging.StreamHandler()
        stream_handler.setFormatter(formatter)
        logger.addHandler(stream_handler)

    logger.debug("Logging initialized at %s", log_path)
    _LOGGER = logger
    return logger


__all__ = ["ExtraFormatter", "setup_logging"]
