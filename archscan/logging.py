"""Logging helpers shared by the extractor, scanner, analyzers and CLI."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

_ROOT = "archscan"
_CONSOLE_FORMAT = "[archscan] %(levelname)s %(message)s"
# Analyzer work may run on pool threads, so the file sink names the thread.
_FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s [%(threadName)s]: %(message)s"


def get_logger(name: str | None = None) -> logging.Logger:
    """Return ``archscan.<name>``, or the package logger when no name is given."""
    return logging.getLogger(f"{_ROOT}.{name}" if name else _ROOT)


def configure_logging(*, verbose: bool = False, log_file: Path | None = None) -> logging.Logger:
    """Route archscan records to stderr and, optionally, to ``log_file``.

    Reports are printed on stdout, so the console handler is bound to stderr.
    Calling this again replaces the previous handlers.
    """
    level = logging.DEBUG if verbose else logging.INFO
    root = logging.getLogger(_ROOT)
    root.setLevel(level)
    root.propagate = False

    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(level)
    console.setFormatter(logging.Formatter(_CONSOLE_FORMAT))
    root.addHandler(console)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        sink = logging.FileHandler(log_file, encoding="utf-8")
        sink.setLevel(logging.DEBUG)
        sink.setFormatter(logging.Formatter(_FILE_FORMAT))
        root.addHandler(sink)
        root.setLevel(logging.DEBUG)

    return root


__all__ = ["configure_logging", "get_logger"]
