"""Logging setup."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

# Chatty at DEBUG: PDF writer internals, HTTP connection pool
_QUIET = ("PIL", "urllib3")


def setup_logging(level: str = "INFO", log_file: str | Path | None = None) -> None:
    """Configure root logger for sitecapture; optionally also append to log_file."""
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(path, encoding="utf-8"))
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=FORMAT,
        datefmt="%H:%M:%S",
        handlers=handlers,
        force=True,
    )
    for name in _QUIET:
        logging.getLogger(name).setLevel(logging.WARNING)
