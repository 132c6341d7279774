"""Process-wide logger factory."""

from __future__ import annotations

import logging
import os

_FORMAT = "%(asctime)s %(levelname).1s [%(name)s] %(message)s"


def get_logger(name: str) -> logging.Logger:
    """Return a named logger writing to stderr; level from QUADRACE_LOG_LEVEL."""
    logger = logging.getLogger(f"quadrace.{name}")
    root = logging.getLogger("quadrace")
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_FORMAT, datefmt="%H:%M:%S"))
        root.addHandler(handler)
        root.setLevel(os.environ.get("QUADRACE_LOG_LEVEL", "INFO").upper())
        root.propagate = False
    return logger
