"""Logging setup shared by the API server and the management CLI."""

from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

# Handler installed by configure_logging, kept so repeat calls reuse it.
_handler: logging.Handler | None = None


def configure_logging(level: str | int = "INFO") -> None:
    """Install a single stream handler on the root logger.

    Safe to call more than once; later calls only adjust the level.
    """
    global _handler

    root = logging.getLogger()
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
    if _handler is None:
        _handler = logging.StreamHandler()
        _handler.setFormatter(logging.Formatter(LOG_FORMAT))
    if _handler not in root.handlers:
        root.addHandler(_handler)
    root.setLevel(level)
