"""Logging configuration shared by the CLI and the HTTP app.

Library modules only ever call ``logging.getLogger(__name__)``; installing
handlers is left to whichever entry point is running.
"""

from __future__ import annotations

import logging

from compintel.config import settings

_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def configure_logging(level: str | int | None = None) -> logging.Logger:
    """Attach a single stream handler to the ``compintel`` logger.

    Safe to call more than once: existing handlers are replaced rather than
    stacked, so repeated CLI invocations in one process don't duplicate lines.
    """
    logger = logging.getLogger("compintel")
    logger.setLevel(level if level is not None else settings.log_level.upper())

    if logger.hasHandlers():
        logger.handlers.clear()

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(_FORMAT, datefmt=_DATE_FORMAT))
    logger.addHandler(handler)
    logger.propagate = False
    return logger
