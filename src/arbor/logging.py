"""
Logging for the walk and tree pipeline.

The rendered tree goes to stdout, so diagnostics always go to stderr and
stay quiet unless something is wrong or ``--verbose`` is given. Walker
workers log from their own threads; the thread name is part of every record
so skipped entries can be traced back to the worker that listed them.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

_LOGGER_NAME = "arbor"

CONSOLE_FORMAT = "[arbor] %(levelname)s %(threadName)s: %(message)s"
FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s %(threadName)s: %(message)s"


def get_logger(name: str | None = None) -> logging.Logger:
    """Return ``arbor.<name>``, e.g. ``arbor.walk`` for the walker."""
    full_name = f"{_LOGGER_NAME}.{name}" if name else _LOGGER_NAME
    return logging.getLogger(full_name)


def configure_logging(*, verbose: bool = False, log_file: Path | None = None) -> logging.Logger:
    """
    Route arbor's records to stderr, and to ``log_file`` when one is given.

    Without ``verbose`` only warnings and errors are shown. With it, the
    walker's skipped entries and the collector's phase summaries appear too.
    """
    level = logging.DEBUG if verbose else logging.WARNING
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    # The CLI can run several times in one process (tests); keep one handler set.
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    stream_handler = logging.StreamHandler(sys.stderr)
    stream_handler.setLevel(level)
    stream_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    logger.addHandler(stream_handler)

    if log_file is not None:
        # The file always gets the full debug trail, whatever the console shows.
        logger.setLevel(logging.DEBUG)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
        logger.addHandler(file_handler)

    return logger


__all__ = ["configure_logging", "get_logger"]
