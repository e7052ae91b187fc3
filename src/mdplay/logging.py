"""Logging for the mdplay pipeline.

Every module logs through `get_logger("<component>")`, e.g. `mdplay.rewrite`.
The console shows the component so per-document warnings (a missing ref, a
skipped preview) can be traced to the pass that raised them.
"""

from __future__ import annotations

import logging
from pathlib import Path

_LOGGER_NAME = "mdplay"

CONSOLE_FORMAT = "%(levelname)s [%(component)s] %(message)s"
FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class ComponentFormatter(logging.Formatter):
    """Formatter exposing the logger name minus the mdplay prefix as `component`."""

    def format(self, record: logging.LogRecord) -> str:
        prefix = f"{_LOGGER_NAME}."
        record.component = record.name[len(prefix):] if record.name.startswith(prefix) else record.name
        return super().format(record)


def get_logger(name: str | None = None) -> logging.Logger:
    """Return the logger of one pipeline component, e.g. 'modules' or 'files'."""
    full_name = f"{_LOGGER_NAME}.{name}" if name else _LOGGER_NAME
    return logging.getLogger(full_name)


def configure_logging(
    *, verbose: bool = False, quiet: bool = False, log_file: Path | None = None
) -> logging.Logger:
    """Attach console and optional file handlers to the mdplay logger.

    verbose shows module writes and artifact lookups (DEBUG); quiet keeps only
    warnings and errors. verbose wins when both are set.
    """
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.WARNING
    else:
        level = logging.INFO
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    # One CLI process may configure several times; keep a single set of handlers.
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    stream_handler = logging.StreamHandler()
    stream_handler.setLevel(level)
    stream_handler.setFormatter(ComponentFormatter(CONSOLE_FORMAT))
    logger.addHandler(stream_handler)

    if log_file is not None:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
        logger.addHandler(file_handler)

    return logger


__all__ = ["configure_logging", "get_logger"]
