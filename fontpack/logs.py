"""
fontpack – logs.py
==================

Logging setup for the ``fontpack`` logger namespace.

Two outputs carry the same records:

- console: ``[LEVEL] message``, color-coded when attached to a terminal
- ``build.log``: ``[YYYY-MM-DD HH:MM:SS] [LEVEL] message``, plain text

Levels are rendered as ``INFO``, ``WARN``, ``ERROR`` and ``DEBUG``.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import TextIO

LOGGER_NAME = "fontpack"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

LEVEL_LABELS: dict[int, str] = {
    logging.DEBUG: "DEBUG",
    logging.INFO: "INFO",
    logging.WARNING: "WARN",
    logging.ERROR: "ERROR",
    logging.CRITICAL: "ERROR",
}

RED = "\033[0;31m"
GREEN = "\033[0;32m"
YELLOW = "\033[1;33m"
BLUE = "\033[0;34m"
NC = "\033[0m"

LEVEL_COLORS: dict[str, str] = {
    "INFO": GREEN,
    "WARN": YELLOW,
    "ERROR": RED,
    "DEBUG": BLUE,
}


def level_label(levelno: int) -> str:
    return LEVEL_LABELS.get(levelno, logging.getLevelName(levelno))


class _BaseFormatter(logging.Formatter):
    def _message(self, record: logging.LogRecord) -> str:
        msg = record.getMessage()
        if record.exc_info:
            msg = f"{msg}\n{self.formatException(record.exc_info)}"
        return msg


class ConsoleFormatter(_BaseFormatter):
    def __init__(self, color: bool = True):
        super().__init__()
        self.color = color

    def format(self, record: logging.LogRecord) -> str:
        label = level_label(record.levelno)
        if self.color:
            tag = f"{LEVEL_COLORS.get(label, '')}[{label}]{NC}"
        else:
            tag = f"[{label}]"
        return f"{tag} {self._message(record)}"


class FileFormatter(_BaseFormatter):
    def format(self, record: logging.LogRecord) -> str:
        timestamp = self.formatTime(record, DATE_FORMAT)
        return f"[{timestamp}] [{level_label(record.levelno)}] {self._message(record)}"


def setup_logging(verbose: bool = False, stream: TextIO | None = None) -> logging.Logger:
    """Configure the ``fontpack`` logger with a console handler.

    Any handler left from a previous configuration is removed first, so the
    function can be called once per run (and once per test).

    Args:
        verbose: Show DEBUG records on the console.
        stream: Console stream, ``sys.stdout`` by default.

    Returns:
        The configured ``fontpack`` logger.
    """
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    stream = stream if stream is not None else sys.stdout
    console = logging.StreamHandler(stream)
    isatty = getattr(stream, "isatty", None)
    console.setFormatter(ConsoleFormatter(color=bool(isatty and isatty())))
    console.setLevel(logging.DEBUG if verbose else logging.INFO)

    logger.addHandler(console)
    logger.setLevel(logging.DEBUG)
    return logger


def attach_log_file(path: Path) -> logging.Handler:
    """Append every ``fontpack`` record to ``path`` until the handler is detached."""
    handler = logging.FileHandler(path, mode="a", encoding="utf-8")
    handler.setFormatter(FileFormatter())
    handler.setLevel(logging.DEBUG)
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG)
    logger.addHandler(handler)
    return handler


def detach_log_file(handler: logging.Handler) -> None:
    logging.getLogger(LOGGER_NAME).removeHandler(handler)
    handler.close()
