"""Logging for slotwise.

Two extra levels sit between the standard ones so that -v on the command
line can be raised step by step:

    0  ERROR    failures only
    1  CHANGES  slots committed, tasks left unscheduled
    2  CHECKS   candidate counts after each engine stage
    3  DEBUG    per-slot scores and dropped candidates
"""

from __future__ import annotations

import logging
import sys
from typing import Any, TextIO

LOGGER_NAME = "slotwise"

CHANGES_LEVEL = 25  # INFO < CHANGES < WARNING
CHECKS_LEVEL = 15  # DEBUG < CHECKS < INFO

logging.addLevelName(CHANGES_LEVEL, "CHANGES")
logging.addLevelName(CHECKS_LEVEL, "CHECKS")

VERBOSITY_SILENT = 0
VERBOSITY_CHANGES = 1
VERBOSITY_CHECKS = 2
VERBOSITY_DEBUG = 3

LEVEL_FOR_VERBOSITY: dict[int, int] = {
    VERBOSITY_SILENT: logging.ERROR,
    VERBOSITY_CHANGES: CHANGES_LEVEL,
    VERBOSITY_CHECKS: CHECKS_LEVEL,
    VERBOSITY_DEBUG: logging.DEBUG,
}


class SlotwiseLogger(logging.Logger):
    """Logger with one method per verbosity step."""

    def changes(self, msg: str, *args: Any, **kwargs: Any) -> None:
        """Log a committed decision (verbosity 1)."""
        if self.isEnabledFor(CHANGES_LEVEL):
            self._log(CHANGES_LEVEL, msg, args, **kwargs)

    def checks(self, msg: str, *args: Any, **kwargs: Any) -> None:
        """Log an intermediate engine check (verbosity 2)."""
        if self.isEnabledFor(CHECKS_LEVEL):
            self._log(CHECKS_LEVEL, msg, args, **kwargs)


def get_logger() -> SlotwiseLogger:
    """Return the shared slotwise logger.

    Modules call this at import time; configure it later with setup_logger().
    """
    logging.setLoggerClass(SlotwiseLogger)
    logger = logging.getLogger(LOGGER_NAME)
    assert isinstance(logger, SlotwiseLogger)
    return logger


def level_for(verbosity: int) -> int:
    """Logging level for a -v count; anything above 3 is treated as 3."""
    if verbosity <= VERBOSITY_SILENT:
        return logging.ERROR
    return LEVEL_FOR_VERBOSITY[min(verbosity, VERBOSITY_DEBUG)]


def setup_logger(verbosity: int, stream: TextIO | None = None) -> None:
    """(Re)configure the slotwise logger.

    Args:
        verbosity: 0=errors only, 1=changes, 2=checks, 3=debug
        stream: Where to write (sys.stderr by default); tests pass a StringIO
    """
    logger = get_logger()
    logger.handlers.clear()
    logger.setLevel(level_for(verbosity))

    # Messages carry their own indentation; no level prefix
    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.propagate = False


def reset_logger() -> None:
    """Drop handlers and return to errors-only."""
    logger = get_logger()
    logger.handlers.clear()
    logger.setLevel(logging.ERROR)


def changes_enabled() -> bool:
    return get_logger().isEnabledFor(CHANGES_LEVEL)


def checks_enabled() -> bool:
    return get_logger().isEnabledFor(CHECKS_LEVEL)


def debug_enabled() -> bool:
    """True at verbosity 3."""
    return get_logger().isEnabledFor(logging.DEBUG)
