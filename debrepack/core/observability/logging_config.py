"""
Logging configuration for the debrepack CLI.

The console is the build log. What it shows depends on the level main.py
picks from the global flags:

    -q          errors only
    (default)   warnings and errors, tagged with their level
    -v          pair progress with a clock time, plus every line the
                package builder prints, indented under its pair
    --debug     everything, with logger name and line number

DEBREPACK_LOG_LEVEL replaces the default level when no flag is given.
DEBREPACK_LOG_FILE adds a file with full timestamps at
DEBREPACK_LOG_FILE_LEVEL (the console level when unset).
"""

from __future__ import annotations

import logging
import sys

# Logger that PackageBuilder sends subprocess output to
BUILDER_OUTPUT_LOGGER = "debrepack.core.services.builder.output"

# ── Format strings ──────────────────────────────────────────────

_FMT_PROBLEM = "%(levelname)s: %(message)s"
_FMT_PROGRESS = "%(asctime)s %(message)s"
_FMT_DEBUG = "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d %(message)s"
_FMT_FILE = "%(asctime)s %(levelname)-5s %(name)s: %(message)s"

# Lines up with the message column of _FMT_PROGRESS
_FMT_BUILDER_OUTPUT = " " * 9 + "│ %(message)s"

_DATEFMT_CLOCK = "%H:%M:%S"
_DATEFMT_FILE = "%Y-%m-%d %H:%M:%S"


class ConsoleFormatter(logging.Formatter):
    """Render records for a terminal at a given console level."""

    def __init__(self, level: int) -> None:
        self.debug = level <= logging.DEBUG
        super().__init__(_FMT_DEBUG if self.debug else _FMT_PROGRESS, datefmt=_DATEFMT_CLOCK)
        self._problem = logging.Formatter(_FMT_PROBLEM)
        self._builder_output = logging.Formatter(_FMT_BUILDER_OUTPUT)

    def format(self, record: logging.LogRecord) -> str:
        if record.name == BUILDER_OUTPUT_LOGGER:
            return self._builder_output.format(record)
        if record.levelno >= logging.WARNING and not self.debug:
            return self._problem.format(record)
        return super().format(record)


def setup_logging(
    level: str = "WARNING",
    log_file: str | None = None,
    log_file_level: str | None = None,
) -> None:
    """Configure the root logger for one CLI invocation.

    Args:
        level: Console level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_file: Optional path to a log file.
        log_file_level: Level for the log file; defaults to ``level``.
    """
    numeric_level = _parse_level(level)

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(numeric_level)
    console.setFormatter(ConsoleFormatter(numeric_level))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(console)
    effective_level = numeric_level

    if log_file:
        file_level = _parse_level(log_file_level) if log_file_level else numeric_level
        effective_level = min(effective_level, file_level)

        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setLevel(file_level)
        fh.setFormatter(logging.Formatter(_FMT_FILE, datefmt=_DATEFMT_FILE))
        root.addHandler(fh)

    root.setLevel(effective_level)


def _parse_level(level: str | None) -> int:
    """Level name to numeric constant; unknown names fall back to WARNING."""
    if not level:
        return logging.WARNING
    numeric = getattr(logging, level.upper(), None)
    if not isinstance(numeric, int):
        return logging.WARNING
    return numeric
