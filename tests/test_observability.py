"""
Tests for logging setup and console rendering.
"""

import logging
import re
from pathlib import Path

import pytest

from debrepack.core.observability.logging_config import (
    BUILDER_OUTPUT_LOGGER,
    ConsoleFormatter,
    _parse_level,
    setup_logging,
)
from debrepack.core.services.builder import output_logger


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


def _record(name: str, level: int, msg: str) -> logging.LogRecord:
    return logging.LogRecord(name, level, __file__, 42, msg, None, None)


class TestSetupLogging:
    def test_console_level(self):
        setup_logging("INFO")
        root = logging.getLogger()
        assert root.level == logging.INFO
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, ConsoleFormatter)

    def test_file_handler_lowers_root_level(self, tmp_path: Path):
        log_file = tmp_path / "debrepack.log"
        setup_logging("WARNING", log_file=str(log_file), log_file_level="DEBUG")

        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 2

        logging.getLogger("debrepack.test").debug("written to file only")
        for handler in root.handlers:
            handler.flush()
        assert "written to file only" in log_file.read_text()

    def test_verbose_shows_builder_output(self, capsys):
        setup_logging("INFO")
        output_logger.info("dpkg-deb: building package 'vale'")
        assert "│ dpkg-deb: building package 'vale'" in capsys.readouterr().err

    def test_default_hides_builder_output(self, capsys):
        setup_logging("WARNING")
        output_logger.info("dpkg-deb: building package 'vale'")
        assert capsys.readouterr().err == ""


class TestConsoleFormatter:
    def test_builder_logger_name(self):
        assert output_logger.name == BUILDER_OUTPUT_LOGGER

    def test_builder_output_indented(self):
        line = ConsoleFormatter(logging.INFO).format(
            _record(BUILDER_OUTPUT_LOGGER, logging.INFO, "dpkg-deb: building package 'vale'")
        )
        assert line == "         │ dpkg-deb: building package 'vale'"

    def test_progress_has_clock_time(self):
        line = ConsoleFormatter(logging.INFO).format(
            _record("debrepack.core.engine.pipeline", logging.INFO, "vale (amd64) → dist/vale.deb")
        )
        assert re.fullmatch(r"\d\d:\d\d:\d\d vale \(amd64\) → dist/vale\.deb", line)

    def test_warning_tagged_with_level(self):
        line = ConsoleFormatter(logging.WARNING).format(
            _record("debrepack.core.services.extraction", logging.WARNING, "Skipping bin/alias (symlink)")
        )
        assert line == "WARNING: Skipping bin/alias (symlink)"

    def test_debug_carries_location(self):
        line = ConsoleFormatter(logging.DEBUG).format(
            _record("debrepack.core.services.download", logging.DEBUG, "Cache hit")
        )
        assert "DEBUG debrepack.core.services.download:42 Cache hit" in line


class TestParseLevel:
    @pytest.mark.parametrize(
        "name, expected",
        [("debug", logging.DEBUG), ("ERROR", logging.ERROR), ("bogus", logging.WARNING), (None, logging.WARNING)],
    )
    def test_levels(self, name, expected):
        assert _parse_level(name) == expected
