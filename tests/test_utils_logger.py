# tests/test_utils_logger.py
"""Unit tests for the logger utility."""

import logging
import pytest
from pathlib import Path

from pdp_toolkit.utils.logger import (
    get_logger,
    configure_logging,
    set_log_level,
    temporary_log_level,
    PDPFormatter,
    PDPLogger,
)
from pdp_toolkit.utils.exceptions import ConfigurationError


@pytest.fixture(autouse=True)
def reset_logging():
    """Reset logging configuration before and after each test."""
    PDPLogger.reset()
    yield
    PDPLogger.reset()


class TestLogger:
    """Test cases for the logger utility."""

    def test_get_logger(self):
        """Test that get_logger maps module names under the package logger."""
        logger = get_logger("some.module.grid")
        assert isinstance(logger, logging.Logger)
        assert logger.name == "pdp_toolkit.grid"

    def test_package_names_kept(self):
        logger = get_logger("pdp_toolkit.dependence.grid")
        assert logger.name == "pdp_toolkit.dependence.grid"
        assert get_logger("__main__").name == "pdp_toolkit.main"

    def test_configure_logging_level(self):
        """Test that configure_logging sets the logging level."""
        configure_logging(level="DEBUG")
        assert logging.getLogger("pdp_toolkit").level == logging.DEBUG

    def test_configure_only_once(self):
        configure_logging(level="WARNING")
        configure_logging(level="DEBUG")
        assert logging.getLogger("pdp_toolkit").level == logging.WARNING

    def test_invalid_level_rejected(self):
        with pytest.raises(ConfigurationError):
            configure_logging(level="CHATTY")

    def test_configure_logging_file(self, tmp_path: Path):
        """Test that configure_logging sets up a file handler."""
        log_file = tmp_path / "logs" / "test.log"
        configure_logging(log_file=log_file)

        logger = get_logger(__name__)
        logger.warning("This is a test.")

        assert log_file.exists()
        content = log_file.read_text()
        assert "This is a test." in content
        assert "WARNING" in content

    def test_temporary_log_level(self):
        """Test the temporary_log_level context manager."""
        configure_logging(level="INFO")
        assert logging.getLogger("pdp_toolkit").level == logging.INFO

        with temporary_log_level("DEBUG"):
            assert logging.getLogger("pdp_toolkit").level == logging.DEBUG

        assert logging.getLogger("pdp_toolkit").level == logging.INFO

    def test_set_log_level(self):
        """Test that set_log_level changes the logging level."""
        configure_logging(level="INFO")
        set_log_level("WARNING")
        assert logging.getLogger("pdp_toolkit").level == logging.WARNING

    def test_log_record(self, caplog):
        """Test that records carry the package logger name."""
        configure_logging(level="INFO")
        logger = get_logger("tests.test_utils_logger")

        with caplog.at_level(logging.INFO, logger="pdp_toolkit"):
            logger.info("Test message")

        records = [r for r in caplog.records if r.name == "pdp_toolkit.test_utils_logger"]
        assert len(records) == 1
        assert records[0].levelname == "INFO"
        assert records[0].getMessage() == "Test message"

    def test_formatter_includes_context_and_duration(self):
        formatter = PDPFormatter(include_context=True)
        record = logging.LogRecord("pdp_toolkit.grid", logging.INFO, __file__, 1, "Grid built", None, None)
        record.context = {"n_points": 12}
        record.duration = 0.25

        line = formatter.format(record)

        assert "INFO" in line
        assert "Grid built" in line
        assert 'Context: {"n_points": 12}' in line
        assert "Duration: 0.250s" in line


if __name__ == "__main__":
    pytest.main([__file__])
