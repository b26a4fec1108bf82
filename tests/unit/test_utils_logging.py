"""
Unit tests for logging utilities.

Tests the logging configuration and the conversion logger helpers.
Package loggers do not propagate, so records are captured with a
handler attached directly to the edgeconf logger.
"""

import logging

import pytest

from edgeconf.utils.logging import ConversionLogger, get_logger, setup_logging


class _ListHandler(logging.Handler):
    def __init__(self):
        super().__init__(logging.DEBUG)
        self.records = []

    def emit(self, record):
        self.records.append(record)


@pytest.fixture
def captured():
    """Attach a recording handler to the package logger."""
    setup_logging(level="DEBUG")
    handler = _ListHandler()
    root = logging.getLogger("edgeconf")
    root.addHandler(handler)
    yield handler.records
    root.removeHandler(handler)
    setup_logging(level="INFO")


class TestLoggingSetup:
    """Test logging setup and configuration."""

    def test_setup_logging_default(self, monkeypatch):
        """Test default logging setup."""
        monkeypatch.delenv("EDGECONF_LOG_LEVEL", raising=False)
        setup_logging()

        logger = logging.getLogger('edgeconf')
        assert logger.level == logging.INFO
        assert len(logger.handlers) == 1
        assert logger.propagate is False

    def test_setup_logging_debug_level(self):
        """Test logging setup with debug level."""
        setup_logging(level='DEBUG')

        logger = logging.getLogger('edgeconf')
        assert logger.level == logging.DEBUG
        setup_logging(level='INFO')

    def test_setup_logging_env_level(self, monkeypatch):
        """Test the environment variable selects the level."""
        monkeypatch.setenv("EDGECONF_LOG_LEVEL", "WARNING")
        setup_logging()

        assert logging.getLogger('edgeconf').level == logging.WARNING
        monkeypatch.delenv("EDGECONF_LOG_LEVEL")
        setup_logging()

    def test_setup_logging_invalid_level(self):
        """Test logging setup with invalid level defaults to INFO."""
        setup_logging(level='INVALID')

        logger = logging.getLogger('edgeconf')
        assert logger.level == logging.INFO

    def test_setup_logging_with_file(self, tmp_path):
        """Test logging setup with a log file."""
        log_file = tmp_path / "edgeconf.log"
        setup_logging(level='INFO', log_file=str(log_file))

        get_logger("test_file").info("written to file")
        for handler in logging.getLogger('edgeconf').handlers:
            handler.flush()

        assert log_file.exists()
        assert "written to file" in log_file.read_text()
        setup_logging(level='INFO')

    def test_repeated_setup_does_not_duplicate_handlers(self):
        """Test reconfiguration replaces handlers."""
        setup_logging()
        setup_logging()
        assert len(logging.getLogger('edgeconf').handlers) == 1


class TestGetLogger:
    """Test logger naming."""

    def test_package_module_names_are_kept(self):
        """Test loggers for package modules keep their name."""
        assert get_logger("edgeconf.codegen.base").name == "edgeconf.codegen.base"

    def test_other_names_are_nested(self):
        """Test other names are placed under the package logger."""
        assert get_logger("my_component").name == "edgeconf.my_component"


class TestConversionLogger:
    """Test the conversion logger helpers."""

    def test_log_validation(self, captured):
        """Test warnings and errors are logged at their levels."""
        ConversionLogger("validation").log_validation("worker", ["bad"], ["odd"])

        levels = {(record.levelno, record.getMessage()) for record in captured}
        assert (logging.WARNING, "[worker] odd") in levels
        assert (logging.ERROR, "[worker] bad") in levels

    def test_log_conversion_start(self, captured):
        """Test the start message."""
        ConversionLogger("gen").log_conversion_start("minimal", 3)
        assert any("'minimal'" in r.getMessage() and "3 server" in r.getMessage() for r in captured)

    def test_log_degraded_location(self, captured):
        """Test degraded locations are warnings."""
        ConversionLogger("gen").log_degraded_location("edge-hook", "/api", "missing host")

        record = captured[-1]
        assert record.levelno == logging.WARNING
        assert "/api" in record.getMessage()
        assert "502" in record.getMessage()

    def test_log_builder_anomaly(self, captured):
        """Test builder anomalies carry the line number."""
        ConversionLogger("builder").log_builder_anomaly("odd listen", 7)
        assert captured[-1].getMessage() == "odd listen (line 7)"
