"""
Logging configuration and utilities.

This module provides centralized logging configuration for the
edgeconf package with appropriate formatting and levels.
"""

import logging
import os
from typing import Optional, Sequence

from .constants import DEFAULT_LOG_LEVEL, ENV_LOG_LEVEL

ROOT_LOGGER_NAME = "edgeconf"


def setup_logging(level: Optional[str] = None, log_file: Optional[str] = None) -> None:
    """
    Configure logging for the edgeconf package.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional file path for log output
    """
    # Determine log level
    if level is None:
        level = os.environ.get(ENV_LOG_LEVEL, DEFAULT_LOG_LEVEL)

    log_level = getattr(logging, level.upper(), logging.INFO)
    if not isinstance(log_level, int):
        log_level = logging.INFO

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(log_level)

    # Remove existing handlers
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(log_level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    # Prevent propagation to root logger
    logger.propagate = False


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for the given module.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Logger instance
    """
    if name == ROOT_LOGGER_NAME or name.startswith(ROOT_LOGGER_NAME + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


class ConversionLogger:
    """
    Domain-specific logging for the conversion pipeline.

    Wraps a package logger with helpers for the events every
    conversion run reports: start, validation outcome, degraded
    locations and builder anomalies.
    """

    def __init__(self, name: str):
        """
        Initialize logger for specific component.

        Args:
            name: Component name for logging context
        """
        self.logger = get_logger(name)

    def log_conversion_start(self, target: str, server_count: int) -> None:
        """
        Log the beginning of a generation run.

        Args:
            target: Target generator name
            server_count: Number of server blocks in the configuration
        """
        self.logger.info(f"Generating '{target}' output for {server_count} server block(s)")

    def log_validation(self, target: str, errors: Sequence[str], warnings: Sequence[str]) -> None:
        """
        Log the outcome of a validation pass.

        Args:
            target: Target generator name
            errors: Validation errors
            warnings: Validation warnings
        """
        for warning in warnings:
            self.logger.warning(f"[{target}] {warning}")
        for error in errors:
            self.logger.error(f"[{target}] {error}")
        self.logger.debug(
            f"[{target}] validation finished: {len(errors)} error(s), {len(warnings)} warning(s)"
        )

    def log_degraded_location(self, target: str, path: str, reason: str) -> None:
        """
        Log a location whose action was replaced by a runtime error path.

        Args:
            target: Target generator name
            path: Location path
            reason: Why the location could not be converted
        """
        self.logger.warning(f"[{target}] location '{path}' degraded to 502 response: {reason}")

    def log_builder_anomaly(self, message: str, line: Optional[int] = None) -> None:
        """
        Log a directive the builder could not convert faithfully.

        Args:
            message: Description of the anomaly
            line: Source line of the directive, if known
        """
        where = f" (line {line})" if line is not None else ""
        self.logger.warning(f"{message}{where}")


# Initialize logging on module import
setup_logging()
