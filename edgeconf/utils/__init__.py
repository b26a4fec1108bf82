"""
Utils package for edgeconf.

This module provides the ambient helpers shared by the model builder and
the generators: logging, exceptions, configuration and string handling.
"""

from .exceptions import (
    EdgeconfError,
    ValidationError,
    UnknownTargetError,
    TreeFormatError,
    UpstreamURLError,
)
from .config import (
    EdgeconfConfig,
    GenerationConfig,
    LoggingConfig,
    OutputConfig,
    get_config,
    set_config,
    load_config,
)
from .logging import setup_logging, get_logger, ConversionLogger

__all__ = [
    # Exceptions
    "EdgeconfError",
    "ValidationError",
    "UnknownTargetError",
    "TreeFormatError",
    "UpstreamURLError",

    # Configuration
    "EdgeconfConfig",
    "GenerationConfig",
    "LoggingConfig",
    "OutputConfig",
    "get_config",
    "set_config",
    "load_config",

    # Logging
    "setup_logging",
    "get_logger",
    "ConversionLogger",
]
