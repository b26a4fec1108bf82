"""
Configuration System for edgeconf.

This module provides a single configuration object for the converter,
loaded from a YAML or JSON file with environment variable overrides.
The conversion core never reads it implicitly; callers turn it into
``GenerationOptions`` and pass those to the generators.
"""

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from .constants import (
    DEFAULT_INDENT_SIZE,
    DEFAULT_LOG_FILE,
    DEFAULT_LOG_LEVEL,
    DEFAULT_OUTPUT_DIR,
    ENV_CONFIG_FILE,
    ENV_LOG_LEVEL,
)
from .logging import get_logger

logger = get_logger(__name__)

ALL_TARGETS = ["worker", "middleware", "edge-hook", "minimal"]


@dataclass
class GenerationConfig:
    """Code generation configuration."""

    indent_size: int = DEFAULT_INDENT_SIZE
    emit_comments: bool = True


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = DEFAULT_LOG_LEVEL
    enable_file_logging: bool = False
    log_file: str = DEFAULT_LOG_FILE


@dataclass
class OutputConfig:
    """Output configuration for batch generation."""

    directory: str = DEFAULT_OUTPUT_DIR
    targets: List[str] = field(default_factory=lambda: list(ALL_TARGETS))


class EdgeconfConfig:
    """
    Unified configuration manager for edgeconf.

    Sections are read from a single YAML or JSON file. Missing keys
    fall back to defaults, and a missing file means all defaults.
    """

    def __init__(self, config_file: Optional[str] = None):
        """
        Initialize configuration.

        Args:
            config_file: Path to configuration file. If None, the
                EDGECONF_CONFIG environment variable is consulted.
        """
        self.config_file = self._get_config_file_path(config_file)
        self._config_data = self._load_config()

        self.generation = self._create_generation_config()
        self.logging = self._create_logging_config()
        self.output = self._create_output_config()

    def _get_config_file_path(self, config_file: Optional[str]) -> Optional[Path]:
        """Get the configuration file path."""
        if config_file:
            return Path(config_file)
        env_file = os.getenv(ENV_CONFIG_FILE)
        if env_file:
            return Path(env_file)
        return None

    def _load_config(self) -> Dict[str, Any]:
        """Load configuration from file (JSON or YAML)."""
        if self.config_file is None:
            return {}
        if not self.config_file.exists():
            logger.warning(f"Configuration file {self.config_file} not found, using defaults")
            return {}

        try:
            with open(self.config_file, "r") as f:
                if self.config_file.suffix.lower() in [".yaml", ".yml"]:
                    config_data = yaml.safe_load(f)
                else:
                    config_data = json.load(f)
        except (OSError, ValueError, yaml.YAMLError) as e:
            logger.error(f"Failed to load configuration: {e}")
            return {}

        if not isinstance(config_data, dict):
            logger.warning(f"Configuration file {self.config_file} is not a mapping, using defaults")
            return {}

        logger.info(f"Loaded configuration from {self.config_file}")
        return config_data

    def _section(self, name: str) -> Dict[str, Any]:
        data = self._config_data.get(name) or {}
        return data if isinstance(data, dict) else {}

    def _create_generation_config(self) -> GenerationConfig:
        """Create generation configuration from loaded data."""
        gen_data = self._section("generation")

        return GenerationConfig(
            indent_size=int(gen_data.get("indent_size", DEFAULT_INDENT_SIZE)),
            emit_comments=bool(gen_data.get("emit_comments", True)),
        )

    def _create_logging_config(self) -> LoggingConfig:
        """Create logging configuration from loaded data."""
        log_data = self._section("logging")

        # Environment variable override
        level = os.getenv(ENV_LOG_LEVEL) or log_data.get("level", DEFAULT_LOG_LEVEL)

        return LoggingConfig(
            level=str(level),
            enable_file_logging=bool(log_data.get("enable_file_logging", False)),
            log_file=log_data.get("log_file", DEFAULT_LOG_FILE),
        )

    def _create_output_config(self) -> OutputConfig:
        """Create output configuration from loaded data."""
        out_data = self._section("output")
        targets = out_data.get("targets") or list(ALL_TARGETS)

        return OutputConfig(
            directory=out_data.get("directory", DEFAULT_OUTPUT_DIR),
            targets=[str(t) for t in targets],
        )

    def to_dict(self) -> Dict[str, Any]:
        """Return the effective configuration as plain data."""
        return {
            "generation": {
                "indent_size": self.generation.indent_size,
                "emit_comments": self.generation.emit_comments,
            },
            "logging": {
                "level": self.logging.level,
                "enable_file_logging": self.logging.enable_file_logging,
                "log_file": self.logging.log_file,
            },
            "output": {
                "directory": self.output.directory,
                "targets": list(self.output.targets),
            },
        }

    def save_config(self, path: Optional[str] = None) -> None:
        """Save current configuration to a YAML or JSON file."""
        target = Path(path) if path else self.config_file
        if target is None:
            raise ValueError("No configuration file path to save to")

        with open(target, "w") as f:
            if target.suffix.lower() in [".yaml", ".yml"]:
                yaml.safe_dump(self.to_dict(), f, sort_keys=False)
            else:
                json.dump(self.to_dict(), f, indent=2)
        logger.info(f"Configuration saved to {target}")


# Global configuration instance
_global_config: Optional[EdgeconfConfig] = None


def get_config() -> EdgeconfConfig:
    """Get the global configuration instance."""
    global _global_config
    if _global_config is None:
        _global_config = EdgeconfConfig()
    return _global_config


def set_config(config: EdgeconfConfig) -> None:
    """Set the global configuration instance."""
    global _global_config
    _global_config = config


def load_config(config_file: str) -> EdgeconfConfig:
    """Load configuration from a specific file."""
    return EdgeconfConfig(config_file)
