"""
Custom exception definitions.

This module defines the exception hierarchy for edgeconf-specific
errors. Builder anomalies are never raised; they are collected as
warnings on the configuration model instead.
"""

from typing import Optional, Sequence


class EdgeconfError(Exception):
    """
    Base exception for all edgeconf-related errors.

    This is the root exception class for all edgeconf-specific
    errors, providing common functionality and error handling.
    """

    def __init__(self, message: str, details: Optional[dict] = None):
        """
        Initialize edgeconf error.

        Args:
            message: Human-readable error message
            details: Optional dictionary with additional error context
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Return formatted error message."""
        if self.details:
            detail_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({detail_str})"
        return self.message


class ValidationError(EdgeconfError):
    """
    Raised when a configuration cannot be converted for a target.

    Carries every validation error found, never just the first one,
    together with the warnings produced by the same pass.
    """

    def __init__(self, target: str, errors: Sequence[str], warnings: Sequence[str] = ()):
        """
        Initialize validation error.

        Args:
            target: Name of the target generator that refused the configuration
            errors: All validation errors
            warnings: Warnings produced alongside the errors
        """
        message = f"Validation failed for target '{target}': " + "; ".join(errors)
        super().__init__(message)
        self.target = target
        self.errors = list(errors)
        self.warnings = list(warnings)


class UnknownTargetError(EdgeconfError):
    """Raised when a target name does not resolve to a generator."""

    def __init__(self, name: str, available: Sequence[str] = ()):
        message = f"Unknown target '{name}'"
        if available:
            message += f". Supported: {', '.join(available)}"
        super().__init__(message, {"target": name})
        self.name = name
        self.available = list(available)


class TreeFormatError(EdgeconfError):
    """
    Raised when the input is not a directive tree at all.

    Individual malformed directive values do not raise this error;
    it only covers structural problems such as a node without a
    ``directive`` name.
    """

    def __init__(self, message: str, line: Optional[int] = None):
        details = {}
        if line is not None:
            details["line"] = line
        super().__init__(message, details)
        self.line = line


class UpstreamURLError(EdgeconfError, ValueError):
    """
    Raised when a ``proxy_pass`` value cannot be split into origin parts.

    Generators that need the host, port and protocol at generation time
    catch this per location and emit a runtime 502 path instead.
    """

    def __init__(self, url: str, reason: str):
        super().__init__(f"Invalid upstream URL '{url}': {reason}", {"url": url})
        self.url = url
        self.reason = reason
