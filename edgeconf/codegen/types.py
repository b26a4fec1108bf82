"""
Core Data Structures for Target Code Generation.

This module defines the value types shared by the matching engine and
the target generators. All data structures are immutable.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, Optional, Tuple

from ..utils.constants import DEFAULT_INDENT_SIZE
from ..utils.exceptions import UpstreamURLError
from ..utils.strings import js_regex_literal

if TYPE_CHECKING:
    from ..utils.config import EdgeconfConfig


class RegexDialect(Enum):
    """Regex engine a target's generated code runs on."""
    ECMASCRIPT = "ecmascript"
    MINIMAL = "minimal"


@dataclass(frozen=True)
class GenerationOptions:
    """Knobs for code generation. Never read from global state by generators."""
    indent_size: int = DEFAULT_INDENT_SIZE
    emit_comments: bool = True

    @property
    def indent(self) -> str:
        return " " * self.indent_size

    @classmethod
    def from_config(cls, config: "EdgeconfConfig") -> "GenerationOptions":
        return cls(
            indent_size=config.generation.indent_size,
            emit_comments=config.generation.emit_comments,
        )


@dataclass(frozen=True)
class ValidationResult:
    """Result of a validation pass: every error and warning found."""
    valid: bool
    errors: Tuple[str, ...] = ()
    warnings: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "valid": self.valid,
            "errors": list(self.errors),
            "warnings": list(self.warnings),
        }


@dataclass(frozen=True)
class RegexTranslation:
    """
    An nginx (PCRE) regex translated for a target regex engine.

    ``problems`` lists constructs that cannot be translated; when any
    exist the pattern must not be emitted. ``notes`` lists constructs
    that translate but may not be supported by every engine of the
    dialect.
    """
    pattern: str
    source: str
    flags: str = ""
    problems: Tuple[str, ...] = ()
    notes: Tuple[str, ...] = ()

    @property
    def supported(self) -> bool:
        return not self.problems

    def literal(self) -> str:
        return js_regex_literal(self.source, self.flags)


_PROXY_URL = re.compile(r"^(?P<scheme>https?)://(?P<authority>[^/?#]*)(?P<rest>.*)$", re.IGNORECASE)
_DEFAULT_PORTS = {"http": 80, "https": 443}


@dataclass(frozen=True)
class ProxyTarget:
    """
    A ``proxy_pass`` value split into origin parts.

    ``uri`` is None when the value has no URI part. nginx then forwards
    the request path unchanged; with a URI part the matched location
    prefix is replaced by it.
    """
    url: str
    scheme: str
    host: str
    port: int
    uri: Optional[str] = None

    @property
    def default_port(self) -> bool:
        return _DEFAULT_PORTS[self.scheme] == self.port

    @property
    def origin(self) -> str:
        if self.default_port:
            return f"{self.scheme}://{self.host}"
        return f"{self.scheme}://{self.host}:{self.port}"

    @classmethod
    def parse(cls, url: str) -> "ProxyTarget":
        """
        Strictly parse a ``proxy_pass`` URL.

        Raises:
            UpstreamURLError: If the scheme is not http(s), the host is
                missing or contains variables, or the port is invalid
        """
        match = _PROXY_URL.match(url.strip())
        if match is None:
            raise UpstreamURLError(url, "expected an http:// or https:// URL")

        scheme = match.group("scheme").lower()
        authority = match.group("authority")
        if not authority:
            raise UpstreamURLError(url, "missing host")
        if "$" in authority:
            raise UpstreamURLError(url, "host is only known at request time")
        if "@" in authority:
            raise UpstreamURLError(url, "credentials in upstream URL are not supported")

        if authority.startswith("["):
            end = authority.find("]")
            if end == -1:
                raise UpstreamURLError(url, "unterminated IPv6 address")
            host, port_text = authority[:end + 1], authority[end + 2:] if authority[end + 1:end + 2] == ":" else ""
        elif ":" in authority:
            host, port_text = authority.rsplit(":", 1)
        else:
            host, port_text = authority, ""

        if not host:
            raise UpstreamURLError(url, "missing host")
        if port_text:
            if not port_text.isdigit() or not 0 < int(port_text) < 65536:
                raise UpstreamURLError(url, f"invalid port '{port_text}'")
            port = int(port_text)
        else:
            port = _DEFAULT_PORTS[scheme]

        rest = match.group("rest")
        return cls(url=url, scheme=scheme, host=host.lower(), port=port, uri=rest or None)


def split_proxy_pass(url: str) -> Tuple[str, Optional[str]]:
    """
    Split a ``proxy_pass`` value into its origin part and URI part.

    Never raises: values that are not URLs come back whole with no URI
    part, for targets that resolve the origin at request time.
    """
    scheme_end = url.find("://")
    if scheme_end == -1:
        return url, None
    path_start = url.find("/", scheme_end + 3)
    if path_start == -1:
        return url, None
    return url[:path_start], url[path_start:]
