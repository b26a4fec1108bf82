"""
Configuration Model for nginx-to-edge conversion.

This module defines the normalized, strongly-typed representation the
builder produces from a Directive Tree. All structures are immutable
once built: sequences are tuples and the model is discarded after the
generators finish.

Directive families the generators understand get dedicated fields.
Everything else is kept in an explicit ``extra`` passthrough map whose
values are limited to ``DirectiveValue``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple, Union

from ..utils.constants import REDIRECT_FLAGS, is_redirect_code

# Passthrough value: string, number, flag, argument list or header-style map
DirectiveValue = Union[str, int, bool, Tuple[str, ...], Dict[str, str]]


class LocationModifier(Enum):
    """Location matching mode token."""
    EXACT = "="
    REGEX = "~"
    REGEX_CASE_INSENSITIVE = "~*"
    PRIORITY_PREFIX = "^~"

    @property
    def is_regex(self) -> bool:
        return self in (LocationModifier.REGEX, LocationModifier.REGEX_CASE_INSENSITIVE)

    @classmethod
    def from_token(cls, token: str) -> Optional["LocationModifier"]:
        for modifier in cls:
            if modifier.value == token:
                return modifier
        return None


class LoadBalancingMethod(Enum):
    """Upstream balancing strategy. Informational only."""
    ROUND_ROBIN = "round_robin"
    LEAST_CONN = "least_conn"
    IP_HASH = "ip_hash"
    HASH = "hash"
    RANDOM = "random"


@dataclass(frozen=True)
class ListenDirective:
    """One ``listen`` entry. ``port`` is None when the address had no numeric port."""
    port: Optional[int]
    host: Optional[str] = None
    ssl: bool = False
    http2: bool = False
    default_server: bool = False
    options: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"port": self.port}
        if self.host is not None:
            data["host"] = self.host
        for flag in ("ssl", "http2", "default_server"):
            if getattr(self, flag):
                data[flag] = True
        if self.options:
            data["options"] = list(self.options)
        return data


@dataclass(frozen=True)
class SSLConfig:
    certificate: Optional[str] = None
    certificate_key: Optional[str] = None
    protocols: Tuple[str, ...] = ()
    ciphers: Optional[str] = None
    prefer_server_ciphers: Optional[bool] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        if self.certificate is not None:
            data["certificate"] = self.certificate
        if self.certificate_key is not None:
            data["certificate_key"] = self.certificate_key
        if self.protocols:
            data["protocols"] = list(self.protocols)
        if self.ciphers is not None:
            data["ciphers"] = self.ciphers
        if self.prefer_server_ciphers is not None:
            data["prefer_server_ciphers"] = self.prefer_server_ciphers
        return data


@dataclass(frozen=True)
class RewriteRule:
    regex: str
    replacement: str
    flags: Tuple[str, ...] = ()

    @property
    def is_redirect(self) -> bool:
        """Flagged ``redirect``/``permanent``, or a replacement that is an absolute URL."""
        if any(flag in REDIRECT_FLAGS for flag in self.flags):
            return True
        return self.replacement.startswith(("http://", "https://", "$scheme"))

    @property
    def status_code(self) -> int:
        """Redirect status: 301 for ``permanent``, 302 otherwise."""
        return 301 if "permanent" in self.flags else 302

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"regex": self.regex, "replacement": self.replacement}
        if self.flags:
            data["flags"] = list(self.flags)
        return data


@dataclass(frozen=True)
class ReturnDirective:
    """
    A ``return`` directive.

    3xx codes carry ``url``; any other code carries an optional
    response body in ``text``.
    """
    code: int
    url: Optional[str] = None
    text: Optional[str] = None

    @property
    def is_redirect(self) -> bool:
        return is_redirect_code(self.code)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"code": self.code}
        if self.url is not None:
            data["url"] = self.url
        if self.text is not None:
            data["text"] = self.text
        return data


@dataclass(frozen=True)
class LocationDirectives:
    """Recognized location directives plus an ``extra`` passthrough map."""
    proxy_pass: Optional[str] = None
    root: Optional[str] = None
    alias: Optional[str] = None
    index: Tuple[str, ...] = ()
    try_files: Tuple[str, ...] = ()
    rewrite: Tuple[RewriteRule, ...] = ()
    return_: Optional[ReturnDirective] = None
    add_header: Dict[str, str] = field(default_factory=dict)
    proxy_set_header: Dict[str, str] = field(default_factory=dict)
    expires: Optional[str] = None
    allow: Tuple[str, ...] = ()
    deny: Tuple[str, ...] = ()
    extra: Dict[str, DirectiveValue] = field(default_factory=dict)

    @property
    def serves_static(self) -> bool:
        return self.root is not None or self.alias is not None

    @property
    def rewrites_uri(self) -> bool:
        """At least one rewrite rule changes the URI instead of redirecting."""
        return any(not rule.is_redirect for rule in self.rewrite)

    def has(self, name: str) -> bool:
        """Check whether a directive (recognized or passthrough) is present."""
        if name == "return":
            return self.return_ is not None
        if name in self.__dataclass_fields__ and name != "extra":
            return getattr(self, name) not in (None, (), {})
        return name in self.extra

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        for name in ("proxy_pass", "root", "alias", "expires"):
            value = getattr(self, name)
            if value is not None:
                data[name] = value
        for name in ("index", "try_files", "allow", "deny"):
            value = getattr(self, name)
            if value:
                data[name] = list(value)
        if self.rewrite:
            data["rewrite"] = [rule.to_dict() for rule in self.rewrite]
        if self.return_ is not None:
            data["return"] = self.return_.to_dict()
        if self.add_header:
            data["add_header"] = dict(self.add_header)
        if self.proxy_set_header:
            data["proxy_set_header"] = dict(self.proxy_set_header)
        for name, value in self.extra.items():
            data[name] = _plain(value)
        return data


@dataclass(frozen=True)
class LocationBlock:
    path: str
    modifier: Optional[LocationModifier] = None
    directives: LocationDirectives = field(default_factory=LocationDirectives)
    line: Optional[int] = None

    @property
    def is_regex(self) -> bool:
        return self.modifier is not None and self.modifier.is_regex

    @property
    def is_named(self) -> bool:
        """Named locations (``@name``) are only reachable internally."""
        return self.path.startswith("@")

    @property
    def label(self) -> str:
        """Source-like label such as ``~* \\.php$``."""
        if self.modifier is None:
            return self.path
        return f"{self.modifier.value} {self.path}"

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"path": self.path}
        if self.modifier is not None:
            data["modifier"] = self.modifier.value
        data["directives"] = self.directives.to_dict()
        return data


@dataclass(frozen=True)
class ServerBlock:
    listen: Tuple[ListenDirective, ...] = ()
    server_name: Tuple[str, ...] = ()
    locations: Tuple[LocationBlock, ...] = ()
    ssl: Optional[SSLConfig] = None
    extra: Dict[str, DirectiveValue] = field(default_factory=dict)
    line: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "listen": [entry.to_dict() for entry in self.listen],
            "server_name": list(self.server_name),
            "locations": [location.to_dict() for location in self.locations],
        }
        if self.ssl is not None:
            data["ssl"] = self.ssl.to_dict()
        if self.extra:
            data["extra"] = {name: _plain(value) for name, value in self.extra.items()}
        return data


@dataclass(frozen=True)
class UpstreamServer:
    address: str
    port: Optional[int] = None
    weight: Optional[int] = None
    max_fails: Optional[int] = None
    fail_timeout: Optional[str] = None
    backup: bool = False
    down: bool = False

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"address": self.address}
        for name in ("port", "weight", "max_fails", "fail_timeout"):
            value = getattr(self, name)
            if value is not None:
                data[name] = value
        if self.backup:
            data["backup"] = True
        if self.down:
            data["down"] = True
        return data


@dataclass(frozen=True)
class UpstreamBlock:
    name: str
    servers: Tuple[UpstreamServer, ...] = ()
    method: LoadBalancingMethod = LoadBalancingMethod.ROUND_ROBIN
    extra: Dict[str, DirectiveValue] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "name": self.name,
            "servers": [server.to_dict() for server in self.servers],
            "method": self.method.value,
        }
        if self.extra:
            data["extra"] = {name: _plain(value) for name, value in self.extra.items()}
        return data


@dataclass(frozen=True)
class NginxConfig:
    """
    Root of the Configuration Model.

    Server order is preserved: among equally specific host patterns
    the first server wins. ``warnings`` holds builder anomalies such as
    a ``listen`` without a numeric port.
    """
    servers: Tuple[ServerBlock, ...] = ()
    upstreams: Tuple[UpstreamBlock, ...] = ()
    global_: Dict[str, DirectiveValue] = field(default_factory=dict)
    warnings: Tuple[str, ...] = ()

    def get_upstream(self, name: str) -> Optional[UpstreamBlock]:
        for upstream in self.upstreams:
            if upstream.name == name:
                return upstream
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "servers": [server.to_dict() for server in self.servers],
            "upstreams": [upstream.to_dict() for upstream in self.upstreams],
            "global": {name: _plain(value) for name, value in self.global_.items()},
        }


def _plain(value: DirectiveValue) -> Any:
    if isinstance(value, tuple):
        return list(value)
    if isinstance(value, dict):
        return dict(value)
    return value
