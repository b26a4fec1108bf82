"""
Configuration Model Builder.

Walks a Directive Tree and produces an immutable ``NginxConfig``. The
``http`` context is flattened away so ``server`` and ``upstream`` blocks
are recognized whether or not they are nested under it.

The builder never raises on bad directive values. Anomalies such as a
``listen`` without a numeric port are recorded in
``NginxConfig.warnings`` and logged, and the affected field is left
empty instead of guessed.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from ..utils.constants import (
    FLATTENED_CONTAINERS,
    GLOBAL_CONTAINERS,
    LOAD_BALANCING_DIRECTIVES,
    REWRITE_FLAGS,
    is_redirect_code,
)
from ..utils.logging import ConversionLogger
from .config_model import (
    DirectiveValue,
    ListenDirective,
    LoadBalancingMethod,
    LocationBlock,
    LocationDirectives,
    LocationModifier,
    NginxConfig,
    ReturnDirective,
    RewriteRule,
    ServerBlock,
    SSLConfig,
    UpstreamBlock,
    UpstreamServer,
)
from .tree import DirectiveNode, TreeInput, load_tree, walk

LISTEN_FLAGS = {"ssl": "ssl", "http2": "http2", "default_server": "default_server", "default": "default_server"}

SSL_DIRECTIVES = {
    "ssl_certificate": "certificate",
    "ssl_certificate_key": "certificate_key",
    "ssl_protocols": "protocols",
    "ssl_ciphers": "ciphers",
    "ssl_prefer_server_ciphers": "prefer_server_ciphers",
}

SINGLE_VALUE_DIRECTIVES = ("proxy_pass", "root", "alias", "expires")
LIST_DIRECTIVES = ("index", "try_files")
ACCUMULATED_DIRECTIVES = ("allow", "deny")
HEADER_DIRECTIVES = ("add_header", "proxy_set_header")

RETURN_URL_PREFIXES = ("http://", "https://", "$scheme")


def parse_value(args: Sequence[str]) -> DirectiveValue:
    """
    Coerce directive arguments into a passthrough value.

    No arguments means a bare flag (``True``); ``on``/``off`` become
    booleans; digit strings become integers; several arguments are
    kept as a tuple.
    """
    if not args:
        return True
    if len(args) > 1:
        return tuple(args)

    value = args[0]
    if value == "on":
        return True
    if value == "off":
        return False
    if value.isdigit():
        return int(value)
    return value


def split_host_port(address: str) -> Tuple[Optional[str], str]:
    """
    Split ``host:port``, ``[v6]:port``, ``port`` or ``host`` forms.

    Returns:
        Tuple of (host or None, port text). Port text is empty when the
        address carries no port part.
    """
    if address.startswith("["):
        end = address.find("]")
        if end == -1:
            return address, ""
        rest = address[end + 1:]
        return address[:end + 1], rest[1:] if rest.startswith(":") else ""
    if address.isdigit():
        return None, address
    if ":" in address:
        host, port_text = address.rsplit(":", 1)
        return host, port_text
    return address, ""


class ConfigBuilder:
    """
    Converts a Directive Tree into an ``NginxConfig``.

    A builder instance may be reused; every ``build`` call starts with
    a fresh warning list and shares no state with earlier runs.
    """

    def __init__(self):
        self.log = ConversionLogger(__name__)
        self._warnings: List[str] = []

    def build(self, tree: Union[TreeInput, Sequence[DirectiveNode]]) -> NginxConfig:
        """
        Build the Configuration Model.

        Args:
            tree: Directive nodes, a list of node mappings, or a
                crossplane-style payload

        Returns:
            Immutable NginxConfig; a tree without servers yields an
            empty ``servers`` tuple, not an error
        """
        nodes = self._as_nodes(tree)
        self._warnings = []

        servers: List[ServerBlock] = []
        upstreams: List[UpstreamBlock] = []
        global_: Dict[str, DirectiveValue] = {}

        self.log.logger.debug(f"Building configuration from {sum(1 for _ in walk(nodes))} directive(s)")
        self._collect(nodes, servers, upstreams, global_)

        config = NginxConfig(
            servers=tuple(servers),
            upstreams=tuple(upstreams),
            global_=global_,
            warnings=tuple(self._warnings),
        )
        self.log.logger.info(
            f"Built configuration: {len(servers)} server(s), {len(upstreams)} upstream(s), "
            f"{len(self._warnings)} warning(s)"
        )
        return config

    def _as_nodes(self, tree: Any) -> Tuple[DirectiveNode, ...]:
        if isinstance(tree, (list, tuple)) and all(isinstance(node, DirectiveNode) for node in tree):
            return tuple(tree)
        return load_tree(tree)

    def _warn(self, message: str, line: Optional[int] = None) -> None:
        where = f" (line {line})" if line is not None else ""
        self._warnings.append(f"{message}{where}")
        self.log.log_builder_anomaly(message, line)

    # =========================================================================
    # Top level
    # =========================================================================

    def _collect(self, nodes: Sequence[DirectiveNode], servers: List[ServerBlock],
                 upstreams: List[UpstreamBlock], global_: Dict[str, DirectiveValue]) -> None:
        for node in nodes:
            name = node.directive
            if name in FLATTENED_CONTAINERS and node.is_block:
                self._collect(node.children(), servers, upstreams, global_)
            elif name == "server" and node.is_block:
                servers.append(self._convert_server(node))
            elif name == "upstream" and node.is_block:
                upstream = self._convert_upstream(node)
                if upstream is not None:
                    upstreams.append(upstream)
            elif name in GLOBAL_CONTAINERS and node.is_block:
                for child in node.children():
                    if not child.is_block:
                        global_[child.directive] = parse_value(child.args)
            elif node.is_block:
                # map, types, stream and similar contexts have no model counterpart
                self.log.logger.debug(f"Skipping '{name}' block at line {node.line}")
            else:
                global_[name] = parse_value(node.args)

    # =========================================================================
    # Server blocks
    # =========================================================================

    def _convert_server(self, node: DirectiveNode) -> ServerBlock:
        listen: List[ListenDirective] = []
        names: List[str] = []
        locations: List[LocationBlock] = []
        ssl_fields: Dict[str, Any] = {}
        extra: Dict[str, DirectiveValue] = {}

        for child in node.children():
            name = child.directive
            if name == "listen":
                entry = self._parse_listen(child)
                if entry is not None:
                    listen.append(entry)
            elif name == "server_name":
                names.extend(child.args)
            elif name == "location":
                locations.extend(self._convert_location(child))
            elif name in SSL_DIRECTIVES:
                self._apply_ssl_directive(ssl_fields, child)
            elif child.is_block:
                self._warn(f"Unsupported '{name}' block in server skipped", child.line)
            else:
                extra[name] = parse_value(child.args)

        return ServerBlock(
            listen=tuple(listen),
            server_name=tuple(names),
            locations=tuple(locations),
            ssl=SSLConfig(**ssl_fields) if ssl_fields else None,
            extra=extra,
            line=node.line,
        )

    def _parse_listen(self, node: DirectiveNode) -> Optional[ListenDirective]:
        if not node.args:
            self._warn("'listen' without an address", node.line)
            return None

        host, port_text = split_host_port(node.args[0])
        port = int(port_text) if port_text.isdigit() else None
        if port is None:
            self._warn(f"'listen {node.args[0]}' has no numeric port; port left unset", node.line)

        flags: Dict[str, bool] = {}
        options: List[str] = []
        for arg in node.args[1:]:
            if arg in LISTEN_FLAGS:
                flags[LISTEN_FLAGS[arg]] = True
            else:
                options.append(arg)

        return ListenDirective(port=port, host=host, options=tuple(options), **flags)

    def _apply_ssl_directive(self, fields: Dict[str, Any], node: DirectiveNode) -> None:
        key = SSL_DIRECTIVES[node.directive]
        if not node.args:
            self._warn(f"'{node.directive}' without a value", node.line)
            return
        if key == "protocols":
            fields[key] = tuple(node.args)
        elif key == "prefer_server_ciphers":
            fields[key] = node.args[0] == "on"
        else:
            fields[key] = node.args[0]

    # =========================================================================
    # Location blocks
    # =========================================================================

    def _convert_location(self, node: DirectiveNode) -> List[LocationBlock]:
        """Convert a location and any locations nested in it, parent first."""
        args = node.args
        if not args:
            self._warn("'location' without a path skipped", node.line)
            return []

        modifier = LocationModifier.from_token(args[0])
        if modifier is not None:
            if len(args) < 2:
                self._warn(f"'location {args[0]}' without a path skipped", node.line)
                return []
            path = args[1]
        else:
            path = args[0]

        fields: Dict[str, Any] = {}
        nested: List[LocationBlock] = []
        for child in node.children():
            if child.directive == "location":
                nested.extend(self._convert_location(child))
            elif child.is_block:
                self._warn(f"Unsupported '{child.directive}' block in location {path} skipped", child.line)
            else:
                self._apply_location_directive(fields, child)

        location = LocationBlock(
            path=path,
            modifier=modifier,
            directives=self._freeze_directives(fields),
            line=node.line,
        )
        return [location] + nested

    def _apply_location_directive(self, fields: Dict[str, Any], node: DirectiveNode) -> None:
        name, args = node.directive, node.args

        if name in SINGLE_VALUE_DIRECTIVES:
            if not args:
                self._warn(f"'{name}' without a value", node.line)
                return
            # expires keeps its optional "modified" prefix
            fields[name] = " ".join(args) if name == "expires" else args[0]
        elif name in LIST_DIRECTIVES:
            fields[name] = tuple(args)
        elif name in ACCUMULATED_DIRECTIVES:
            fields.setdefault(name, []).extend(args)
        elif name == "rewrite":
            rule = self._parse_rewrite(node)
            if rule is not None:
                fields.setdefault("rewrite", []).append(rule)
        elif name == "return":
            directive = self._parse_return(node)
            if directive is None:
                fields.setdefault("extra", {})[name] = parse_value(args)
            else:
                fields["return_"] = directive
        elif name in HEADER_DIRECTIVES:
            self._apply_header(fields.setdefault(name, {}), node)
        else:
            fields.setdefault("extra", {})[name] = parse_value(args)

    def _apply_header(self, headers: Dict[str, str], node: DirectiveNode) -> None:
        args = node.args
        if len(args) < 2:
            self._warn(f"'{node.directive}' needs a name and a value", node.line)
            return

        values = list(args[1:])
        if node.directive == "add_header" and len(values) > 1 and values[-1] == "always":
            values.pop()

        # Header names are case-insensitive; the later spelling and value win
        header = args[0]
        for existing in [key for key in headers if key.lower() == header.lower()]:
            del headers[existing]
        headers[header] = " ".join(values)

    def _parse_rewrite(self, node: DirectiveNode) -> Optional[RewriteRule]:
        args = node.args
        if len(args) < 2:
            self._warn("'rewrite' needs a regex and a replacement", node.line)
            return None

        flags = []
        for flag in args[2:]:
            if flag in REWRITE_FLAGS:
                flags.append(flag)
            else:
                self._warn(f"Unknown rewrite flag '{flag}' ignored", node.line)
        return RewriteRule(regex=args[0], replacement=args[1], flags=tuple(flags))

    def _parse_return(self, node: DirectiveNode) -> Optional[ReturnDirective]:
        args = node.args
        if not args:
            self._warn("'return' without a status code", node.line)
            return None

        first = args[0]
        if first.isdigit():
            code = int(first)
            rest = " ".join(args[1:]) or None
            if is_redirect_code(code):
                return ReturnDirective(code=code, url=rest)
            return ReturnDirective(code=code, text=rest)

        if len(args) == 1 and first.startswith(RETURN_URL_PREFIXES):
            return ReturnDirective(code=302, url=first)

        self._warn(f"'return {first}' has no numeric status code; kept as passthrough", node.line)
        return None

    def _freeze_directives(self, fields: Dict[str, Any]) -> LocationDirectives:
        for name in ACCUMULATED_DIRECTIVES + ("rewrite",):
            if name in fields:
                fields[name] = tuple(fields[name])
        return LocationDirectives(**fields)

    # =========================================================================
    # Upstream blocks
    # =========================================================================

    def _convert_upstream(self, node: DirectiveNode) -> Optional[UpstreamBlock]:
        if not node.args:
            self._warn("'upstream' without a name skipped", node.line)
            return None

        servers: List[UpstreamServer] = []
        method = LoadBalancingMethod.ROUND_ROBIN
        extra: Dict[str, DirectiveValue] = {}

        for child in node.children():
            name = child.directive
            if name == "server":
                server = self._parse_upstream_server(child)
                if server is not None:
                    servers.append(server)
            elif name in LOAD_BALANCING_DIRECTIVES:
                method = LoadBalancingMethod(name)
                if child.args:
                    extra[name] = parse_value(child.args)
            elif child.is_block:
                self._warn(f"Unsupported '{name}' block in upstream skipped", child.line)
            else:
                extra[name] = parse_value(child.args)

        return UpstreamBlock(name=node.args[0], servers=tuple(servers), method=method, extra=extra)

    def _parse_upstream_server(self, node: DirectiveNode) -> Optional[UpstreamServer]:
        if not node.args:
            self._warn("upstream 'server' without an address", node.line)
            return None

        address = node.args[0]
        port = None
        if not address.startswith("unix:"):
            host, port_text = split_host_port(address)
            if port_text.isdigit() and host is not None:
                address, port = host, int(port_text)

        params: Dict[str, Any] = {}
        for arg in node.args[1:]:
            key, _, value = arg.partition("=")
            if key in ("backup", "down") and not value:
                params[key] = True
            elif key in ("weight", "max_fails"):
                if value.isdigit():
                    params[key] = int(value)
                else:
                    self._warn(f"upstream server {address}: '{arg}' is not numeric", node.line)
            elif key == "fail_timeout" and value:
                params[key] = value
            else:
                self.log.logger.debug(f"upstream server {address}: parameter '{arg}' not modeled")

        return UpstreamServer(address=address, port=port, **params)


def build_config(tree: Union[TreeInput, Sequence[DirectiveNode]]) -> NginxConfig:
    """Build a Configuration Model from a Directive Tree."""
    return ConfigBuilder().build(tree)
