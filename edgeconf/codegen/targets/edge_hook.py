"""
CDN-edge hook generator.

Emits a Lambda@Edge style handler with one code path per request
lifecycle phase, selected from ``cf.config.eventType``:

- viewer-request: location selection, redirects, direct returns and
  URI rewrites
- origin-request: custom origin and proxy headers for ``proxy_pass``
- origin-response: response headers of the matched location
- viewer-response: passed through unchanged

The location is selected once, at viewer-request. Its route id
(``<server>.<location>``, both 1-based in declaration order) travels
to the later phases in the ``X-Edgeconf-Location`` request header,
together with ``X-Edgeconf-Rewritten`` when a rewrite changed the URI.

Headers use the platform's ``{key, value}`` list representation. The
origin is resolved at generation time, so a ``proxy_pass`` that cannot
be parsed turns into a 502 response for that location only.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from ...model.config_model import LocationBlock
from ...utils.constants import PROCESS_PASSTHROUGH_DIRECTIVES, status_text
from ...utils.exceptions import UpstreamURLError
from ...utils.strings import comment_text, indent_lines, js_string
from ..base import BaseGenerator, LocationAction
from ..headers import parse_nginx_time, response_headers
from ..matching import sort_locations
from ..types import ProxyTarget, RegexDialect

DEFAULT_READ_TIMEOUT = 30
MAX_READ_TIMEOUT = 60
DEFAULT_KEEPALIVE_TIMEOUT = 5
ORIGIN_SSL_PROTOCOLS = ("TLSv1.2",)


class EdgeHookGenerator(BaseGenerator):
    """Generator for CDN request/response hooks (Lambda@Edge style)."""

    target = "edge-hook"
    file_extension = ".js"
    template_name = "edge_hook.js.j2"
    regex_dialect = RegexDialect.ECMASCRIPT

    def validate_platform_specific(self, errors: List[str], warnings: List[str]) -> None:
        for index, server in enumerate(self.config.servers, 1):
            if server.ssl is not None or any(entry.ssl for entry in server.listen):
                warnings.append(f"Server {index}: SSL is managed by the CDN distribution, not by the hook")

        for label, _server, location in self.iter_locations():
            directives = location.directives
            for name in PROCESS_PASSTHROUGH_DIRECTIVES:
                if directives.has(name):
                    errors.append(f"{label}: {name} is not supported; the edge cannot hand requests to a local process")
            if directives.serves_static:
                warnings.append(f"{label}: static files must come from the distribution's storage origin")
            if directives.proxy_pass is not None:
                warnings.append(f"{label}: proxied responses are subject to the edge response size limits")
                try:
                    ProxyTarget.parse(directives.proxy_pass)
                except UpstreamURLError as e:
                    warnings.append(f"{label}: {e.reason} in proxy_pass; location will respond 502")

    def template_context(self) -> Dict[str, Any]:
        return {
            "viewer_request": self.render_servers(self.location_action),
            "origin_request": self.render_routes(self.origin_request_action),
            "origin_response": self.render_routes(self.origin_response_action),
        }

    # =========================================================================
    # Route ids
    # =========================================================================

    def route_id(self, location: LocationBlock) -> str:
        """Route id of a location of this configuration."""
        for index, server in enumerate(self.config.servers, 1):
            for position, candidate in enumerate(server.locations, 1):
                if candidate is location:
                    return f"{index}.{position}"
        raise ValueError(f"location {location.label} is not part of this configuration")

    def render_routes(self, action: LocationAction, level: int = 1) -> str:
        """
        Render one block per location, selected by the route id that
        viewer-request recorded.

        Args:
            action: Produces the statements for the selected location
            level: Indentation level of the emitted blocks

        Returns:
            Routing code, or an empty string when no location has
            statements for ``action``
        """
        lines: List[str] = []
        for index, server in enumerate(self.config.servers, 1):
            for location in sort_locations(server.locations):
                if location.is_named:
                    continue
                body = action(location)
                if not body:
                    continue
                if lines:
                    lines.append("")
                if self.options.emit_comments:
                    lines.append(f"// Server block {index}, location {comment_text(location.label)}")
                lines.append(f"if (route === {js_string(self.route_id(location))}) {{")
                lines.extend(indent_lines(body))
                lines.append("}")
        return "\n".join(indent_lines(lines, level))

    # =========================================================================
    # viewer-request
    # =========================================================================

    def emit_redirect(self, location_expr: str, code: int, headers: Dict[str, str]) -> List[str]:
        return [
            f"return redirectResponse(expandVars({location_expr}, vars), {code}, "
            f"{js_string(status_text(code))}, {self.headers_literal(headers)}, vars);",
        ]

    def emit_direct_response(self, code: int, body: Optional[str], headers: Dict[str, str]) -> List[str]:
        body_expr = "null" if body is None else js_string(body)
        return [
            f"return statusResponse({code}, {js_string(status_text(code))}, {body_expr}, "
            f"{self.headers_literal(headers)}, vars);",
        ]

    def emit_proxy(self, location: LocationBlock, headers: Dict[str, str]) -> List[str]:
        return self._forward_request(location)

    def emit_static(self, location: LocationBlock, headers: Dict[str, str]) -> List[str]:
        lines = []
        if self.options.emit_comments:
            lines.append("// Static files are served by the distribution's storage origin")
        lines.extend(self._forward_request(location))
        return lines

    def emit_default(self, location: LocationBlock, headers: Dict[str, str]) -> List[str]:
        return self._forward_request(location)

    def _forward_request(self, location: LocationBlock) -> List[str]:
        return [f"return forwardRequest(request, path, rewritten, {js_string(self.route_id(location))});"]

    # =========================================================================
    # origin-request
    # =========================================================================

    def origin_request_action(self, location: LocationBlock) -> List[str]:
        """Point the request at the location's custom origin."""
        directives = location.directives
        if directives.proxy_pass is None or directives.return_ is not None:
            return []

        try:
            target = ProxyTarget.parse(directives.proxy_pass)
        except UpstreamURLError as e:
            self.log.log_degraded_location(self.target, location.path, e.reason)
            lines = []
            if self.options.emit_comments:
                lines.append(f"// proxy_pass {comment_text(directives.proxy_pass)}: {comment_text(e.reason)}")
            lines.append(f"return statusResponse(502, {js_string(status_text(502))}, null, {{}}, vars);")
            return lines

        lines = []
        if self.options.emit_comments:
            lines.append(f"// proxy_pass {comment_text(directives.proxy_pass)}")
        lines.extend([
            "request.origin = {",
            "  custom: {",
            f"    domainName: {js_string(target.host)},",
            f"    port: {target.port},",
            f"    protocol: {js_string(target.scheme)},",
            "    path: \"\",",
            f"    sslProtocols: [{', '.join(js_string(p) for p in ORIGIN_SSL_PROTOCOLS)}],",
            f"    readTimeout: {self._read_timeout(location)},",
            f"    keepaliveTimeout: {DEFAULT_KEEPALIVE_TIMEOUT},",
            "    customHeaders: {},",
            "  },",
            "};",
            f"setHeader(request.headers, \"Host\", {js_string(target.host)});",
        ])
        for name, value in directives.proxy_set_header.items():
            lines.append(f"setHeader(request.headers, {js_string(name)}, expandVars({js_string(value)}, vars));")
        if target.uri is not None and not location.is_regex:
            replace_uri = f"request.uri = expandVars({js_string(target.uri)}, vars) + path.slice({len(location.path)});"
            if directives.rewrites_uri:
                lines.extend(["if (!rewritten) {", *indent_lines([replace_uri]), "}"])
            else:
                lines.append(replace_uri)
        lines.append("return request;")
        return lines

    def _read_timeout(self, location: LocationBlock) -> int:
        value = location.directives.extra.get("proxy_read_timeout")
        seconds = parse_nginx_time(str(value)) if value is not None else None
        if seconds is None or seconds < 1:
            return DEFAULT_READ_TIMEOUT
        return min(seconds, MAX_READ_TIMEOUT)

    # =========================================================================
    # origin-response
    # =========================================================================

    def origin_response_action(self, location: LocationBlock) -> List[str]:
        """Apply the matched location's response headers."""
        headers = response_headers(location.directives)
        if not headers:
            return []

        lines = [
            f"setHeader(response.headers, {js_string(name)}, expandVars({js_string(value)}, vars));"
            for name, value in headers.items()
        ]
        lines.append("return response;")
        return lines
