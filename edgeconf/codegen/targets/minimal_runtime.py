"""
Minimal-runtime generator.

Emits plain JavaScript for small embeddable engines (QuickJS style):
no ``URL`` global, no filesystem, and no network stack of its own. The
generated ``handleRequest(request, platform)`` calls the injected
``platform.fetch`` for proxying and ``platform.next`` for pass-through.
"""

from __future__ import annotations

from typing import Dict, List, Optional

from ...model.config_model import LocationBlock
from ...utils.constants import PROCESS_PASSTHROUGH_DIRECTIVES, status_text
from ...utils.exceptions import UpstreamURLError
from ...utils.strings import comment_text, js_string
from ..base import BaseGenerator
from ..types import ProxyTarget, RegexDialect


class MinimalRuntimeGenerator(BaseGenerator):
    """Generator for minimal embeddable JavaScript runtimes."""

    target = "minimal"
    file_extension = ".js"
    template_name = "minimal.js.j2"
    regex_dialect = RegexDialect.MINIMAL

    def validate_platform_specific(self, errors: List[str], warnings: List[str]) -> None:
        for index, server in enumerate(self.config.servers, 1):
            if server.ssl is not None or any(entry.ssl for entry in server.listen):
                warnings.append(f"Server {index}: SSL must be terminated by the embedding host")

        for label, _server, location in self.iter_locations():
            directives = location.directives
            for name in PROCESS_PASSTHROUGH_DIRECTIVES:
                if directives.has(name):
                    errors.append(f"{label}: {name} is not supported; the runtime cannot reach a local process")
            if directives.try_files:
                errors.append(f"{label}: try_files needs filesystem access, which the runtime does not have")
            if directives.serves_static:
                warnings.append(f"{label}: no filesystem access; static files return a 501 placeholder")
            if directives.proxy_pass is not None:
                warnings.append(f"{label}: proxying buffers through platform.fetch; keep responses small for the memory budget")
                try:
                    ProxyTarget.parse(directives.proxy_pass)
                except UpstreamURLError as e:
                    warnings.append(f"{label}: {e.reason} in proxy_pass; location will respond 502")

    def emit_redirect(self, location_expr: str, code: int, headers: Dict[str, str]) -> List[str]:
        return [
            f"return redirectResponse(expandVars({location_expr}, vars), {code}, "
            f"{js_string(status_text(code))}, {self.headers_literal(headers)}, vars);",
        ]

    def emit_direct_response(self, code: int, body: Optional[str], headers: Dict[str, str]) -> List[str]:
        body_expr = "null" if body is None else js_string(body)
        return [
            f"return createResponse({code}, {js_string(status_text(code))}, {body_expr}, "
            f"{self.headers_literal(headers)}, vars);",
        ]

    def emit_proxy(self, location: LocationBlock, headers: Dict[str, str]) -> List[str]:
        directives = location.directives
        try:
            target = ProxyTarget.parse(directives.proxy_pass)
        except UpstreamURLError as e:
            self.log.log_degraded_location(self.target, location.path, e.reason)
            lines = []
            if self.options.emit_comments:
                lines.append(f"// proxy_pass {comment_text(directives.proxy_pass)}: {comment_text(e.reason)}")
            lines.append(f"return createResponse(502, {js_string(status_text(502))}, null, {{}}, vars);")
            return lines

        return [
            "const response = await proxyRequest(platform, ctx, path, {",
            f"  origin: {js_string(target.origin)},",
            f"  host: {js_string(target.host)},",
            f"  uri: {self.proxy_uri_literal(location, target.uri)},",
            f"  prefix: {js_string('' if location.is_regex else location.path)},",
            f"  headers: {self.headers_literal(directives.proxy_set_header)},",
            "}, vars);",
            f"return withHeaders(response, {self.headers_literal(headers)}, vars);",
        ]

    def emit_static(self, location: LocationBlock, headers: Dict[str, str]) -> List[str]:
        return [
            f"return createResponse(501, {js_string(status_text(501))}, \"Static file serving not available\", "
            f"{self.headers_literal(headers)}, vars);",
        ]

    def emit_default(self, location: LocationBlock, headers: Dict[str, str]) -> List[str]:
        return [f"return withHeaders(await passThrough(request, platform, vars), {self.headers_literal(headers)}, vars);"]
