"""
Fetch-event worker generator.

Emits a service-worker style script: a ``fetch`` event listener hands
each request to ``handleRequest``, which matches host and path and then
redirects, responds, or forwards the request with an outbound
``fetch``. The worker has full network access, so no construct is
refused; SSL, static files and ``expires`` only degrade.
"""

from __future__ import annotations

from typing import Dict, List, Optional

from ...model.config_model import LocationBlock
from ...utils.strings import comment_text, js_string
from ..base import BaseGenerator
from ..types import RegexDialect, split_proxy_pass


class WorkerGenerator(BaseGenerator):
    """Generator for fetch-event workers (Cloudflare Workers style)."""

    target = "worker"
    file_extension = ".js"
    template_name = "worker.js.j2"
    regex_dialect = RegexDialect.ECMASCRIPT

    def validate_platform_specific(self, errors: List[str], warnings: List[str]) -> None:
        for index, server in enumerate(self.config.servers, 1):
            if server.ssl is not None or any(entry.ssl for entry in server.listen):
                warnings.append(f"Server {index}: SSL certificates are managed by the platform, not in worker code")

        for label, _server, location in self.iter_locations():
            directives = location.directives
            if directives.serves_static:
                warnings.append(f"{label}: static file serving needs a platform asset store; emitting a 501 placeholder")
            if directives.expires is not None:
                warnings.append(f"{label}: expires is emitted as Cache-Control; edge cache rules are preferred")

    def emit_redirect(self, location_expr: str, code: int, headers: Dict[str, str]) -> List[str]:
        return [
            f"return redirectResponse(new URL(expandVars({location_expr}, vars), request.url).toString(), "
            f"{code}, {self.headers_literal(headers)}, vars);",
        ]

    def emit_direct_response(self, code: int, body: Optional[str], headers: Dict[str, str]) -> List[str]:
        body_expr = "null" if body is None else f"expandVars({js_string(body)}, vars)"
        return [
            f"return withHeaders(new Response({body_expr}, {{ status: {code} }}), "
            f"{self.headers_literal(headers)}, vars);",
        ]

    def emit_proxy(self, location: LocationBlock, headers: Dict[str, str]) -> List[str]:
        directives = location.directives
        upstream, uri = split_proxy_pass(directives.proxy_pass)
        uri_expr = self.proxy_uri_literal(location, uri)
        prefix = "" if location.is_regex else location.path
        return [
            "const response = await proxyRequest(request, url, path, {",
            f"  upstream: {js_string(upstream)},",
            f"  uri: {uri_expr},",
            f"  prefix: {js_string(prefix)},",
            f"  headers: {self.headers_literal(directives.proxy_set_header)},",
            "}, vars);",
            f"return withHeaders(response, {self.headers_literal(headers)}, vars);",
        ]

    def emit_static(self, location: LocationBlock, headers: Dict[str, str]) -> List[str]:
        directives = location.directives
        source = directives.root if directives.root is not None else directives.alias
        lines = []
        if self.options.emit_comments:
            lines.append(f"// Static files from {comment_text(source)} need Workers Sites, Pages or R2")
        lines.append(
            f"return withHeaders(new Response(\"Static file serving not implemented\", {{ status: 501 }}), "
            f"{self.headers_literal(headers)}, vars);"
        )
        return lines

    def emit_default(self, location: LocationBlock, headers: Dict[str, str]) -> List[str]:
        return [
            "const response = await fetch(new Request(new URL(path + url.search, url), request));",
            f"return withHeaders(response, {self.headers_literal(headers)}, vars);",
        ]
