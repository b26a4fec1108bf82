"""
HTTP middleware generator.

Emits a Next.js-style ``middleware.ts``. Middleware cannot open
arbitrary outbound connections, so ``proxy_pass`` becomes a rewrite to
the upstream URL and internal rewrites become ``NextResponse.rewrite``.
Static files are left to the framework's public directory convention.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from ...model.config_model import LocationBlock, LocationModifier
from ...utils.strings import js_string
from ..base import BaseGenerator
from ..types import RegexDialect, split_proxy_pass

LOCAL_HOSTS = ("localhost", "127.0.0.1", "[::1]", "0.0.0.0")

# Matches every request path except framework internals
CATCH_ALL_MATCHER = "/((?!_next/static|_next/image|favicon.ico).*)"


class MiddlewareGenerator(BaseGenerator):
    """Generator for Next.js middleware."""

    target = "middleware"
    file_extension = ".ts"
    template_name = "middleware.ts.j2"
    regex_dialect = RegexDialect.ECMASCRIPT

    def validate_platform_specific(self, errors: List[str], warnings: List[str]) -> None:
        for index, server in enumerate(self.config.servers, 1):
            if server.ssl is not None or any(entry.ssl for entry in server.listen):
                warnings.append(f"Server {index}: SSL is terminated by the hosting platform")

        for label, _server, location in self.iter_locations():
            directives = location.directives
            if directives.serves_static:
                warnings.append(f"{label}: static files are served from the public directory, not by middleware")
            if directives.proxy_pass is None:
                continue

            origin, _uri = split_proxy_pass(directives.proxy_pass)
            if not origin.lower().startswith(("http://", "https://")):
                warnings.append(f"{label}: proxy_pass '{directives.proxy_pass}' is not an http(s) URL")
            elif not self._is_local(origin):
                warnings.append(
                    f"{label}: middleware cannot proxy to '{origin}'; degrades to a rewrite to that URL"
                )

    def _is_local(self, origin: str) -> bool:
        authority = origin.split("://", 1)[-1]
        host = authority.rsplit(":", 1)[0] if not authority.endswith("]") else authority
        return host.lower() in LOCAL_HOSTS

    def template_context(self) -> Dict[str, Any]:
        context = super().template_context()
        context["typescript"] = True
        context["matchers"] = self.matchers()
        return context

    def matchers(self) -> List[str]:
        """Path matchers for ``export const config``, in first-seen order."""
        paths: List[str] = []

        def add(matcher: str) -> None:
            if matcher not in paths:
                paths.append(matcher)

        for server in self.config.servers:
            for location in server.locations:
                path = location.path
                if location.is_named:
                    continue
                if location.is_regex:
                    add(CATCH_ALL_MATCHER)
                elif location.modifier is LocationModifier.EXACT:
                    add(path)
                elif path == "/":
                    add("/:path*")
                elif path.endswith("/"):
                    add(f"{path}:path*")
                else:
                    add(path)
                    add(f"{path}/:path*")

        return paths or [CATCH_ALL_MATCHER]

    # =========================================================================
    # Actions
    # =========================================================================

    def emit_redirect(self, location_expr: str, code: int, headers: Dict[str, str]) -> List[str]:
        return [
            f"return withHeaders(NextResponse.redirect(new URL(expandVars({location_expr}, vars), request.url), "
            f"{code}), {self.headers_literal(headers)}, vars);",
        ]

    def emit_direct_response(self, code: int, body: Optional[str], headers: Dict[str, str]) -> List[str]:
        body_expr = "null" if body is None else f"expandVars({js_string(body)}, vars)"
        return [
            f"return withHeaders(new NextResponse({body_expr}, {{ status: {code} }}), "
            f"{self.headers_literal(headers)}, vars);",
        ]

    def emit_proxy(self, location: LocationBlock, headers: Dict[str, str]) -> List[str]:
        directives = location.directives
        origin, uri = split_proxy_pass(directives.proxy_pass)
        if uri is None or location.is_regex:
            path_expr = "path"
        else:
            path_expr = f"expandVars({js_string(uri)}, vars) + path.slice({len(location.path)})"
            if location.directives.rewrites_uri:
                path_expr = f"rewritten ? path : {path_expr}"
        return [
            f"const upstream = new URL(expandVars({js_string(origin)}, vars));",
            f"upstream.pathname = {path_expr};",
            "upstream.search = url.search;",
            "return withHeaders(NextResponse.rewrite(upstream, {",
            f"  request: {{ headers: forwardHeaders(request, {self.headers_literal(directives.proxy_set_header)}, vars) }},",
            f"}}), {self.headers_literal(headers)}, vars);",
        ]

    def emit_static(self, location: LocationBlock, headers: Dict[str, str]) -> List[str]:
        lines = []
        if self.options.emit_comments:
            lines.append("// Static files are served from the public directory")
        lines.extend(self.emit_default(location, headers))
        return lines

    def emit_default(self, location: LocationBlock, headers: Dict[str, str]) -> List[str]:
        if location.directives.rewrites_uri:
            return [
                "return withHeaders(NextResponse.rewrite(new URL(path + url.search, request.url)), "
                f"{self.headers_literal(headers)}, vars);",
            ]
        return [f"return withHeaders(NextResponse.next(), {self.headers_literal(headers)}, vars);"]
