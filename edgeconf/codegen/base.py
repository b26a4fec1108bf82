"""
Base Class for Target Generators.

This module provides the contract every target generator implements
and the code-assembly skeleton they share:

- ``validate()`` runs the shared structural checks plus the target's
  ``validate_platform_specific()`` and collects every finding.
- ``generate()`` validates first, refuses on any error, and otherwise
  renders header, boilerplate, per-server routing and helpers, in that
  order, through the target's Jinja2 template.

Routing is assembled here from the matching engine's pure functions.
Each location's action follows one fixed decision order; targets only
supply the concrete syntax through the ``emit_*`` hooks.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence, Tuple

from ..model.config_model import LocationBlock, NginxConfig, ReturnDirective, RewriteRule, ServerBlock
from ..utils.exceptions import ValidationError
from ..utils.logging import ConversionLogger
from ..utils.strings import comment_text, indent_lines, js_object_literal, js_string, reindent, truncate_string
from .headers import expires_is_convertible, response_headers
from .matching import (
    host_condition,
    host_regex_problems,
    location_regex,
    path_condition,
    sort_locations,
    translate_regex,
)
from .renderer import JinjaTemplateRenderer
from .types import GenerationOptions, RegexDialect, ValidationResult, split_proxy_pass

LocationAction = Callable[[LocationBlock], List[str]]

# Rewrite flags that stop processing of the following rewrite rules
STOP_FLAGS = ("last", "break")


class BaseGenerator(ABC):
    """
    Base class for all target generators.

    One instance is built per ``(config, target)`` pair and holds no
    state that changes between calls, so ``generate()`` is repeatable
    and byte-identical.
    """

    target: str = ""
    file_extension: str = ".js"
    template_name: str = ""
    regex_dialect: RegexDialect = RegexDialect.ECMASCRIPT
    hostname_expr: str = "hostname"
    path_expr: str = "path"

    def __init__(self, config: NginxConfig, options: Optional[GenerationOptions] = None,
                 renderer: Optional[JinjaTemplateRenderer] = None):
        """
        Initialize the generator.

        Args:
            config: Configuration Model to convert
            options: Generation options (defaults when omitted)
            renderer: Template renderer (package templates when omitted)
        """
        self.config = config
        self.options = options or GenerationOptions()
        self.renderer = renderer or JinjaTemplateRenderer()
        self.log = ConversionLogger(self.__class__.__module__)

    # =========================================================================
    # Public contract
    # =========================================================================

    def get_file_extension(self) -> str:
        return self.file_extension

    def validate(self) -> ValidationResult:
        """
        Check whether the configuration can be expressed on this target.

        Findings are collected exhaustively; nothing short-circuits.

        Returns:
            ValidationResult; ``valid`` is False when any error exists
        """
        errors: List[str] = []
        warnings: List[str] = []

        self._validate_structure(errors, warnings)
        self.validate_platform_specific(errors, warnings)

        self.log.log_validation(self.target, errors, warnings)
        return ValidationResult(valid=not errors, errors=tuple(errors), warnings=tuple(warnings))

    def generate(self) -> str:
        """
        Generate the target source code.

        Returns:
            Complete source text for the target

        Raises:
            ValidationError: If validation reports any error; carries
                all of them
        """
        result = self.validate()
        if not result.valid:
            raise ValidationError(self.target, result.errors, result.warnings)

        self.log.log_conversion_start(self.target, len(self.config.servers))
        context = self._base_context(result)
        context.update(self.template_context())

        source = self.renderer.render_file(self.template_name, context)
        source = reindent(source, self.options.indent)
        self.log.logger.info(f"Generated {len(source)} characters of '{self.target}' code")
        return source

    @abstractmethod
    def validate_platform_specific(self, errors: List[str], warnings: List[str]) -> None:
        """Append target capability findings to ``errors`` and ``warnings``."""

    def template_context(self) -> Dict[str, Any]:
        """Target-specific template variables. ``routing`` is the usual key."""
        return {"routing": self.render_servers(self.location_action)}

    # =========================================================================
    # Validation helpers
    # =========================================================================

    def iter_locations(self) -> Iterator[Tuple[str, ServerBlock, LocationBlock]]:
        """Yield ``(label, server, location)`` for every location of every server."""
        for index, server in enumerate(self.config.servers, 1):
            for location in server.locations:
                yield f"Server {index}, location {location.label}", server, location

    def _validate_structure(self, errors: List[str], warnings: List[str]) -> None:
        if not self.config.servers:
            warnings.append("Configuration has no server blocks; generated code matches no routes")

        for index, server in enumerate(self.config.servers, 1):
            if not server.listen:
                warnings.append(f"Server {index} has no listen directive")
            for entry in server.listen:
                if entry.port is None:
                    warnings.append(f"Server {index} has a listen directive without a numeric port")
            for problem in host_regex_problems(server.server_name, self.regex_dialect):
                warnings.append(f"Server {index}, {problem}; that name never matches")

        for label, _server, location in self.iter_locations():
            directives = location.directives
            if location.is_named:
                warnings.append(f"{label} is a named location and is not reachable by path")

            translation = location_regex(location, self.regex_dialect)
            if translation is not None:
                for problem in translation.problems:
                    warnings.append(f"{label}: regex not translatable ({problem}); location never matches")
                for note in translation.notes:
                    warnings.append(f"{label}: {note}")

            for rule in directives.rewrite:
                rule_translation = translate_regex(rule.regex, self.regex_dialect)
                for problem in rule_translation.problems:
                    warnings.append(f"{label}: rewrite {rule.regex} not translatable ({problem}); rule skipped")
                for note in rule_translation.notes:
                    warnings.append(f"{label}: rewrite {rule.regex}: {note}")

            if directives.proxy_pass is not None:
                self._validate_proxy_pass(label, location, warnings)

            if directives.expires is not None and not expires_is_convertible(directives.expires):
                warnings.append(f"{label}: expires '{directives.expires}' cannot be converted to Cache-Control")

    def _validate_proxy_pass(self, label: str, location: LocationBlock, warnings: List[str]) -> None:
        proxy_pass = location.directives.proxy_pass
        origin, uri = split_proxy_pass(proxy_pass)
        host = origin.split("://", 1)[-1]
        if self.config.get_upstream(host) is not None:
            warnings.append(
                f"{label}: proxy_pass targets upstream '{host}'; load balancing is not generated, "
                f"requests go to '{host}' as a hostname"
            )
        if uri is not None and location.is_regex:
            warnings.append(f"{label}: proxy_pass URI part is ignored in a regex location")
        elif uri is not None and location.directives.rewrites_uri:
            warnings.append(
                f"{label}: proxy_pass URI part is ignored when a rewrite changes the URI; "
                f"the rewritten URI is sent unchanged"
            )

    # =========================================================================
    # Routing assembly
    # =========================================================================

    def render_servers(self, action: LocationAction, level: int = 1) -> str:
        """
        Render one host-conditioned block per server.

        Args:
            action: Produces the statements for a matched location
            level: Indentation level of the emitted blocks

        Returns:
            Routing code, or an empty string when no server has a
            location with statements for ``action``
        """
        lines: List[str] = []
        for index, server in enumerate(self.config.servers, 1):
            body = self.render_locations(server, action)
            if not body:
                continue
            if lines:
                lines.append("")
            if self.options.emit_comments:
                lines.append(f"// Server block {index}: {comment_text(self.describe_server(server))}")
            condition = host_condition(server.server_name, self.hostname_expr, self.regex_dialect)
            lines.append(f"if ({condition}) {{")
            lines.extend(indent_lines(body))
            lines.append("}")
        return "\n".join(indent_lines(lines, level))

    def render_locations(self, server: ServerBlock, action: LocationAction) -> List[str]:
        lines: List[str] = []
        for location in sort_locations(server.locations):
            if location.is_named:
                continue
            body = action(location)
            if not body:
                continue

            condition = path_condition(location, self.path_expr, self.regex_dialect)
            if self.options.emit_comments:
                lines.append(f"// location {comment_text(location.label)}")
                if condition == "false":
                    lines.append("// regex could not be translated; this location never matches")
            lines.append(f"if ({condition}) {{")
            lines.extend(indent_lines(body))
            lines.append("}")
            self.log.logger.debug(f"[{self.target}] location {location.label}: {condition}")
        return lines

    def describe_server(self, server: ServerBlock) -> str:
        names = " ".join(server.server_name) or "*"
        ports = ", ".join(str(entry.port) for entry in server.listen if entry.port is not None)
        description = truncate_string(names, 80)
        if ports:
            description += f" (listen {ports})"
        return description

    def location_action(self, location: LocationBlock) -> List[str]:
        """
        Statements for a matched location, in the fixed decision order.

        1. ``return`` with a 3xx code and a URL: redirect.
        2. Any other ``return``: direct response.
        3. ``rewrite`` rules: redirects for ``redirect``/``permanent``
           rules, internal path rewrites for the rest.
        4. ``proxy_pass``: proxy action.
        5. ``root``/``alias``: static placeholder.
        6. Otherwise: default pass-through.
        """
        directives = location.directives
        headers = response_headers(directives)

        if directives.return_ is not None:
            return self.return_action(directives.return_, headers)

        lines = self.render_rewrites(directives.rewrite, headers)
        if directives.proxy_pass is not None:
            lines.extend(self.emit_proxy(location, headers))
        elif directives.serves_static:
            lines.extend(self.emit_static(location, headers))
        else:
            lines.extend(self.emit_default(location, headers))
        return lines

    def return_action(self, directive: ReturnDirective, headers: Dict[str, str]) -> List[str]:
        if directive.is_redirect and directive.url is not None:
            return self.emit_redirect(js_string(directive.url), directive.code, headers)
        return self.emit_direct_response(directive.code, directive.text, headers)

    def render_rewrites(self, rules: Sequence[RewriteRule], headers: Dict[str, str]) -> List[str]:
        """
        Render rewrite rules in order.

        A rule flagged ``last`` or ``break`` stops the rules after it
        when it matches, so those rules go into its ``else`` branch.
        """
        lines: List[str] = []
        for position, rule in enumerate(rules):
            translation = translate_regex(rule.regex, self.regex_dialect)
            if not translation.supported:
                if self.options.emit_comments:
                    lines.append(f"// rewrite {comment_text(rule.regex)} skipped: regex not translatable")
                continue

            regex = translation.literal()
            replaced = f"{self.path_expr}.replace({regex}, {js_string(rule.replacement)})"
            lines.append(f"if ({regex}.test({self.path_expr})) {{")
            if rule.is_redirect:
                lines.extend(indent_lines(self.emit_redirect(replaced, rule.status_code, headers)))
            else:
                lines.extend(indent_lines(self.emit_internal_rewrite(replaced)))

            remaining = rules[position + 1:]
            if not rule.is_redirect and remaining and any(flag in STOP_FLAGS for flag in rule.flags):
                lines.append("} else {")
                lines.extend(indent_lines(self.render_rewrites(remaining, headers)))
                lines.append("}")
                return lines
            lines.append("}")
        return lines

    def emit_internal_rewrite(self, replaced_expr: str) -> List[str]:
        """Replace the request path; ``rewritten`` records that the URI changed."""
        return [
            "rewritten = true;",
            f"{self.path_expr} = expandVars({replaced_expr}, vars);",
            f"vars.uri = {self.path_expr};",
        ]

    def headers_literal(self, headers: Dict[str, str]) -> str:
        return js_object_literal(headers)

    def proxy_uri_literal(self, location: LocationBlock, uri: Optional[str]) -> str:
        """
        JavaScript value of the ``proxy_pass`` URI part for ``location``.

        The URI part replaces the matched prefix only while the request
        URI is unchanged; after an internal rewrite the rewritten URI is
        sent as is.
        """
        if uri is None or location.is_regex:
            return "null"
        if location.directives.rewrites_uri:
            return f"rewritten ? null : {js_string(uri)}"
        return js_string(uri)

    # =========================================================================
    # Target syntax hooks
    # =========================================================================

    @abstractmethod
    def emit_redirect(self, location_expr: str, code: int, headers: Dict[str, str]) -> List[str]:
        """Redirect to the URL produced by the JavaScript expression ``location_expr``."""

    @abstractmethod
    def emit_direct_response(self, code: int, body: Optional[str], headers: Dict[str, str]) -> List[str]:
        """Respond with ``code`` and an optional body."""

    @abstractmethod
    def emit_proxy(self, location: LocationBlock, headers: Dict[str, str]) -> List[str]:
        """Forward the request to the location's ``proxy_pass`` target."""

    @abstractmethod
    def emit_static(self, location: LocationBlock, headers: Dict[str, str]) -> List[str]:
        """Placeholder for ``root``/``alias`` locations."""

    @abstractmethod
    def emit_default(self, location: LocationBlock, headers: Dict[str, str]) -> List[str]:
        """Default action for a location with nothing else to do."""

    # =========================================================================
    # Template context
    # =========================================================================

    def _base_context(self, result: ValidationResult) -> Dict[str, Any]:
        from .. import __version__

        return {
            "version": __version__,
            "target": self.target,
            "server_count": len(self.config.servers),
            "warnings": result.warnings if self.options.emit_comments else (),
            "emit_comments": self.options.emit_comments,
        }

