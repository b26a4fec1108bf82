"""
Template Rendering Engine.

This module renders the per-target source skeletons with Jinja2. The
generators compute the routing code; templates only lay out the fixed
parts around it (header comment, boilerplate, helper functions).
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, List, Optional

from jinja2 import Environment, FileSystemLoader, TemplateError

from ..utils.exceptions import EdgeconfError
from ..utils.strings import comment_text, js_string


class JinjaTemplateRenderer:
    """Jinja2-based renderer for target source skeletons."""

    def __init__(self, template_dir: Optional[str] = None):
        """Initialize the template renderer."""
        if template_dir is None:
            template_dir = os.path.join(os.path.dirname(__file__), "templates")

        self._template_dir = Path(template_dir)
        self._env = Environment(
            loader=FileSystemLoader(str(self._template_dir)),
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
            autoescape=False,
        )

        self._setup_custom_filters()

    def _setup_custom_filters(self) -> None:
        """Set up custom Jinja2 filters for JavaScript output."""

        def join_with_commas(items: List[str]) -> str:
            """Join items with commas and proper spacing."""
            return ", ".join(items)

        self._env.filters["js_string"] = js_string
        self._env.filters["comment"] = comment_text
        self._env.filters["join_commas"] = join_with_commas

    def render_file(self, template_path: str, context: Dict[str, Any]) -> str:
        """Render a template file with the given context."""
        try:
            template = self._env.get_template(template_path)
            return template.render(**context)
        except TemplateError as e:
            raise EdgeconfError(f"Template rendering failed: {e}", {"template": template_path}) from e
