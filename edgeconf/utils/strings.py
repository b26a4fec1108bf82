"""
String Manipulation Utilities for edgeconf.

This module provides the text helpers every target generator relies on:
indentation, JavaScript string/regex/object literals and comment-safe
text. All helpers are deterministic so generated output is stable.
"""

from __future__ import annotations

import json
from typing import Iterable, List, Mapping

from .constants import TEMPLATE_INDENT


# =============================================================================
# Text Formatting and Indentation
# =============================================================================

def indent_lines(lines: Iterable[str], level: int = 1, indent_str: str = TEMPLATE_INDENT) -> List[str]:
    """Indent every non-blank line of a list of code lines."""
    indent = indent_str * level
    return [f"{indent}{line}" if line.strip() else "" for line in lines]


def reindent(text: str, indent_str: str, unit: str = TEMPLATE_INDENT) -> str:
    """
    Convert leading indentation written in ``unit`` steps to ``indent_str`` steps.

    Leftover spaces that do not fill a whole unit (such as the ``" * "``
    of a block comment) are kept as they are.
    """
    if indent_str == unit:
        return text

    lines = []
    for line in text.split("\n"):
        stripped = line.lstrip(" ")
        depth, rest = divmod(len(line) - len(stripped), len(unit))
        lines.append(indent_str * depth + " " * rest + stripped)
    return "\n".join(lines)


# =============================================================================
# JavaScript Literals
# =============================================================================

def js_string(value: str) -> str:
    """
    Render a value as a double-quoted JavaScript string literal.

    JSON string syntax is a subset of JavaScript string syntax, so the
    JSON encoder gives correct escaping for quotes, backslashes and
    control characters.
    """
    return json.dumps(str(value))


def js_regex_literal(source: str, flags: str = "") -> str:
    """
    Render a regex source as a JavaScript regex literal.

    Unescaped forward slashes are escaped so the literal is not cut
    short; everything else is emitted verbatim.

    Args:
        source: Regex source in JavaScript syntax
        flags: Regex flags (e.g. ``"i"``)

    Returns:
        Literal such as ``/^\\/api/i``
    """
    out = []
    i = 0
    while i < len(source):
        ch = source[i]
        if ch == "\\" and i + 1 < len(source):
            out.append(source[i:i + 2])
            i += 2
            continue
        if ch == "/":
            out.append("\\/")
        elif ch == "\n":
            out.append("\\n")
        else:
            out.append(ch)
        i += 1
    body = "".join(out) or "(?:)"
    return f"/{body}/{flags}"


def js_object_literal(mapping: Mapping[str, str]) -> str:
    """Render a string-to-string mapping as a one-line object literal."""
    if not mapping:
        return "{}"
    pairs = ", ".join(f"{js_string(key)}: {js_string(value)}" for key, value in mapping.items())
    return "{ " + pairs + " }"


def comment_text(text: str) -> str:
    """
    Make arbitrary text safe to embed in a ``//`` or ``/* */`` comment.

    Newlines would end a line comment and ``*/`` would end a block
    comment early.
    """
    return " ".join(str(text).split()).replace("*/", "* /")


def truncate_string(text: str, max_length: int, suffix: str = "...") -> str:
    """
    Truncate a string to a maximum length.

    Args:
        text: Text to truncate
        max_length: Maximum length including suffix
        suffix: Suffix to add when truncating

    Returns:
        Truncated string
    """
    if len(text) <= max_length:
        return text
    return text[:max_length - len(suffix)] + suffix
