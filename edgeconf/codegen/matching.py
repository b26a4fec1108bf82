"""
Matching Engine.

Pure functions shared by every target generator: host-condition and
path-condition synthesis, location ordering, and translation of nginx
(PCRE) regexes into JavaScript regex literals.

Conditions are returned as JavaScript boolean expressions over a
runtime variable (``hostname`` or ``path`` by default). Locations are
matched independently and ordered exact-first, then by descending path
length. This approximates nginx's longest-prefix selection and does not
implement the ``^~`` short-circuit over regex locations.
"""

from __future__ import annotations

import re
import warnings
from functools import lru_cache
from typing import List, Optional, Sequence

from ..model.config_model import LocationBlock, LocationModifier
from ..utils.strings import js_string
from .types import RegexDialect, RegexTranslation

_JS_REGEX_SPECIAL = re.compile(r"[\\^$.*+?()\[\]{}|/]")

POSIX_CLASSES = {
    "alnum": "a-zA-Z0-9",
    "alpha": "a-zA-Z",
    "ascii": "\\x00-\\x7F",
    "blank": " \\t",
    "cntrl": "\\x00-\\x1F\\x7F",
    "digit": "0-9",
    "graph": "\\x21-\\x7E",
    "lower": "a-z",
    "print": "\\x20-\\x7E",
    "punct": "!-\\/:-@\\[-`{-~",
    "space": " \\t\\r\\n\\v\\f",
    "upper": "A-Z",
    "word": "\\w",
    "xdigit": "0-9A-Fa-f",
}

UNSUPPORTED_ESCAPES = "GKRXC"

_INLINE_OPTIONS = re.compile(r"\(\?[a-zA-Z]*-?[a-zA-Z]*[):]")
_NUMBERED_RECURSION = re.compile(r"\(\?[+-]?\d+\)")


def escape_js_regex(text: str) -> str:
    """Escape regex metacharacters (and ``/``) for a JavaScript regex literal."""
    return _JS_REGEX_SPECIAL.sub(lambda m: "\\" + m.group(0), text)


# =============================================================================
# Host Matching
# =============================================================================

def host_condition(server_names: Sequence[str], hostname_expr: str = "hostname",
                   dialect: RegexDialect = RegexDialect.ECMASCRIPT) -> str:
    """
    Build the host-matching condition for a server's ``server_name`` list.

    An empty list, or ``*`` anywhere in it, matches every host. The
    runtime hostname is expected to be lower-cased with any port
    stripped.

    Args:
        server_names: Server names as written in the configuration
        hostname_expr: JavaScript expression holding the hostname
        dialect: Regex dialect for ``~regex`` names

    Returns:
        JavaScript boolean expression
    """
    if not server_names or "*" in server_names:
        return "true"

    parts: List[str] = []
    for name in server_names:
        if name.startswith("~"):
            translation = translate_regex(name[1:], dialect)
            if translation.supported:
                parts.append(f"{translation.literal()}.test({hostname_expr})")
            else:
                parts.append("false")
        elif name.startswith(".") and "*" not in name:
            body = escape_js_regex(name[1:].lower())
            parts.append(f"/^(?:.*\\.)?{body}$/i.test({hostname_expr})")
        elif "*" in name:
            body = ".*".join(escape_js_regex(piece) for piece in name.lower().split("*"))
            parts.append(f"/^{body}$/i.test({hostname_expr})")
        else:
            parts.append(f"{hostname_expr} === {js_string(name.lower())}")

    if len(parts) == 1:
        return parts[0]
    return " || ".join(parts)


def host_regex_problems(server_names: Sequence[str], dialect: RegexDialect) -> List[str]:
    """List translation problems of ``~regex`` server names."""
    issues = []
    for name in server_names:
        if name.startswith("~"):
            translation = translate_regex(name[1:], dialect)
            issues.extend(f"server_name {name}: {problem}" for problem in translation.problems)
    return issues


# =============================================================================
# Path Matching
# =============================================================================

def location_regex(location: LocationBlock, dialect: RegexDialect) -> Optional[RegexTranslation]:
    """Translate a regex location's pattern, or None for non-regex locations."""
    if not location.is_regex:
        return None
    return translate_regex(
        location.path,
        dialect,
        case_insensitive=location.modifier is LocationModifier.REGEX_CASE_INSENSITIVE,
    )


def path_condition(location: LocationBlock, path_expr: str = "path",
                   dialect: RegexDialect = RegexDialect.ECMASCRIPT) -> str:
    """
    Build the path-matching condition for one location.

    ``=`` compares for equality, ``^~`` tests the prefix, ``~``/``~*``
    test the translated regex, and a plain prefix ending in ``/`` tests
    the prefix while any other plain prefix matches exactly or as a
    directory. An untranslatable regex yields ``false``.
    """
    path = location.path
    modifier = location.modifier

    if modifier is LocationModifier.EXACT:
        return f"{path_expr} === {js_string(path)}"
    if modifier is LocationModifier.PRIORITY_PREFIX:
        return f"{path_expr}.startsWith({js_string(path)})"
    if location.is_regex:
        translation = location_regex(location, dialect)
        if not translation.supported:
            return "false"
        return f"{translation.literal()}.test({path_expr})"

    if path.endswith("/"):
        return f"{path_expr}.startsWith({js_string(path)})"
    return f"({path_expr} === {js_string(path)} || {path_expr}.startsWith({js_string(path + '/')}))"


def sort_locations(locations: Sequence[LocationBlock]) -> List[LocationBlock]:
    """Order locations exact-first, then by descending path length. Stable."""
    return sorted(
        locations,
        key=lambda location: (0 if location.modifier is LocationModifier.EXACT else 1, -len(location.path)),
    )


# =============================================================================
# Regex Translation
# =============================================================================

@lru_cache(maxsize=512)
def translate_regex(pattern: str, dialect: RegexDialect = RegexDialect.ECMASCRIPT,
                    case_insensitive: bool = False) -> RegexTranslation:
    """
    Translate an nginx (PCRE) regex into JavaScript regex syntax.

    Constructs with a JavaScript equivalent are rewritten. Constructs
    without one are reported in ``problems``; constructs the minimal
    runtime's engine may lack are reported in ``notes``.

    Args:
        pattern: Regex as written in the configuration
        dialect: Target regex dialect
        case_insensitive: Whether the match ignores case (``~*``)

    Returns:
        RegexTranslation with the JavaScript source and flags
    """
    flags = "i" if case_insensitive else ""
    problems: List[str] = []
    notes: List[str] = []
    minimal = dialect is RegexDialect.MINIMAL

    def note(message: str) -> None:
        if minimal and message not in notes:
            notes.append(message)

    src = pattern
    if src.startswith("(?i)"):
        flags = "i"
        src = src[4:]

    out: List[str] = []
    i = 0
    n = len(src)
    while i < n:
        ch = src[i]

        if ch == "\\":
            if i + 1 >= n:
                problems.append("trailing backslash")
                break
            esc = src[i + 1]
            if esc == "Q":
                end = src.find("\\E", i + 2)
                stop = n if end == -1 else end
                out.append(escape_js_regex(src[i + 2:stop]))
                i = n if end == -1 else end + 2
                continue
            if esc == "A":
                out.append("^")
            elif esc in "zZ":
                out.append("$")
            elif esc == "h":
                out.append("[ \\t]")
            elif esc in UNSUPPORTED_ESCAPES:
                problems.append(f"escape \\{esc} has no JavaScript equivalent")
            elif esc in "pP":
                problems.append("Unicode property escapes are not supported")
            else:
                if (esc.isdigit() and esc != "0") or esc == "k":
                    note("backreferences may not be supported by the minimal runtime")
                out.append(src[i:i + 2])
            i += 2
            continue

        if ch == "[":
            i = _translate_class(src, i, out, problems)
            if i < 0:
                break
            continue

        if ch == "(" and src.startswith("(?", i):
            if src.startswith("(?#", i):
                end = src.find(")", i)
                i = n if end == -1 else end + 1
                continue
            if src.startswith("(?P<", i):
                note("named groups may not be supported by the minimal runtime")
                out.append("(?<")
                i += 4
                continue
            if src.startswith("(?P=", i):
                end = src.find(")", i)
                if end == -1:
                    problems.append("unterminated named backreference")
                    break
                note("backreferences may not be supported by the minimal runtime")
                out.append(f"\\k<{src[i + 4:end]}>")
                i = end + 1
                continue
            if src.startswith(("(?<=", "(?<!"), i):
                note("lookbehind may not be supported by the minimal runtime")
                out.append(src[i:i + 4])
                i += 4
                continue
            if src.startswith("(?<", i):
                note("named groups may not be supported by the minimal runtime")
                out.append("(?<")
                i += 3
                continue
            if src.startswith(("(?:", "(?=", "(?!"), i):
                out.append(src[i:i + 3])
                i += 3
                continue
            if src.startswith("(?>", i):
                problems.append("atomic groups are not supported")
            elif src.startswith(("(?R)", "(?P>", "(?&"), i) or _NUMBERED_RECURSION.match(src, i):
                problems.append("recursive patterns are not supported")
            elif src.startswith("(?(", i):
                problems.append("conditional groups are not supported")
            elif src.startswith("(?|", i):
                problems.append("branch reset groups are not supported")
            elif _INLINE_OPTIONS.match(src, i):
                problems.append("inline modifiers are only supported as a leading (?i)")
            else:
                problems.append("unknown group construct")
            out.append("(")
            i += 1
            continue

        if ch in "*+?}" and i + 1 < n and src[i + 1] == "+":
            problems.append("possessive quantifiers are not supported")
            out.append(ch)
            i += 2
            continue

        out.append(ch)
        i += 1

    source = "".join(out)
    if not problems:
        error = _compile_error(source)
        if error is not None:
            problems.append(f"pattern does not compile: {error}")

    return RegexTranslation(
        pattern=pattern,
        source=source,
        flags=flags,
        problems=tuple(problems),
        notes=tuple(notes),
    )


def _translate_class(src: str, start: int, out: List[str], problems: List[str]) -> int:
    """Copy one bracket class starting at ``start``; return the index after it, or -1."""
    n = len(src)
    j = start + 1
    buf = ["["]
    if j < n and src[j] == "^":
        buf.append("^")
        j += 1
    if j < n and src[j] == "]":
        buf.append("\\]")
        j += 1

    while j < n:
        ch = src[j]
        if ch == "\\" and j + 1 < n:
            buf.append(" \\t" if src[j + 1] == "h" else src[j:j + 2])
            j += 2
            continue
        if src.startswith("[:", j):
            end = src.find(":]", j + 2)
            if end != -1:
                name = src[j + 2:end]
                if name.startswith("^"):
                    problems.append(f"negated POSIX class [:{name}:] is not supported")
                elif name in POSIX_CLASSES:
                    buf.append(POSIX_CLASSES[name])
                else:
                    problems.append(f"unknown POSIX class [:{name}:]")
                j = end + 2
                continue
        if ch == "[":
            buf.append("\\[")
            j += 1
            continue
        buf.append(ch)
        j += 1
        if ch == "]":
            out.append("".join(buf))
            return j

    problems.append("unterminated character class")
    return -1


def _compile_error(source: str) -> Optional[str]:
    """Compile a Python-syntax copy of a JavaScript regex source."""
    python_source = re.sub(r"\(\?<(?![=!])", "(?P<", source)
    python_source = re.sub(r"\\k<(\w+)>", r"(?P=\1)", python_source)
    with warnings.catch_warnings():
        warnings.simplefilter("ignore")
        try:
            re.compile(python_source)
        except re.error as e:
            return e.msg
    return None
