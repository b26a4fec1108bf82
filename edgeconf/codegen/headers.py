"""
Response header synthesis.

Turns a location's ``add_header`` and ``expires`` directives into the
response header map every target applies, and parses nginx time
values.
"""

from __future__ import annotations

import re
from typing import Dict, Optional

from ..model.config_model import LocationDirectives

# nginx time units in seconds
TIME_UNITS = {
    "ms": 0.001,
    "s": 1,
    "m": 60,
    "h": 3600,
    "d": 86400,
    "w": 604800,
    "M": 2592000,
    "y": 31536000,
}

MAX_EXPIRES = 315360000

_TIME_PART = re.compile(r"(\d+)(ms|[smhdwMy]?)")
_TIME_VALUE = re.compile(r"(?:\d+(?:ms|[smhdwMy])?\s*)+")


def parse_nginx_time(value: str) -> Optional[int]:
    """
    Parse an nginx time value such as ``30d``, ``1h 30m`` or ``-1``.

    Returns:
        Whole seconds (negative values allowed), or None when the value
        is not a time
    """
    text = value.strip()
    sign = 1
    if text and text[0] in "+-":
        sign = -1 if text[0] == "-" else 1
        text = text[1:]
    if not text or not _TIME_VALUE.fullmatch(text):
        return None

    total = 0.0
    for amount, unit in _TIME_PART.findall(text):
        total += int(amount) * TIME_UNITS[unit or "s"]
    return sign * int(total)


def cache_control_for_expires(expires: str) -> Optional[str]:
    """
    Derive a ``Cache-Control`` value from an ``expires`` directive.

    ``off`` and time-of-day (``@``) forms give None; ``epoch`` and
    negative times give ``no-cache``; ``max`` gives the nginx maximum.
    """
    tokens = expires.split()
    if tokens and tokens[0] == "modified":
        tokens = tokens[1:]
    if not tokens:
        return None

    value = " ".join(tokens)
    if value == "off" or value.startswith("@"):
        return None
    if value == "epoch":
        return "no-cache"
    if value == "max":
        return f"max-age={MAX_EXPIRES}"

    seconds = parse_nginx_time(value)
    if seconds is None:
        return None
    if seconds < 0:
        return "no-cache"
    return f"max-age={seconds}"


def response_headers(directives: LocationDirectives) -> Dict[str, str]:
    """
    Headers to set on the response of a location.

    An explicit ``add_header Cache-Control`` replaces the value derived
    from ``expires``.
    """
    headers: Dict[str, str] = {}
    if directives.expires is not None:
        cache_control = cache_control_for_expires(directives.expires)
        if cache_control is not None:
            headers["Cache-Control"] = cache_control

    for name, value in directives.add_header.items():
        if name.lower() == "cache-control":
            headers.pop("Cache-Control", None)
        headers[name] = value
    return headers


def expires_is_convertible(expires: str) -> bool:
    """Whether an ``expires`` value is either ``off`` or yields a header."""
    tokens = expires.split()
    if tokens and tokens[-1] == "off":
        return True
    return cache_control_for_expires(expires) is not None
