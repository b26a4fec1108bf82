"""
Constants and Enumerations for edgeconf.

This module consolidates constant definitions used across the project,
providing a single source of truth for defaults, environment variable
names and HTTP data shared by every target generator.
"""

from __future__ import annotations

from typing import Dict


# =============================================================================
# Environment Variables
# =============================================================================

ENV_LOG_LEVEL = "EDGECONF_LOG_LEVEL"
ENV_CONFIG_FILE = "EDGECONF_CONFIG"


# =============================================================================
# Configuration Constants
# =============================================================================

DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_LOG_FILE = "edgeconf.log"
DEFAULT_INDENT_SIZE = 2
DEFAULT_OUTPUT_DIR = "./edge-configs"

# Template and naming constants
TEMPLATE_INDENT = "  "


# =============================================================================
# nginx Directive Families
# =============================================================================

# Containers whose children are flattened into the top level by the builder
FLATTENED_CONTAINERS = ("http",)

# Containers whose simple children are folded into the global directives
GLOBAL_CONTAINERS = ("events",)

LOAD_BALANCING_DIRECTIVES = ("least_conn", "ip_hash", "hash", "random")

# Directives that hand the request to a local application process
PROCESS_PASSTHROUGH_DIRECTIVES = ("fastcgi_pass", "uwsgi_pass", "scgi_pass")

REDIRECT_FLAGS = ("redirect", "permanent")
REWRITE_FLAGS = ("last", "break", "redirect", "permanent")


# =============================================================================
# HTTP Constants
# =============================================================================

STATUS_TEXTS: Dict[int, str] = {
    200: "OK",
    201: "Created",
    204: "No Content",
    301: "Moved Permanently",
    302: "Found",
    303: "See Other",
    304: "Not Modified",
    307: "Temporary Redirect",
    308: "Permanent Redirect",
    400: "Bad Request",
    401: "Unauthorized",
    403: "Forbidden",
    404: "Not Found",
    405: "Method Not Allowed",
    410: "Gone",
    429: "Too Many Requests",
    444: "No Response",
    500: "Internal Server Error",
    501: "Not Implemented",
    502: "Bad Gateway",
    503: "Service Unavailable",
    504: "Gateway Timeout",
}


def status_text(code: int) -> str:
    """Return the reason phrase for an HTTP status code."""
    return STATUS_TEXTS.get(code, "Unknown")


def is_redirect_code(code: int) -> bool:
    """Check whether a status code is in the 3xx redirect range."""
    return 300 <= code < 400
