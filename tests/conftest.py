"""
Pytest configuration and shared fixtures for edgeconf tests.

This module provides the directive trees used across the test suite,
written in the JSON node shape an external nginx parser produces, and
small helpers for building trees inline.
"""

import shutil

import pytest
from typing import Any, Dict, List, Optional

from edgeconf.codegen.registry import available_targets, create_generator
from edgeconf.codegen.types import GenerationOptions
from edgeconf.model.builder import build_config


def node(directive: str, *args: str, block: Optional[List[Dict[str, Any]]] = None,
         line: Optional[int] = None) -> Dict[str, Any]:
    """
    Build one directive node mapping.

    Args:
        directive: Directive name
        args: Directive arguments
        block: Child nodes; None for a simple directive
        line: Source line number

    Returns:
        Node mapping in parser output shape
    """
    data: Dict[str, Any] = {"directive": directive, "args": list(args)}
    if line is not None:
        data["line"] = line
    if block is not None:
        data["block"] = block
    return data


def server(*children: Dict[str, Any]) -> Dict[str, Any]:
    """Build a ``server`` block node."""
    return node("server", block=list(children))


def location(*args: str, body: Optional[List[Dict[str, Any]]] = None) -> Dict[str, Any]:
    """Build a ``location`` block node."""
    return node("location", *args, block=list(body or []))


def generate(target: str, tree, **option_overrides) -> str:
    """Build a configuration and generate code for one target."""
    options = GenerationOptions(**option_overrides)
    return create_generator(target, build_config(tree), options).generate()


def validate_generator_output(source: str) -> bool:
    """Cheap sanity check of generated source: non-empty with balanced braces."""
    if not source.strip():
        return False

    if source.count("{") != source.count("}"):
        return False

    if source.count("(") != source.count(")"):
        return False

    return True


# Directive tree fixtures
@pytest.fixture
def proxy_tree():
    """A single server proxying everything to a backend (scenario A)."""
    return [
        node("http", block=[
            server(
                node("listen", "80", line=3),
                node("server_name", "example.com", line=4),
                location("/", body=[node("proxy_pass", "http://backend:3000", line=6)]),
            ),
        ], line=1),
    ]


@pytest.fixture
def redirect_tree():
    """A location returning a permanent redirect (scenario B)."""
    return [
        server(
            node("listen", "80"),
            node("server_name", "old.example.com"),
            location("/", body=[node("return", "301", "https://new.example.com$request_uri")]),
        ),
    ]


@pytest.fixture
def two_server_tree():
    """Two servers on the same port with distinct names (scenario C)."""
    return [
        server(
            node("listen", "80"),
            node("server_name", "a.example.com"),
            location("/", body=[node("proxy_pass", "http://app-a:8080")]),
        ),
        server(
            node("listen", "80"),
            node("server_name", "b.example.com"),
            location("/", body=[node("proxy_pass", "http://app-b:8080")]),
        ),
    ]


@pytest.fixture
def empty_tree():
    """A tree with no server or http nodes."""
    return []


@pytest.fixture
def rich_tree():
    """A configuration exercising most recognized directives."""
    return [
        node("user", "nginx"),
        node("events", block=[node("worker_connections", "1024")]),
        node("http", block=[
            node("upstream", "api_pool", block=[
                node("least_conn"),
                node("server", "10.0.0.1:8080", "weight=3"),
                node("server", "10.0.0.2:8080", "backup"),
            ]),
            server(
                node("listen", "443", "ssl", "http2"),
                node("server_name", "www.example.com", "*.example.org"),
                node("ssl_certificate", "/etc/ssl/cert.pem"),
                node("ssl_certificate_key", "/etc/ssl/key.pem"),
                location("=", "/health", body=[node("return", "200", "ok")]),
                location("/api/", body=[
                    node("proxy_pass", "http://localhost:9000/v1/"),
                    node("proxy_set_header", "X-Real-IP", "$remote_addr"),
                    node("add_header", "X-Frame-Options", "DENY", "always"),
                ]),
                location("~*", r"\.(css|js)$", body=[
                    node("root", "/var/www/static"),
                    node("expires", "30d"),
                ]),
                location("/old", body=[
                    node("rewrite", "^/old/(.*)$", "/new/$1", "permanent"),
                ]),
                location("/app", body=[
                    node("rewrite", "^/app/(.*)$", "/$1", "last"),
                    node("rewrite", "^/(.*)$", "/index/$1"),
                ]),
            ),
        ]),
    ]


@pytest.fixture
def fastcgi_tree():
    """Two locations handing requests to local application processes."""
    return [
        server(
            node("listen", "80"),
            node("server_name", "php.example.com"),
            location("~", r"\.php$", body=[node("fastcgi_pass", "127.0.0.1:9000")]),
            location("/legacy", body=[node("uwsgi_pass", "unix:/run/uwsgi.sock")]),
        ),
    ]


@pytest.fixture
def rewrite_proxy_tree():
    """A proxied location whose rewrite changes the URI before proxy_pass with a URI part."""
    return [
        server(
            node("listen", "80"),
            node("server_name", "example.com"),
            location("/api/", body=[
                node("rewrite", "^/api/(.*)$", "/$1", "break"),
                node("proxy_pass", "http://b.internal/v2/"),
            ]),
        ),
    ]


@pytest.fixture
def split_proxy_tree():
    """An API location rewriting away its prefix next to a catch-all location."""
    return [
        server(
            node("listen", "80"),
            node("server_name", "example.com"),
            location("/api/", body=[
                node("rewrite", "^/api/(.*)$", "/$1", "break"),
                node("proxy_pass", "http://api.internal:8080"),
            ]),
            location("/", body=[node("proxy_pass", "http://web.internal:9000")]),
        ),
    ]


@pytest.fixture
def proxy_uri_tree():
    """A proxy_pass with a URI part and a response header."""
    return [
        server(
            node("listen", "80"),
            node("server_name", "example.com"),
            location("/api/", body=[
                node("proxy_pass", "http://api.internal/v1/"),
                node("add_header", "X-Api", "yes"),
            ]),
        ),
    ]


@pytest.fixture
def all_targets():
    """Canonical names of every supported target."""
    return available_targets()


# Pytest hooks for test collection and reporting
def pytest_collection_modifyitems(config, items):
    """Add markers based on test location."""
    for item in items:
        path = str(item.fspath)
        if "unit" in path:
            item.add_marker(pytest.mark.unit)
        elif "integration" in path:
            item.add_marker(pytest.mark.integration)
        elif "filecheck" in path:
            item.add_marker(pytest.mark.filecheck)

        # Skip tests that execute generated code when no JavaScript runtime exists
        if "requires_node" in item.keywords:
            if not shutil.which("node"):
                item.add_marker(pytest.mark.skip(reason="node not available"))


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "unit: Unit tests for individual components"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests for complete workflows"
    )
    config.addinivalue_line(
        "markers", "filecheck: FileCheck-style validation of generated code"
    )
    config.addinivalue_line(
        "markers", "requires_node: Tests that execute generated code with node"
    )
