"""
Runtime tests for generated code.

Runs the generated worker, edge hook and minimal runtime handlers under
node with a stubbed network, and checks the request that reaches the
upstream, the origin the edge hook selects and the response headers.
The drivers under ``drivers/`` load one generated file and print the
outcome of a single request as JSON.
"""

import json
import shutil
import subprocess
from pathlib import Path

import pytest

from conftest import generate, location, node, server

DRIVERS_DIR = Path(__file__).parent / "drivers"

pytestmark = pytest.mark.requires_node


def run_generated(tmp_path, target, tree, request):
    """
    Generate code for one target and run it for one request.

    Args:
        tmp_path: Directory for the generated file
        target: Target name
        tree: Directive tree to convert
        request: Request description passed to the driver

    Returns:
        Decoded driver output
    """
    script = tmp_path / f"generated_{target.replace('-', '_')}.js"
    script.write_text(generate(target, tree))
    driver = DRIVERS_DIR / f"{target.replace('-', '_')}.js"

    result = subprocess.run(
        [shutil.which("node"), str(driver), str(script), json.dumps(request)],
        capture_output=True,
        text=True,
        timeout=60,
        check=False,
    )
    assert result.returncode == 0, result.stderr
    return json.loads(result.stdout)


def _header(headers, name):
    """First value of an edge hook ``{key, value}`` header list."""
    values = headers.get(name.lower())
    return values[0]["value"] if values else None


class TestWorkerRuntime:
    """Test the fetch-event worker against a stubbed fetch."""

    def test_scenario_a_proxies_to_backend(self, tmp_path, proxy_tree):
        """Test the request is fetched from the backend."""
        out = run_generated(tmp_path, "worker", proxy_tree, {"url": "http://example.com/"})

        assert out["status"] == 200
        assert [call["url"] for call in out["fetched"]] == ["http://backend:3000/"]

    def test_scenario_b_redirects(self, tmp_path, redirect_tree):
        """Test the 301 carries the expanded request URI."""
        out = run_generated(tmp_path, "worker", redirect_tree, {"url": "http://old.example.com/page?x=1"})

        assert out["status"] == 301
        assert out["headers"]["location"] == "https://new.example.com/page?x=1"
        assert out["fetched"] == []

    def test_scenario_c_routes_by_host(self, tmp_path, two_server_tree):
        """Test each host reaches its own backend."""
        for host, backend in (("a.example.com", "app-a"), ("b.example.com", "app-b")):
            out = run_generated(tmp_path, "worker", two_server_tree, {"url": f"http://{host}/x"})
            assert [call["url"] for call in out["fetched"]] == [f"http://{backend}:8080/x"]

    def test_unknown_host_is_not_found(self, tmp_path, two_server_tree):
        """Test a host no server names falls through to 404."""
        out = run_generated(tmp_path, "worker", two_server_tree, {"url": "http://c.example.com/"})

        assert out["status"] == 404
        assert out["fetched"] == []

    def test_uri_part_replaces_prefix(self, tmp_path, proxy_uri_tree):
        """Test the proxy_pass URI part replaces the location prefix."""
        out = run_generated(tmp_path, "worker", proxy_uri_tree, {"url": "http://example.com/api/users?q=1"})

        assert [call["url"] for call in out["fetched"]] == ["http://api.internal/v1/users?q=1"]
        assert out["headers"]["x-api"] == "yes"

    def test_rewritten_uri_is_sent_whole(self, tmp_path, rewrite_proxy_tree):
        """Test a rewritten URI ignores the proxy_pass URI part."""
        out = run_generated(tmp_path, "worker", rewrite_proxy_tree, {"url": "http://example.com/api/users"})

        assert [call["url"] for call in out["fetched"]] == ["http://b.internal/users"]


class TestEdgeHookRuntime:
    """Test the edge hook through chained lifecycle phases."""

    def test_scenario_a_custom_origin(self, tmp_path, proxy_tree):
        """Test the request reaches origin-response aimed at the backend."""
        out = run_generated(tmp_path, "edge-hook", proxy_tree, {"host": "example.com", "uri": "/"})

        assert out["stage"] == "origin-response"
        custom = out["request"]["origin"]["custom"]
        assert (custom["domainName"], custom["port"], custom["protocol"]) == ("backend", 3000, "http")
        assert out["request"]["uri"] == "/"

    def test_scenario_b_redirects_at_viewer(self, tmp_path, redirect_tree):
        """Test the redirect is answered before the origin phases."""
        out = run_generated(tmp_path, "edge-hook", redirect_tree,
                            {"host": "old.example.com", "uri": "/page", "querystring": "x=1"})

        assert out["stage"] == "viewer-request"
        assert out["response"]["status"] == "301"
        assert _header(out["response"]["headers"], "Location") == "https://new.example.com/page?x=1"

    def test_scenario_c_routes_by_host(self, tmp_path, two_server_tree):
        """Test each host selects its own origin."""
        for host, backend in (("a.example.com", "app-a"), ("b.example.com", "app-b")):
            out = run_generated(tmp_path, "edge-hook", two_server_tree, {"host": host, "uri": "/x"})
            assert out["request"]["origin"]["custom"]["domainName"] == backend
            assert out["request"]["uri"] == "/x"

    def test_rewritten_request_keeps_its_location(self, tmp_path, split_proxy_tree):
        """Test origin-request uses the location chosen before the rewrite."""
        out = run_generated(tmp_path, "edge-hook", split_proxy_tree, {"host": "example.com", "uri": "/api/users"})

        assert out["request"]["uri"] == "/users"
        custom = out["request"]["origin"]["custom"]
        assert (custom["domainName"], custom["port"]) == ("api.internal", 8080)

    def test_catch_all_location_still_selected(self, tmp_path, split_proxy_tree):
        """Test requests outside the rewritten prefix reach the catch-all origin."""
        out = run_generated(tmp_path, "edge-hook", split_proxy_tree, {"host": "example.com", "uri": "/home"})

        assert out["request"]["uri"] == "/home"
        assert out["request"]["origin"]["custom"]["domainName"] == "web.internal"

    def test_uri_part_and_response_headers(self, tmp_path, proxy_uri_tree):
        """Test origin-response applies headers after the URI part was swapped in."""
        out = run_generated(tmp_path, "edge-hook", proxy_uri_tree, {"host": "example.com", "uri": "/api/users"})

        assert out["request"]["uri"] == "/v1/users"
        assert _header(out["response"]["headers"], "X-Api") == "yes"

    def test_rewritten_uri_is_sent_whole(self, tmp_path, rewrite_proxy_tree):
        """Test a rewritten URI ignores the proxy_pass URI part."""
        out = run_generated(tmp_path, "edge-hook", rewrite_proxy_tree, {"host": "example.com", "uri": "/api/users"})

        assert out["request"]["uri"] == "/users"
        assert out["request"]["origin"]["custom"]["domainName"] == "b.internal"

    def test_unmatched_host_skips_origin_changes(self, tmp_path, proxy_tree):
        """Test a request no location selected is left alone by every phase."""
        out = run_generated(tmp_path, "edge-hook", proxy_tree, {"host": "other.example.com", "uri": "/"})

        assert out["stage"] == "origin-response"
        assert "origin" not in out["request"]
        assert "x-edgeconf-location" not in out["request"]["headers"]


class TestMinimalRuntime:
    """Test the minimal runtime handler against a stubbed platform."""

    def test_scenario_a_proxies_to_backend(self, tmp_path, proxy_tree):
        """Test the request goes through platform.fetch with the backend host."""
        out = run_generated(tmp_path, "minimal", proxy_tree,
                            {"url": "http://example.com/", "headers": {"host": "example.com"}})

        assert [call["url"] for call in out["fetched"]] == ["http://backend:3000/"]
        assert out["fetched"][0]["headers"]["Host"] == "backend"
        assert out["response"]["status"] == 200

    def test_scenario_b_redirects(self, tmp_path, redirect_tree):
        """Test the 301 carries the expanded request URI."""
        out = run_generated(tmp_path, "minimal", redirect_tree,
                            {"url": "http://old.example.com/page?x=1", "headers": {"host": "old.example.com"}})

        assert out["response"]["status"] == 301
        assert out["response"]["headers"]["Location"] == "https://new.example.com/page?x=1"
        assert out["fetched"] == []

    def test_scenario_c_routes_by_host(self, tmp_path, two_server_tree):
        """Test each host reaches its own backend."""
        for host, backend in (("a.example.com", "app-a"), ("b.example.com", "app-b")):
            out = run_generated(tmp_path, "minimal", two_server_tree,
                                {"url": f"http://{host}/x", "headers": {"host": host}})
            assert [call["url"] for call in out["fetched"]] == [f"http://{backend}:8080/x"]

    def test_rewritten_uri_is_sent_whole(self, tmp_path, rewrite_proxy_tree):
        """Test a rewritten URI ignores the proxy_pass URI part."""
        out = run_generated(tmp_path, "minimal", rewrite_proxy_tree,
                            {"url": "http://example.com/api/users", "headers": {"host": "example.com"}})

        assert [call["url"] for call in out["fetched"]] == ["http://b.internal/users"]

    def test_uri_part_replaces_prefix(self, tmp_path, proxy_uri_tree):
        """Test the proxy_pass URI part and response headers."""
        out = run_generated(tmp_path, "minimal", proxy_uri_tree,
                            {"url": "http://example.com/api/users", "headers": {"host": "example.com"}})

        assert [call["url"] for call in out["fetched"]] == ["http://api.internal/v1/users"]
        assert out["response"]["headers"]["X-Api"] == "yes"

    def test_pass_through_without_platform_next(self, tmp_path):
        """Test pass-through answers 404 when the platform cannot continue."""
        tree = [server(node("listen", "80"), location("/", body=[node("index", "index.html")]))]
        out = run_generated(tmp_path, "minimal", tree, {"url": "http://example.com/", "headers": {}})

        assert out["response"]["status"] == 404
        assert out["response"]["statusText"] == "Not Found"

    def test_pass_through_with_platform_next(self, tmp_path):
        """Test pass-through hands the request to platform.next when present."""
        tree = [server(node("listen", "80"), location("/", body=[node("index", "index.html")]))]
        out = run_generated(tmp_path, "minimal", tree, {"url": "http://example.com/", "headers": {}, "next": True})

        assert out["response"]["status"] == 200
        assert out["response"]["body"] == "platform"
