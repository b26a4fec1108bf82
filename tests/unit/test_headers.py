"""
Unit tests for response header synthesis and nginx time parsing.
"""

import pytest

from edgeconf.codegen.headers import (
    MAX_EXPIRES,
    cache_control_for_expires,
    expires_is_convertible,
    parse_nginx_time,
    response_headers,
)
from edgeconf.model.config_model import LocationDirectives


class TestTimeParsing:
    """Test nginx time values."""

    @pytest.mark.parametrize("value,seconds", [
        ("30", 30),
        ("30s", 30),
        ("5m", 300),
        ("1h 30m", 5400),
        ("1h30m", 5400),
        ("2d", 172800),
        ("1w", 604800),
        ("1M", 2592000),
        ("1y", 31536000),
        ("-1", -1),
        ("1500ms", 1),
    ])
    def test_valid_times(self, value, seconds):
        """Test unit conversion."""
        assert parse_nginx_time(value) == seconds

    @pytest.mark.parametrize("value", ["", "-", "abc", "10x", "epoch"])
    def test_invalid_times(self, value):
        """Test values that are not times."""
        assert parse_nginx_time(value) is None


class TestExpires:
    """Test expires to Cache-Control conversion."""

    def test_positive_time(self):
        """Test a positive duration."""
        assert cache_control_for_expires("30d") == "max-age=2592000"

    def test_modified_prefix(self):
        """Test the modified prefix is ignored."""
        assert cache_control_for_expires("modified 1h") == "max-age=3600"

    def test_special_values(self):
        """Test epoch, max, off and negative values."""
        assert cache_control_for_expires("epoch") == "no-cache"
        assert cache_control_for_expires("max") == f"max-age={MAX_EXPIRES}"
        assert cache_control_for_expires("-1") == "no-cache"
        assert cache_control_for_expires("off") is None

    def test_time_of_day_not_converted(self):
        """Test @time values give no header."""
        assert cache_control_for_expires("@15h30m") is None
        assert not expires_is_convertible("@15h30m")

    def test_convertible(self):
        """Test which values count as convertible."""
        assert expires_is_convertible("off")
        assert expires_is_convertible("7d")
        assert not expires_is_convertible("soon")


class TestResponseHeaders:
    """Test the per-location response header map."""

    def test_add_header_and_expires(self):
        """Test headers from add_header and expires."""
        directives = LocationDirectives(expires="1h", add_header={"X-Frame-Options": "DENY"})
        assert response_headers(directives) == {
            "Cache-Control": "max-age=3600",
            "X-Frame-Options": "DENY",
        }

    def test_explicit_cache_control_wins(self):
        """Test add_header Cache-Control replaces the expires value."""
        directives = LocationDirectives(expires="1h", add_header={"cache-control": "private"})
        assert response_headers(directives) == {"cache-control": "private"}

    def test_no_headers(self):
        """Test a location without header directives."""
        assert response_headers(LocationDirectives()) == {}
