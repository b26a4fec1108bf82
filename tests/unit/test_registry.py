"""
Unit tests for the target registry.
"""

import pytest

from edgeconf.codegen.registry import TARGETS, available_targets, create_generator, generate_all, get_target
from edgeconf.codegen.targets import EdgeHookGenerator, MiddlewareGenerator, MinimalRuntimeGenerator, WorkerGenerator
from edgeconf.codegen.types import GenerationOptions
from edgeconf.model.builder import build_config


class TestTargetLookup:
    """Test target resolution."""

    def test_available_targets(self):
        """Test the canonical target names and order."""
        assert available_targets() == ["worker", "middleware", "edge-hook", "minimal"]

    @pytest.mark.parametrize("name,generator", [
        ("worker", WorkerGenerator),
        ("cloudflare", WorkerGenerator),
        ("NextJS", MiddlewareGenerator),
        ("lambda-edge", EdgeHookGenerator),
        ("quickjs", MinimalRuntimeGenerator),
        (" minimal ", MinimalRuntimeGenerator),
    ])
    def test_names_and_aliases(self, name, generator):
        """Test canonical names and aliases resolve case-insensitively."""
        assert get_target(name).generator is generator

    def test_file_extensions(self):
        """Test each target's output file extension."""
        for info in TARGETS:
            extension = info.generator(build_config([])).get_file_extension()
            assert info.default_filename.endswith(extension)

    def test_create_generator_uses_options(self):
        """Test options are handed to the generator."""
        options = GenerationOptions(indent_size=4)
        generator = create_generator("edge-hook", build_config([]), options)
        assert generator.options is options


class TestGenerateAll:
    """Test multi-target generation."""

    def test_all_targets_succeed(self, proxy_tree):
        """Test every target produces source."""
        outcomes = generate_all(build_config(proxy_tree))

        assert list(outcomes) == available_targets()
        for outcome in outcomes.values():
            assert outcome.ok
            assert outcome.errors == ()
            assert "example.com" in outcome.source

    def test_failing_target_does_not_stop_others(self, fastcgi_tree):
        """Test failures are isolated per target."""
        outcomes = generate_all(build_config(fastcgi_tree))

        assert outcomes["worker"].ok
        assert outcomes["middleware"].ok
        assert not outcomes["edge-hook"].ok
        assert len(outcomes["edge-hook"].errors) == 2
        assert not outcomes["minimal"].ok
        assert outcomes["minimal"].source is None

    def test_selected_targets(self, proxy_tree):
        """Test generating a subset by alias."""
        outcomes = generate_all(build_config(proxy_tree), targets=["cf", "quickjs"])
        assert list(outcomes) == ["worker", "minimal"]
        assert outcomes["minimal"].filename == "minimal.js"
