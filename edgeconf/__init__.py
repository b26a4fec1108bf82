"""
edgeconf: nginx configuration to edge runtime code

Converts a parsed nginx configuration (the directive tree produced by an
external parser such as crossplane) into source code for edge execution
environments.

Key Features:
- Normalized, immutable configuration model built from the directive tree
- Shared host/path matching engine with nginx regex translation
- Four targets: fetch-event worker, HTTP middleware, CDN edge hooks,
  minimal embeddable runtime
- Exhaustive per-target validation before any code is emitted

Usage:
    from edgeconf import build_config, create_generator

    config = build_config(tree)
    source = create_generator("worker", config).generate()
"""

__version__ = "0.1.0"
__author__ = "edgeconf developers"
__email__ = "edgeconf@example.com"

# Public API exports
from .model import DirectiveNode, NginxConfig, build_config, load_tree, load_tree_file
from .codegen import (
    BaseGenerator,
    EdgeHookGenerator,
    GenerationOptions,
    MiddlewareGenerator,
    MinimalRuntimeGenerator,
    ValidationResult,
    WorkerGenerator,
    available_targets,
    create_generator,
    generate_all,
)
from .utils import EdgeconfError, ValidationError, get_config, EdgeconfConfig

__all__ = [
    "DirectiveNode",
    "NginxConfig",
    "build_config",
    "load_tree",
    "load_tree_file",
    "BaseGenerator",
    "WorkerGenerator",
    "MiddlewareGenerator",
    "EdgeHookGenerator",
    "MinimalRuntimeGenerator",
    "GenerationOptions",
    "ValidationResult",
    "available_targets",
    "create_generator",
    "generate_all",
    "EdgeconfError",
    "ValidationError",
    "get_config",
    "EdgeconfConfig",
]
