"""
Code generation for edge targets.

This package turns a Configuration Model into source code for the
supported edge environments. The shared matching engine lives in
``matching``; per-target generators live in ``targets``.
"""

from .types import GenerationOptions, ProxyTarget, RegexDialect, RegexTranslation, ValidationResult
from .matching import host_condition, path_condition, sort_locations, translate_regex
from .base import BaseGenerator
from .targets import EdgeHookGenerator, MiddlewareGenerator, MinimalRuntimeGenerator, WorkerGenerator
from .registry import (
    TARGETS,
    TargetInfo,
    TargetOutcome,
    available_targets,
    create_generator,
    generate_all,
    get_target,
)

__all__ = [
    "GenerationOptions",
    "ProxyTarget",
    "RegexDialect",
    "RegexTranslation",
    "ValidationResult",
    "host_condition",
    "path_condition",
    "sort_locations",
    "translate_regex",
    "BaseGenerator",
    "WorkerGenerator",
    "MiddlewareGenerator",
    "EdgeHookGenerator",
    "MinimalRuntimeGenerator",
    "TARGETS",
    "TargetInfo",
    "TargetOutcome",
    "available_targets",
    "create_generator",
    "generate_all",
    "get_target",
]
