"""
Target generators.

One module per edge execution environment, all fed by the same
Configuration Model and the shared base generator.
"""

from .worker import WorkerGenerator
from .middleware import MiddlewareGenerator
from .edge_hook import EdgeHookGenerator
from .minimal_runtime import MinimalRuntimeGenerator

__all__ = [
    "WorkerGenerator",
    "MiddlewareGenerator",
    "EdgeHookGenerator",
    "MinimalRuntimeGenerator",
]
