"""
Configuration Model package.

Directive Tree input types, the immutable Configuration Model and the
builder that turns one into the other.
"""

from .tree import DirectiveNode, DirectiveTree, load_tree, load_tree_file
from .config_model import (
    DirectiveValue,
    ListenDirective,
    LoadBalancingMethod,
    LocationBlock,
    LocationDirectives,
    LocationModifier,
    NginxConfig,
    ReturnDirective,
    RewriteRule,
    ServerBlock,
    SSLConfig,
    UpstreamBlock,
    UpstreamServer,
)
from .builder import ConfigBuilder, build_config, parse_value

__all__ = [
    "DirectiveNode",
    "DirectiveTree",
    "load_tree",
    "load_tree_file",
    "DirectiveValue",
    "ListenDirective",
    "LoadBalancingMethod",
    "LocationBlock",
    "LocationDirectives",
    "LocationModifier",
    "NginxConfig",
    "ReturnDirective",
    "RewriteRule",
    "ServerBlock",
    "SSLConfig",
    "UpstreamBlock",
    "UpstreamServer",
    "ConfigBuilder",
    "build_config",
    "parse_value",
]
