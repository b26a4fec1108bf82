"""
Directive Tree input shape.

The external nginx parser hands the converter a generic nested structure
of ``{directive, args, line, block?}`` nodes. This module defines the
immutable node type and the loaders that accept the two JSON shapes the
converter understands: a bare list of nodes, or a crossplane-style
payload ``{"config": [{"parsed": [...]}]}``.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterator, Optional, Sequence, Tuple, Union

from ..utils.exceptions import TreeFormatError
from ..utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class DirectiveNode:
    """One directive: a name, its arguments and an optional nested block."""
    directive: str
    args: Tuple[str, ...] = ()
    line: Optional[int] = None
    block: Optional[Tuple["DirectiveNode", ...]] = None

    @property
    def is_block(self) -> bool:
        return self.block is not None

    def children(self) -> Tuple["DirectiveNode", ...]:
        return self.block or ()

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"directive": self.directive, "args": list(self.args)}
        if self.line is not None:
            data["line"] = self.line
        if self.block is not None:
            data["block"] = [child.to_dict() for child in self.block]
        return data

    @classmethod
    def from_dict(cls, data: Any) -> "DirectiveNode":
        """
        Build a node from its JSON form.

        Args:
            data: Mapping with ``directive``, ``args`` and optional
                ``line`` and ``block`` keys

        Returns:
            DirectiveNode with all nested blocks converted

        Raises:
            TreeFormatError: If the mapping is not a directive node
        """
        if isinstance(data, DirectiveNode):
            return data
        if not isinstance(data, dict):
            raise TreeFormatError(f"Directive node must be an object, got {type(data).__name__}")

        line = data.get("line")
        if line is not None and not isinstance(line, int):
            line = None

        name = data.get("directive")
        if not isinstance(name, str) or not name:
            raise TreeFormatError("Directive node has no 'directive' name", line)

        raw_args = data.get("args", [])
        if raw_args is None:
            raw_args = []
        if not isinstance(raw_args, (list, tuple)):
            raise TreeFormatError(f"Arguments of '{name}' must be a list", line)
        args = tuple(str(arg) for arg in raw_args)

        raw_block = data.get("block")
        block = None
        if raw_block is not None:
            if not isinstance(raw_block, (list, tuple)):
                raise TreeFormatError(f"Block of '{name}' must be a list", line)
            block = tuple(cls.from_dict(child) for child in raw_block)

        return cls(directive=name, args=args, line=line, block=block)


DirectiveTree = Tuple[DirectiveNode, ...]

TreeInput = Union[Sequence[Any], Dict[str, Any]]


def load_tree(data: TreeInput) -> DirectiveTree:
    """
    Normalize any accepted input shape into a tuple of DirectiveNodes.

    Accepted shapes are a list of node mappings (or nodes), and a
    crossplane payload whose ``config`` entries each carry a
    ``parsed`` list. Parsed lists of every file in the payload are
    concatenated in order.

    Raises:
        TreeFormatError: If the input is neither shape
    """
    if isinstance(data, dict):
        if "config" not in data:
            raise TreeFormatError("Payload object has no 'config' list")
        return tuple(_iter_payload_nodes(data))

    if isinstance(data, (list, tuple)):
        return tuple(DirectiveNode.from_dict(node) for node in data)

    raise TreeFormatError(f"Directive tree must be a list or payload object, got {type(data).__name__}")


def _iter_payload_nodes(payload: Dict[str, Any]) -> Iterator[DirectiveNode]:
    files = payload.get("config")
    if not isinstance(files, list):
        raise TreeFormatError("Payload 'config' must be a list")

    status = payload.get("status")
    if status not in (None, "ok"):
        logger.warning(f"Parser payload reports status '{status}'")

    for entry in files:
        if not isinstance(entry, dict):
            raise TreeFormatError("Payload 'config' entries must be objects")
        for error in entry.get("errors") or []:
            logger.warning(f"Parser reported error in {entry.get('file', '<unknown>')}: {error}")
        for node in entry.get("parsed") or []:
            yield DirectiveNode.from_dict(node)


def load_tree_file(path: Union[str, Path]) -> DirectiveTree:
    """Read a JSON directive tree from disk."""
    path = Path(path)
    try:
        with open(path, "r") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise TreeFormatError(f"{path} is not valid JSON: {e.msg}", e.lineno) from e

    tree = load_tree(data)
    logger.debug(f"Loaded {len(tree)} top-level directive(s) from {path}")
    return tree


def walk(nodes: Sequence[DirectiveNode]) -> Iterator[DirectiveNode]:
    """Depth-first iteration over every node of a tree."""
    for node in nodes:
        yield node
        yield from walk(node.children())
