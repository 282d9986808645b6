"""Renderer for syntax trees the model describes as JSON.

The syntax-analysis phase asks the model for a tree of the form
``{"name": "Program", "children": [{"name": "Statement"}]}``. This module
parses that text into ``TreeNode`` values and draws them as a box-drawing
outline::

    Program
    ├── Declaration
    │   └── int a = 5
    └── Return
        └── c
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

import structlog

from compiler_craft.core.results import ParseFailure
from compiler_craft.models.tree import TreeNode

log = structlog.get_logger()

INVALID_TREE_MESSAGE = "Invalid or empty tree data"

BRANCH = "├── "
LAST_BRANCH = "└── "
PIPE = "│   "
SPACE = "    "


class _InvalidTree(Exception):
    """Raised internally when a decoded JSON value is not a tree."""


@dataclass(frozen=True)
class RenderedTree:
    """Outline text for a successfully parsed tree."""

    tree: TreeNode
    text: str

    @property
    def lines(self) -> tuple[str, ...]:
        """One line per node, depth-first."""
        return tuple(self.text.split("\n"))


def _build_node(value: Any) -> TreeNode:
    if not isinstance(value, dict):
        raise _InvalidTree("node is not an object")

    name = value.get("name")
    if name is None or name == "":
        raise _InvalidTree("node has no name")

    children = value.get("children") or []
    if not isinstance(children, list):
        raise _InvalidTree("children is not an array")

    return TreeNode(
        name=str(name),
        children=tuple(_build_node(child) for child in children),
    )


def parse_tree(json_text: str) -> TreeNode | ParseFailure:
    """Parse model output into a TreeNode.

    Args:
        json_text: Text expected to hold a JSON tree

    Returns:
        TreeNode on success. ParseFailure carrying the raw text when the JSON
        does not decode, or carrying INVALID_TREE_MESSAGE when it decodes to
        something that is not a named tree. Never raises.
    """
    if not isinstance(json_text, str):
        return ParseFailure(reason="not text", raw_text=repr(json_text))

    try:
        value = json.loads(json_text)
    except (json.JSONDecodeError, RecursionError) as e:
        log.debug("tree_json_decode_failed", error=str(e))
        return ParseFailure(reason=f"invalid JSON: {e}", raw_text=json_text)

    try:
        return _build_node(value)
    except _InvalidTree as e:
        reason = str(e)
    except RecursionError:
        reason = "tree too deep"

    log.debug("tree_shape_invalid", reason=reason)
    return ParseFailure(reason=reason, raw_text=json_text, message=INVALID_TREE_MESSAGE)


def outline(tree: TreeNode) -> str:
    """Draw a tree as a box-drawing outline.

    The root is printed bare. Each descendant is prefixed by the continuation
    marks of its ancestors and a branch marking whether it is the last child.
    Children keep their given order.
    """
    lines = [tree.name]
    # (node, prefix, is_last), pushed in reverse so children pop in order
    stack = [
        (child, "", index == len(tree.children) - 1)
        for index, child in enumerate(tree.children)
    ][::-1]

    while stack:
        node, prefix, is_last = stack.pop()
        lines.append(f"{prefix}{LAST_BRANCH if is_last else BRANCH}{node.name}")

        child_prefix = prefix + (SPACE if is_last else PIPE)
        last_index = len(node.children) - 1
        for index in range(last_index, -1, -1):
            stack.append((node.children[index], child_prefix, index == last_index))

    return "\n".join(lines)


def render_tree(json_text: str) -> RenderedTree | ParseFailure:
    """Parse and draw a JSON tree in one step.

    Args:
        json_text: Text expected to hold a JSON tree

    Returns:
        RenderedTree on success, ParseFailure otherwise. Never raises.
    """
    result = parse_tree(json_text)
    if isinstance(result, ParseFailure):
        return result
    return RenderedTree(tree=result, text=outline(result))
