"""Data model for syntax trees described by the model."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class TreeNode:
    """A node of a parse tree; children keep the order the model gave."""

    name: str
    children: tuple[TreeNode, ...] = ()

    @property
    def is_leaf(self) -> bool:
        """True if the node has no children."""
        return not self.children

    @property
    def size(self) -> int:
        """Number of nodes in this subtree, including this one."""
        return 1 + sum(child.size for child in self.children)
