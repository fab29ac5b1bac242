"""
Cycle-safe rewriting of JSON-like content trees.

CMS exports are nested dicts and lists that may reference their own
ancestors (an entity whose child is also one of its parents). The rewriter
walks such trees, hands every string leaf to a transform, and rebuilds only
the containers whose contents changed.
"""

from __future__ import annotations

from typing import Any, Callable, Optional, Set


LeafTransform = Callable[[str, Optional[str]], str]


class TreeRewriter:
    """
    Applies a string transform to every string leaf of a content tree.

    - dicts are copy-on-write: returned as-is when nothing below them
      changed, otherwise replaced by a single shallow copy
    - lists and tuples are always rebuilt
    - a container already on the current recursion path is returned
      unchanged, which cuts reference cycles
    """

    def rewrite(self, node: Any, transform: LeafTransform) -> Any:
        """
        Rewrite a tree without mutating it.

        Args:
            node: Root of the tree (dict, list, tuple or scalar)
            transform: Called as transform(value, key) for each string leaf;
                key is None for sequence elements and for a bare root string

        Returns:
            The rewritten tree, sharing unchanged subtrees with the input
        """
        if isinstance(node, str):
            return transform(node, None)
        return self._rewrite_node(node, transform, set())

    def _rewrite_node(self, node: Any, transform: LeafTransform, active: Set[int]) -> Any:
        if not isinstance(node, (dict, list, tuple)):
            return node

        node_id = id(node)
        if node_id in active:
            return node

        active.add(node_id)
        try:
            if isinstance(node, dict):
                return self._rewrite_mapping(node, transform, active)
            return self._rewrite_sequence(node, transform, active)
        finally:
            active.discard(node_id)

    def _rewrite_sequence(self, node, transform: LeafTransform, active: Set[int]):
        items = []
        for item in node:
            if isinstance(item, str):
                items.append(transform(item, None))
            else:
                items.append(self._rewrite_node(item, transform, active))
        return tuple(items) if isinstance(node, tuple) else items

    def _rewrite_mapping(self, node: dict, transform: LeafTransform, active: Set[int]) -> dict:
        current = node
        for key, value in node.items():
            if isinstance(value, str):
                new_value = transform(value, key)
                changed = new_value is not value and new_value != value
            else:
                new_value = self._rewrite_node(value, transform, active)
                changed = new_value is not value

            if changed:
                if current is node:
                    current = dict(node)
                current[key] = new_value
        return current


def rewrite_tree(node: Any, transform: LeafTransform) -> Any:
    """Convenience wrapper around TreeRewriter.rewrite."""
    return TreeRewriter().rewrite(node, transform)
