"""
Progress Rollup: importance-weighted completion of a subtree.

A leaf reports its own progress. An internal node reports the weighted mean
of its children's rollups, weights being child importance. When the children
carry no importance at all the node falls back to its own progress.
"""
from typing import Dict

from core.goal_tree.models import Node


def _clamp(value: float) -> float:
    return min(1.0, max(0.0, value))


def rollup_map(node: Node) -> Dict[str, float]:
    """
    Rollup value for every node of the subtree, keyed by id.

    One post-order pass; the layout engine uses this as its per-render cache.
    """
    values: Dict[str, float] = {}
    # (节点, 子节点是否已入栈)
    stack = [(node, False)]
    while stack:
        current, expanded = stack.pop()
        if not current.children:
            values[current.id] = _clamp(current.progress)
            continue
        if not expanded:
            stack.append((current, True))
            for child in current.children:
                stack.append((child, False))
            continue

        total = sum(child.importance for child in current.children)
        if total == 0:
            values[current.id] = _clamp(current.progress)
        else:
            weighted = sum(values[child.id] * child.importance for child in current.children)
            values[current.id] = _clamp(weighted / total)
    return values


def progress_rollup(node: Node) -> float:
    if not node.children:
        return node.progress
    return rollup_map(node)[node.id]
