"""
Tree Store: pure operations over an immutable goal tree.

- lookup: find_node_by_id / find_node_path / find_parent
- edits: update_node_in_tree / add_node_to_tree / remove_node_from_tree /
  promote_children_in_tree / rebalance_importance

Every edit returns a new root. Only the ancestors of the changed node are
rebuilt; all other subtrees are shared with the input tree. Missing ids never
raise: the input tree comes back unchanged.

All walks use an explicit stack so deep trees stay within the interpreter's
recursion limit.
"""
import uuid
from dataclasses import replace
from typing import Iterator, List, Optional, Sequence, Set

from core.config_manager import config
from core.goal_tree.models import MutationResult, Node
from core.logger import get_logger

logger = get_logger("tree_store")


def new_node_id(prefix: str = "node") -> str:
    return f"{prefix}_{uuid.uuid4().hex[:8]}"


def sorted_children(node: Node) -> List[Node]:
    """Siblings in display order: by title, case-sensitive."""
    return sorted(node.children, key=lambda child: child.title)


def iter_nodes(tree: Node) -> Iterator[Node]:
    """Depth-first pre-order walk, children in stored order."""
    stack = [tree]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(current.children))


def collect_ids(tree: Node) -> Set[str]:
    return {n.id for n in iter_nodes(tree)}


def tree_height(node: Node) -> int:
    """Edges on the longest path from node down to a leaf (0 for a leaf)."""
    height = 0
    stack = [(node, 0)]
    while stack:
        current, depth = stack.pop()
        if depth > height:
            height = depth
        for child in current.children:
            stack.append((child, depth + 1))
    return height


def find_node_by_id(tree: Node, node_id: str) -> Optional[Node]:
    for node in iter_nodes(tree):
        if node.id == node_id:
            return node
    return None


def find_node_path(tree: Node, node_id: str) -> List[Node]:
    """
    Nodes from the root down to node_id, both ends included.

    Returns an empty list when node_id is not in the tree, so callers can
    check len() before indexing.
    """
    # 栈中保存 (节点, 从根到该节点的路径)
    stack = [(tree, [tree])]
    while stack:
        current, path = stack.pop()
        if current.id == node_id:
            return path
        for child in reversed(current.children):
            stack.append((child, path + [child]))
    return []


def find_parent(tree: Node, node_id: str) -> Optional[Node]:
    path = find_node_path(tree, node_id)
    if len(path) < 2:
        return None
    return path[-2]


def importance_share(tree: Node, node_id: str) -> float:
    """node importance / total importance of its sibling group (1.0 for the root)."""
    path = find_node_path(tree, node_id)
    if not path:
        return 0.0
    if len(path) < 2:
        return 1.0
    node, parent = path[-1], path[-2]
    total = sum(child.importance for child in parent.children)
    if total <= 0:
        return 0.0
    return node.importance / total


def _rebuild_path(path: Sequence[Node], replacement: Node) -> Node:
    """
    Swap path[-1] for replacement and copy every ancestor on the way up.

    Siblings of the path are reused as-is.
    """
    new_node = replacement
    for depth in range(len(path) - 2, -1, -1):
        parent = path[depth]
        old_child = path[depth + 1]
        children = tuple(new_node if c is old_child else c for c in parent.children)
        new_node = replace(parent, children=children)
    return new_node


def update_node_in_tree(tree: Node, updated_node: Node) -> Node:
    """Replace the node with updated_node.id; no-op when the id is absent."""
    path = find_node_path(tree, updated_node.id)
    if not path:
        return tree
    return _rebuild_path(path, updated_node)


def add_node_checked(tree: Node, parent_id: str, new_node: Node) -> MutationResult:
    """
    Append new_node under parent_id.

    Fails (unchanged tree, success=False) when the parent is missing or any
    id in new_node's subtree already exists in the tree.
    """
    path = find_node_path(tree, parent_id)
    if not path:
        logger.debug("add skipped: parent %s not found", parent_id)
        return MutationResult(tree, None, False)

    if collect_ids(new_node) & collect_ids(tree):
        logger.debug("add skipped: id collision for %s", new_node.id)
        return MutationResult(tree, None, False)

    parent = path[-1]
    updated_parent = replace(parent, children=parent.children + (new_node,))
    return MutationResult(_rebuild_path(path, updated_parent), new_node.id, True)


def add_node_to_tree(tree: Node, parent_id: str, new_node: Node) -> Node:
    return add_node_checked(tree, parent_id, new_node).tree


def _replace_in_parent(path: Sequence[Node], new_children: Sequence[Node]) -> Node:
    """Rebuild the tree with path[-2]'s child path[-1] replaced by new_children."""
    parent = path[-2]
    target = path[-1]
    children: List[Node] = []
    for child in parent.children:
        if child is target:
            children.extend(new_children)
        else:
            children.append(child)
    updated_parent = replace(parent, children=tuple(children))
    return _rebuild_path(path[:-1], updated_parent)


def remove_node_from_tree(tree: Node, node_id: str) -> MutationResult:
    """
    Delete node_id together with its subtree.

    selected_id is the removed node's parent so the caller can move focus
    there. The root cannot be removed: the tree comes back unchanged with
    success=False and the root id as selection.
    """
    if tree.id == node_id:
        logger.info("refused to delete root node %s", node_id)
        return MutationResult(tree, tree.id, False)

    path = find_node_path(tree, node_id)
    if len(path) < 2:
        return MutationResult(tree, None, False)

    return MutationResult(_replace_in_parent(path, ()), path[-2].id, True)


def promote_children_in_tree(tree: Node, node_id: str) -> MutationResult:
    """
    Delete node_id but move its children up into its slot in the parent.

    The promoted children split the deleted node's importance in proportion
    to their own importance, so the parent's total stays the same. With an
    all-zero child group the importance is split evenly.
    """
    path = find_node_path(tree, node_id)
    if len(path) < 2:
        if path:
            logger.info("refused to promote children of root node %s", node_id)
            return MutationResult(tree, tree.id, False)
        return MutationResult(tree, None, False)

    target = path[-1]
    if not target.children:
        return remove_node_from_tree(tree, node_id)

    total = sum(child.importance for child in target.children)
    if total > 0:
        promoted = [
            replace(child, importance=target.importance * (child.importance / total))
            for child in target.children
        ]
    else:
        share = target.importance / len(target.children)
        promoted = [replace(child, importance=share) for child in target.children]

    return MutationResult(_replace_in_parent(path, promoted), path[-2].id, True)


def rebalance_importance(
    tree: Node,
    updated_node: Node,
    min_importance: Optional[float] = None,
) -> Node:
    """
    Update a node and, when its importance changed, shift its siblings.

    Siblings absorb the change in proportion to their share of the untouched
    total and are clamped at min_importance. With the clamp active the group
    total is not exactly conserved.
    """
    floor = config.MIN_IMPORTANCE if min_importance is None else min_importance
    path = find_node_path(tree, updated_node.id)
    if not path:
        return tree

    original = path[-1]
    new_importance = max(floor, updated_node.importance)
    updated_node = replace(updated_node, importance=new_importance)
    delta = new_importance - original.importance

    if len(path) < 2 or delta == 0:
        if updated_node == original:
            return tree
        return _rebuild_path(path, updated_node)

    parent = path[-2]
    others_total = sum(c.importance for c in parent.children if c is not original)

    children = []
    for child in parent.children:
        if child is original:
            children.append(updated_node)
        elif others_total > 0:
            shift = delta * (child.importance / others_total)
            children.append(replace(child, importance=max(floor, child.importance - shift)))
        else:
            children.append(child)

    updated_parent = replace(parent, children=tuple(children))
    return _rebuild_path(path[:-1], updated_parent)
