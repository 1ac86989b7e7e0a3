# Goal tree engine: immutable tree model, tree store edits, progress rollup,
# radial layout and the bounded undo/redo history.

from core.goal_tree.history import CommitResult, HistoryManager
from core.goal_tree.layout import layout
from core.goal_tree.models import ContinuationSliver, MutationResult, Node, RenderNode
from core.goal_tree.progress import progress_rollup
from core.goal_tree.sample import SAMPLE_TREE
from core.goal_tree.tree_store import (
    add_node_checked,
    add_node_to_tree,
    find_node_by_id,
    find_node_path,
    promote_children_in_tree,
    rebalance_importance,
    remove_node_from_tree,
    update_node_in_tree,
)

__all__ = [
    "CommitResult",
    "ContinuationSliver",
    "HistoryManager",
    "MutationResult",
    "Node",
    "RenderNode",
    "SAMPLE_TREE",
    "add_node_checked",
    "add_node_to_tree",
    "find_node_by_id",
    "find_node_path",
    "layout",
    "progress_rollup",
    "promote_children_in_tree",
    "rebalance_importance",
    "remove_node_from_tree",
    "update_node_in_tree",
]
