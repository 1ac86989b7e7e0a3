"""
Goal tree models: Node / RenderNode / ContinuationSliver.

Nodes are frozen values; every mutation in tree_store builds a new tree and
shares the untouched subtrees with the previous version.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, NamedTuple, Optional, Tuple


@dataclass(frozen=True)
class Node:
    """
    Single goal in the tree.

    importance is the weight among siblings, progress is the node's own
    completion (descendants are folded in by progress.progress_rollup).
    """
    id: str
    title: str
    importance: float = 1.0
    progress: float = 0.0
    color: Optional[str] = None
    context: Optional[str] = None
    children: Tuple["Node", ...] = field(default_factory=tuple)

    def __post_init__(self):
        # 允许传入 list，统一存为 tuple
        if not isinstance(self.children, tuple):
            object.__setattr__(self, "children", tuple(self.children))


@dataclass(frozen=True)
class ContinuationSliver:
    """Thin band inside a boundary node standing in for depth that is not drawn."""
    target_node_id: str
    theta0: float
    theta1: float
    r0: float
    r1: float
    display_progress: float
    merged: bool = False


@dataclass(frozen=True)
class RenderNode:
    node_id: str
    depth: int
    theta0: float
    theta1: float
    r0: float
    r1: float
    data: Node
    display_progress: float
    has_collapsed_children: bool = False
    slivers: Tuple[ContinuationSliver, ...] = ()

    @property
    def color(self) -> Optional[str]:
        return self.data.color


class MutationResult(NamedTuple):
    """Outcome of a structural edit: new tree, id to select next, success flag."""
    tree: Node
    selected_id: Optional[str]
    success: bool


def node_to_dict(node: Node) -> Dict[str, Any]:
    """Serialize a tree to plain dicts (iterative, safe for deep trees)."""
    root: Dict[str, Any] = {}
    stack = [(node, root)]
    while stack:
        current, out = stack.pop()
        out["id"] = current.id
        out["title"] = current.title
        out["importance"] = current.importance
        out["progress"] = current.progress
        if current.color is not None:
            out["color"] = current.color
        if current.context is not None:
            out["context"] = current.context
        out["children"] = []
        for child in current.children:
            child_out: Dict[str, Any] = {}
            out["children"].append(child_out)
            stack.append((child, child_out))
    return root


def _build_node(d: dict, children: Tuple[Node, ...]) -> Node:
    return Node(
        id=str(d["id"]),
        title=str(d["title"]),
        importance=_as_float(d.get("importance"), 1.0, lower=0.0),
        progress=_as_float(d.get("progress", d.get("progressSelf")), 0.0, lower=0.0, upper=1.0),
        color=d.get("color") or None,
        context=d.get("context"),
        children=children,
    )


def _as_float(value: Any, default: float, lower: Optional[float] = None,
              upper: Optional[float] = None) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    result = float(value)
    if result != result:  # NaN
        return default
    if lower is not None:
        result = max(lower, result)
    if upper is not None:
        result = min(upper, result)
    return result


def dict_to_node(d: dict) -> Node:
    """
    Build a tree from plain dicts.

    Raises KeyError / TypeError on entries missing id/title or with a
    non-list children field; snapshot_store turns those into SnapshotError.
    """
    # 后序遍历：子节点先构建
    order = []
    stack = [d]
    while stack:
        current = stack.pop()
        if not isinstance(current, dict):
            raise TypeError(f"tree entry must be an object, got {type(current).__name__}")
        if "id" not in current or "title" not in current:
            raise KeyError("tree entry missing id or title")
        children = current.get("children", [])
        if not isinstance(children, list):
            raise TypeError("children must be a list")
        order.append(current)
        stack.extend(children)

    built: Dict[int, Node] = {}
    for current in reversed(order):
        kids = tuple(built.pop(id(child)) for child in current.get("children", []))
        built[id(current)] = _build_node(current, kids)
    return built[id(d)]


def render_node_to_dict(rn: RenderNode) -> Dict[str, Any]:
    return {
        "node_id": rn.node_id,
        "depth": rn.depth,
        "theta0": rn.theta0,
        "theta1": rn.theta1,
        "r0": rn.r0,
        "r1": rn.r1,
        "title": rn.data.title,
        "importance": rn.data.importance,
        "progress": rn.data.progress,
        "color": rn.color,
        "display_progress": rn.display_progress,
        "has_collapsed_children": rn.has_collapsed_children,
        "slivers": [
            {
                "target_node_id": s.target_node_id,
                "theta0": s.theta0,
                "theta1": s.theta1,
                "r0": s.r0,
                "r1": s.r1,
                "display_progress": s.display_progress,
                "merged": s.merged,
            }
            for s in rn.slivers
        ],
    }
