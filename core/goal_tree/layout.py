"""
Radial layout engine.

Turns the focused subtree into RenderNode records for a sunburst chart:

- depth 0 (the focused node) occupies the center hub only
- each further depth is one ring of equal thickness
- a node's angular span is split among its children by importance, children
  ordered by title
- angles are radians, clockwise from 12 o'clock, radii are pixels

The number of rings is the smallest of the subtree height, the mode's depth
cap and what fits at MIN_RING_THICKNESS. Nodes on the last ring that still
have children get continuation slivers so the hidden depth stays reachable.
"""
import math
from dataclasses import dataclass, replace
from typing import Dict, List, Optional, Tuple

from core.config_manager import SystemConfig, config
from core.goal_tree.models import ContinuationSliver, Node, RenderNode
from core.goal_tree.progress import rollup_map
from core.goal_tree.tree_store import sorted_children, tree_height

FULL_CIRCLE = 2 * math.pi


@dataclass(frozen=True)
class RingGeometry:
    max_radius: float
    center_radius: float
    allowed_depth: int
    ring_thickness: float

    def radii(self, depth: int) -> Tuple[float, float]:
        if depth == 0:
            return 0.0, self.center_radius
        r0 = self.center_radius + (depth - 1) * self.ring_thickness
        return r0, r0 + self.ring_thickness


def compute_ring_geometry(
    focused_node: Node,
    width: float,
    height: float,
    is_zoomed_in: bool,
    settings: Optional[SystemConfig] = None,
) -> RingGeometry:
    cfg = settings or config
    max_radius = min(width, height) / 2 - cfg.CHART_MARGIN
    center_radius = float(cfg.CENTER_RADIUS)
    available = max(0.0, max_radius - center_radius)

    depth_cap = cfg.MAX_DEPTH_ZOOMED if is_zoomed_in else cfg.MAX_DEPTH_OVERVIEW
    size_cap = int(available // cfg.MIN_RING_THICKNESS)
    allowed_depth = max(0, min(tree_height(focused_node), depth_cap, size_cap))

    thickness = available / allowed_depth if allowed_depth > 0 else 0.0
    return RingGeometry(max_radius, center_radius, allowed_depth, thickness)


def split_span(children: List[Node], theta0: float, theta1: float) -> List[Tuple[Node, float, float]]:
    """
    Divide [theta0, theta1) among children by importance.

    children must already be in display order. Returns nothing when the
    group's importance sums to zero.
    """
    total = sum(child.importance for child in children)
    if total <= 0:
        return []
    span = theta1 - theta0
    spans = []
    start = theta0
    for index, child in enumerate(children):
        if index == len(children) - 1:
            end = theta1
        else:
            end = start + span * (child.importance / total)
        spans.append((child, start, end))
        start = end
    return spans


def continuation_slivers(
    node: Node,
    theta0: float,
    theta1: float,
    r0: float,
    r1: float,
    rollups: Dict[str, float],
    settings: Optional[SystemConfig] = None,
) -> Tuple[ContinuationSliver, ...]:
    """
    Bands just inside r1 standing in for node's undrawn children.

    A parent arc shorter than two label widths gets one merged band that
    targets the node itself. Otherwise there is one band per child, split
    like real children, separated by SLIVER_GAP_PX; bands shorter than
    MIN_SLIVER_ARC_PX are dropped.
    """
    cfg = settings or config
    band_r1 = r1
    band_r0 = max(r0, r1 - cfg.SLIVER_THICKNESS)

    if (theta1 - theta0) * r1 < 2 * cfg.MIN_LABEL_PX:
        return (
            ContinuationSliver(
                target_node_id=node.id,
                theta0=theta0,
                theta1=theta1,
                r0=band_r0,
                r1=band_r1,
                display_progress=rollups[node.id],
                merged=True,
            ),
        )

    mid_radius = (band_r0 + band_r1) / 2
    half_gap = (cfg.SLIVER_GAP_PX / mid_radius) / 2 if mid_radius > 0 else 0.0
    spans = split_span(sorted_children(node), theta0, theta1)

    slivers = []
    for index, (child, start, end) in enumerate(spans):
        if index > 0:
            start += half_gap
        if index < len(spans) - 1:
            end -= half_gap
        if (end - start) * mid_radius < cfg.MIN_SLIVER_ARC_PX:
            continue
        slivers.append(
            ContinuationSliver(
                target_node_id=child.id,
                theta0=start,
                theta1=end,
                r0=band_r0,
                r1=band_r1,
                display_progress=rollups[child.id],
            )
        )
    return tuple(slivers)


def layout(
    focused_node: Node,
    width: float,
    height: float,
    is_zoomed_in: bool = False,
    settings: Optional[SystemConfig] = None,
) -> List[RenderNode]:
    """
    Render records for focused_node's subtree, parent before children.

    Input nodes are never modified; a node without a color is emitted as a
    copy carrying its depth's palette color.
    """
    cfg = settings or config
    geometry = compute_ring_geometry(focused_node, width, height, is_zoomed_in, cfg)
    rollups = rollup_map(focused_node)
    palette = cfg.PALETTE

    render_nodes: List[RenderNode] = []
    stack = [(focused_node, 0, 0.0, FULL_CIRCLE)]
    while stack:
        node, depth, theta0, theta1 = stack.pop()
        r0, r1 = geometry.radii(depth)

        data = node
        if not node.color:
            data = replace(node, color=palette[depth % len(palette)])

        at_boundary = depth >= geometry.allowed_depth
        collapsed = bool(node.children) and at_boundary
        slivers: Tuple[ContinuationSliver, ...] = ()
        if collapsed and depth > 0:
            slivers = continuation_slivers(node, theta0, theta1, r0, r1, rollups, cfg)

        render_nodes.append(
            RenderNode(
                node_id=node.id,
                depth=depth,
                theta0=theta0,
                theta1=theta1,
                r0=r0,
                r1=r1,
                data=data,
                display_progress=rollups[node.id],
                has_collapsed_children=collapsed,
                slivers=slivers,
            )
        )

        if at_boundary:
            continue
        spans = split_span(sorted_children(node), theta0, theta1)
        # 逆序入栈，保证出栈顺序与标题排序一致
        for child, start, end in reversed(spans):
            stack.append((child, depth + 1, start, end))

    return render_nodes
