import math
from dataclasses import replace

import pytest

from core.config_manager import SystemConfig
from core.goal_tree.layout import compute_ring_geometry, continuation_slivers, layout
from core.goal_tree.models import Node
from core.goal_tree.progress import rollup_map
from core.goal_tree.sample import SAMPLE_TREE

TWO_PI = 2 * math.pi


def _by_id(nodes):
    return {rn.node_id: rn for rn in nodes}


def _chain(depth, prefix="n"):
    node = Node(id=f"{prefix}{depth}", title=f"{prefix}{depth}")
    for i in range(depth - 1, -1, -1):
        node = Node(id=f"{prefix}{i}", title=f"{prefix}{i}", children=(node,))
    return node


def test_two_children_split_by_importance():
    tree = Node(
        id="root",
        title="Root",
        children=(Node(id="b", title="B", importance=2), Node(id="a", title="A", importance=4)),
    )
    nodes = _by_id(layout(tree, 800, 800, False))

    assert nodes["a"].theta0 == pytest.approx(0)
    assert nodes["a"].theta1 == pytest.approx(TWO_PI * 4 / 6)
    assert nodes["b"].theta0 == pytest.approx(TWO_PI * 4 / 6)
    assert nodes["b"].theta1 == pytest.approx(TWO_PI)


def test_output_is_traversal_order_with_title_sorted_siblings():
    order = [rn.node_id for rn in layout(SAMPLE_TREE, 800, 800, False)]
    assert order == [
        "root",
        "hr", "hiring", "culture",
        "marketing", "sales-team", "campaign", "seo",
        "product", "feat1", "feat2", "ux", "ux-design", "ux-research",
    ]


def test_children_partition_parent_span():
    nodes = layout(SAMPLE_TREE, 800, 800, False)
    by_id = _by_id(nodes)

    def check(node):
        if not node.children or node.id not in by_id:
            return
        kids = [by_id[c.id] for c in node.children if c.id in by_id]
        if not kids:
            return
        kids.sort(key=lambda rn: rn.theta0)
        parent = by_id[node.id]
        assert sum(k.theta1 - k.theta0 for k in kids) == pytest.approx(parent.theta1 - parent.theta0)
        assert kids[0].theta0 == pytest.approx(parent.theta0)
        for left, right in zip(kids, kids[1:]):
            assert left.theta1 == pytest.approx(right.theta0)
            assert left.data.title <= right.data.title
        for child in node.children:
            check(child)

    check(SAMPLE_TREE)


def test_hub_and_ring_radii():
    settings = SystemConfig()
    nodes = _by_id(layout(SAMPLE_TREE, 800, 800, False, settings))
    # radius 390, hub 30, three rings over the remaining 360 px
    assert nodes["root"].r0 == 0
    assert nodes["root"].r1 == 30
    assert nodes["product"].r0 == pytest.approx(30)
    assert nodes["product"].r1 == pytest.approx(150)
    assert nodes["ux-design"].r0 == pytest.approx(270)
    assert nodes["ux-design"].r1 == pytest.approx(390)


def test_depth_cap_by_mode():
    settings = SystemConfig()
    deep = _chain(8)

    overview = layout(deep, 800, 800, False, settings)
    zoomed = layout(deep, 800, 800, True, settings)

    assert max(rn.depth for rn in overview) == settings.MAX_DEPTH_OVERVIEW
    assert max(rn.depth for rn in zoomed) == settings.MAX_DEPTH_ZOOMED


def test_depth_cap_by_size():
    settings = SystemConfig()
    # radius 90, minus hub 30 leaves 60 px: two rings of at least 24 px
    nodes = layout(_chain(8), 200, 200, True, settings)
    assert max(rn.depth for rn in nodes) == 2
    geometry = compute_ring_geometry(_chain(8), 200, 200, True, settings)
    assert geometry.ring_thickness == pytest.approx(30)


def test_tiny_viewport_shows_hub_only():
    nodes = layout(SAMPLE_TREE, 60, 60, False)
    assert len(nodes) == 1
    assert nodes[0].depth == 0
    assert nodes[0].has_collapsed_children
    assert nodes[0].slivers == ()


def test_collapsed_flag_only_at_boundary():
    nodes = _by_id(layout(_chain(5), 800, 800, False))
    assert nodes["n3"].has_collapsed_children
    assert not nodes["n2"].has_collapsed_children
    assert "n4" not in nodes


def test_leaf_at_boundary_is_not_collapsed():
    nodes = _by_id(layout(SAMPLE_TREE, 800, 800, False))
    assert not nodes["ux-research"].has_collapsed_children
    assert not any(rn.has_collapsed_children for rn in nodes.values())


def test_colors_assigned_without_touching_input():
    nodes = _by_id(layout(SAMPLE_TREE, 800, 800, False))
    palette = SystemConfig().PALETTE

    assert nodes["root"].color == palette[0]
    assert nodes["product"].color == palette[1]
    assert nodes["ux-design"].color == palette[3]
    assert SAMPLE_TREE.color is None
    assert SAMPLE_TREE.children[0].color is None


def test_explicit_color_is_kept():
    tree = Node(id="root", title="Root", children=(Node(id="a", title="A", color="#123456"),))
    nodes = _by_id(layout(tree, 800, 800, False))
    assert nodes["a"].color == "#123456"
    assert nodes["a"].data is tree.children[0]


def test_zero_importance_children_are_not_emitted():
    tree = Node(
        id="root",
        title="Root",
        children=(Node(id="a", title="A", importance=0), Node(id="b", title="B", importance=0)),
    )
    nodes = layout(tree, 800, 800, False)
    assert [rn.node_id for rn in nodes] == ["root"]


def test_display_progress_uses_rollup(small_tree):
    nodes = _by_id(layout(small_tree, 800, 800, False))
    assert nodes["a"].display_progress == pytest.approx(0.25)
    assert nodes["a1"].display_progress == pytest.approx(1.0)


def test_layout_is_repeatable():
    assert layout(SAMPLE_TREE, 800, 800, False) == layout(SAMPLE_TREE, 800, 800, False)


def test_slivers_subdivide_by_importance():
    settings = replace(SystemConfig(), MAX_DEPTH_OVERVIEW=1)
    nodes = _by_id(layout(SAMPLE_TREE, 800, 800, False, settings))
    product = nodes["product"]

    assert product.has_collapsed_children
    assert [s.target_node_id for s in product.slivers] == ["feat1", "feat2", "ux"]
    for sliver in product.slivers:
        assert sliver.r1 == pytest.approx(product.r1)
        assert sliver.r0 == pytest.approx(product.r1 - settings.SLIVER_THICKNESS)
        assert not sliver.merged
    # gaps between neighbours, none at the outer edges
    assert product.slivers[0].theta0 == pytest.approx(product.theta0)
    assert product.slivers[-1].theta1 == pytest.approx(product.theta1)
    assert product.slivers[0].theta1 < product.slivers[1].theta0
    ux = product.slivers[2]
    assert ux.display_progress == pytest.approx(0.55)


def test_narrow_parent_gets_single_merged_sliver():
    settings = SystemConfig()
    rollups = rollup_map(SAMPLE_TREE.children[0])
    # arc length 0.05 rad * 150 px = 7.5 px, below two label widths
    slivers = continuation_slivers(SAMPLE_TREE.children[0], 0.0, 0.05, 30, 150, rollups, settings)

    assert len(slivers) == 1
    assert slivers[0].merged
    assert slivers[0].target_node_id == "product"
    assert slivers[0].theta0 == 0.0 and slivers[0].theta1 == 0.05


def test_tiny_sub_slivers_are_dropped():
    settings = SystemConfig()
    parent = Node(
        id="p",
        title="P",
        children=(
            Node(id="big", title="Big", importance=1000),
            Node(id="tiny", title="Tiny", importance=1),
        ),
    )
    rollups = rollup_map(parent)
    slivers = continuation_slivers(parent, 0.0, 0.5, 100, 150, rollups, settings)
    assert [s.target_node_id for s in slivers] == ["big"]
