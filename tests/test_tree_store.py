import pytest

from core.goal_tree.models import Node
from core.goal_tree.sample import SAMPLE_TREE
from core.goal_tree.tree_store import (
    add_node_checked,
    add_node_to_tree,
    collect_ids,
    find_node_by_id,
    find_node_path,
    find_parent,
    importance_share,
    promote_children_in_tree,
    rebalance_importance,
    remove_node_from_tree,
    sorted_children,
    tree_height,
    update_node_in_tree,
)


def _child(tree, node_id):
    return find_node_by_id(tree, node_id)


def test_find_node_by_id_and_missing(small_tree):
    assert find_node_by_id(small_tree, "b1a").title == "B1a"
    assert find_node_by_id(small_tree, "root") is small_tree
    assert find_node_by_id(small_tree, "nope") is None


def test_find_node_path_root_to_target(small_tree):
    path = find_node_path(small_tree, "b1a")
    assert [n.id for n in path] == ["root", "b", "b1", "b1a"]
    assert [n.id for n in find_node_path(small_tree, "root")] == ["root"]
    assert find_node_path(small_tree, "nope") == []
    assert find_parent(small_tree, "a2").id == "a"
    assert find_parent(small_tree, "root") is None


def test_update_shares_untouched_subtrees(small_tree):
    a1 = find_node_by_id(small_tree, "a1")
    updated = update_node_in_tree(small_tree, Node(id="a1", title="Renamed", importance=1, progress=0.4))

    assert find_node_by_id(updated, "a1").title == "Renamed"
    assert find_node_by_id(small_tree, "a1") is a1
    # B subtree is not on the edited path and is reused
    assert find_node_by_id(updated, "b") is find_node_by_id(small_tree, "b")
    assert find_node_by_id(updated, "a2") is find_node_by_id(small_tree, "a2")


def test_update_missing_id_returns_same_tree(small_tree):
    assert update_node_in_tree(small_tree, Node(id="ghost", title="x")) is small_tree


def test_add_node_appends_child(small_tree):
    result = add_node_checked(small_tree, "b1", Node(id="new", title="New"))
    assert result.success
    assert result.selected_id == "new"
    assert [c.id for c in find_node_by_id(result.tree, "b1").children] == ["b1a", "new"]
    assert find_node_by_id(small_tree, "new") is None


def test_add_node_missing_parent_is_noop(small_tree):
    result = add_node_checked(small_tree, "ghost", Node(id="new", title="New"))
    assert not result.success
    assert result.tree is small_tree
    assert add_node_to_tree(small_tree, "ghost", Node(id="new", title="New")) is small_tree


def test_add_node_rejects_duplicate_id(small_tree):
    result = add_node_checked(small_tree, "a", Node(id="b1a", title="Dup"))
    assert not result.success
    assert result.tree is small_tree


def test_remove_deletes_whole_subtree(small_tree):
    doomed = collect_ids(find_node_by_id(small_tree, "b"))
    new_tree, selected_id, success = remove_node_from_tree(small_tree, "b")

    assert success
    assert selected_id == "root"
    for node_id in doomed:
        assert find_node_by_id(new_tree, node_id) is None
    assert [c.id for c in new_tree.children] == ["a"]


def test_remove_root_is_forbidden(small_tree):
    result = remove_node_from_tree(small_tree, "root")
    assert not result.success
    assert result.tree is small_tree


def test_remove_missing_id(small_tree):
    result = remove_node_from_tree(small_tree, "ghost")
    assert result == (small_tree, None, False)


def test_promote_conserves_weight():
    tree = Node(
        id="root",
        title="Root",
        children=(
            Node(id="before", title="Before", importance=2),
            Node(
                id="p",
                title="P",
                importance=3,
                children=(Node(id="x", title="X", importance=1), Node(id="y", title="Y", importance=1)),
            ),
            Node(id="after", title="After", importance=1),
        ),
    )
    total_before = sum(c.importance for c in tree.children)

    new_tree, selected_id, success = promote_children_in_tree(tree, "p")

    assert success
    assert selected_id == "root"
    assert [c.id for c in new_tree.children] == ["before", "x", "y", "after"]
    assert find_node_by_id(new_tree, "x").importance == pytest.approx(1.5)
    assert find_node_by_id(new_tree, "y").importance == pytest.approx(1.5)
    assert sum(c.importance for c in new_tree.children) == pytest.approx(total_before)
    assert find_node_by_id(new_tree, "p") is None


def test_promote_uneven_children_keeps_proportions(small_tree):
    new_tree, _, success = promote_children_in_tree(small_tree, "a")
    assert success
    # A(4) with A1(1) and A2(3)
    assert find_node_by_id(new_tree, "a1").importance == pytest.approx(1.0)
    assert find_node_by_id(new_tree, "a2").importance == pytest.approx(3.0)


def test_promote_zero_importance_children_split_evenly():
    tree = Node(
        id="root",
        title="Root",
        children=(
            Node(
                id="p",
                title="P",
                importance=2,
                children=(
                    Node(id="x", title="X", importance=0),
                    Node(id="y", title="Y", importance=0),
                    Node(id="z", title="Z", importance=0),
                ),
            ),
        ),
    )
    new_tree, _, _ = promote_children_in_tree(tree, "p")
    assert [c.importance for c in new_tree.children] == pytest.approx([2 / 3] * 3)


def test_promote_leaf_degrades_to_remove(small_tree):
    result = promote_children_in_tree(small_tree, "a1")
    assert result.success
    assert result.selected_id == "a"
    assert find_node_by_id(result.tree, "a1") is None


def test_promote_root_is_forbidden(small_tree):
    result = promote_children_in_tree(small_tree, "root")
    assert not result.success
    assert result.tree is small_tree


def test_promote_keeps_grandchildren(small_tree):
    new_tree, selected_id, _ = promote_children_in_tree(small_tree, "b1")
    assert selected_id == "b"
    assert [c.id for c in find_node_by_id(new_tree, "b").children] == ["b1a"]
    assert find_node_by_id(new_tree, "b1a").importance == pytest.approx(1.0)


def test_rebalance_shifts_siblings_proportionally():
    tree = Node(
        id="root",
        title="Root",
        children=(
            Node(id="a", title="A", importance=2),
            Node(id="b", title="B", importance=3),
            Node(id="c", title="C", importance=1),
        ),
    )
    a = find_node_by_id(tree, "a")
    new_tree = rebalance_importance(tree, Node(id="a", title=a.title, importance=4))

    # delta 2 is absorbed 3:1 by b and c
    assert find_node_by_id(new_tree, "a").importance == pytest.approx(4)
    assert find_node_by_id(new_tree, "b").importance == pytest.approx(1.5)
    assert find_node_by_id(new_tree, "c").importance == pytest.approx(0.5)
    assert sum(c.importance for c in new_tree.children) == pytest.approx(6)


def test_rebalance_clamps_at_floor():
    tree = Node(
        id="root",
        title="Root",
        children=(Node(id="a", title="A", importance=1), Node(id="b", title="B", importance=1)),
    )
    new_tree = rebalance_importance(tree, Node(id="a", title="A", importance=5), min_importance=0.1)
    assert find_node_by_id(new_tree, "b").importance == pytest.approx(0.1)


def test_rebalance_zero_delta_is_idempotent(small_tree):
    a = find_node_by_id(small_tree, "a")
    assert rebalance_importance(small_tree, a) is small_tree

    renamed = rebalance_importance(small_tree, Node(id="a", title="A+", importance=4, children=a.children))
    assert find_node_by_id(renamed, "a").title == "A+"
    assert find_node_by_id(renamed, "b").importance == 2


def test_importance_share(small_tree):
    assert importance_share(small_tree, "a") == pytest.approx(4 / 6)
    assert importance_share(small_tree, "root") == 1.0
    assert importance_share(small_tree, "ghost") == 0.0


def test_sorted_children_is_case_sensitive():
    node = Node(
        id="p",
        title="P",
        children=(Node(id="1", title="beta"), Node(id="2", title="Alpha"), Node(id="3", title="alpha")),
    )
    assert [c.title for c in sorted_children(node)] == ["Alpha", "alpha", "beta"]


def test_tree_height_and_deep_tree_walks():
    assert tree_height(SAMPLE_TREE) == 3

    node = Node(id="n5000", title="deepest")
    for i in range(4999, -1, -1):
        node = Node(id=f"n{i}", title=f"level {i}", children=(node,))
    assert tree_height(node) == 5000
    assert len(find_node_path(node, "n5000")) == 5001
    assert remove_node_from_tree(node, "n4000").success
