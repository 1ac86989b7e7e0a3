"""
Goal map application service.

Owns the undo/redo history and the navigation state (focused and selected
node) that the UI shell works with. Every edit goes through the tree store,
is committed to the history and persisted by it.
"""
from typing import List, Optional

from core.config_manager import SystemConfig, config
from core.exceptions import PersistenceError
from core.goal_tree.history import CommitResult, HistoryManager
from core.goal_tree.layout import layout
from core.goal_tree.models import MutationResult, Node, RenderNode
from core.goal_tree.sample import SAMPLE_TREE
from core.goal_tree.tree_store import (
    add_node_checked,
    find_node_by_id,
    find_node_path,
    new_node_id,
    promote_children_in_tree,
    rebalance_importance,
    remove_node_from_tree,
)
from core.logger import get_logger
from core.snapshot_store import SnapshotStore

logger = get_logger("goal_map_service")

DELETE_SUBTREE = "delete-subtree"
PROMOTE_CHILDREN = "promote-children"
DELETE_MODES = (DELETE_SUBTREE, PROMOTE_CHILDREN)


class GoalMapService:
    """Application service for the goal map shell."""

    def __init__(
        self,
        store: Optional[SnapshotStore] = None,
        settings: Optional[SystemConfig] = None,
        initial_tree: Optional[Node] = None,
    ):
        self.settings = settings or config
        self.store = store
        if initial_tree is None:
            initial_tree = store.load_tree() if store is not None else SAMPLE_TREE
        self.history = HistoryManager(
            initial_tree,
            capacity=self.settings.HISTORY_CAPACITY,
            store=store,
        )
        self.focused_node_id: str = initial_tree.id
        self.selected_node_id: Optional[str] = initial_tree.id
        self.width: float = self.settings.CHART_WIDTH
        self.height: float = self.settings.CHART_HEIGHT
        self.last_commit: Optional[CommitResult] = None

    # ---------------------------------------------------------------------
    # Views
    # ---------------------------------------------------------------------
    @property
    def tree(self) -> Node:
        return self.history.current

    @property
    def focused_node(self) -> Node:
        return find_node_by_id(self.tree, self.focused_node_id) or self.tree

    @property
    def selected_node(self) -> Optional[Node]:
        if not self.selected_node_id:
            return None
        return find_node_by_id(self.tree, self.selected_node_id)

    @property
    def is_zoomed(self) -> bool:
        return self.focused_node.id != self.tree.id

    def breadcrumbs(self) -> List[Node]:
        return find_node_path(self.tree, self.focused_node.id)

    def parent_of_selected(self) -> Optional[Node]:
        if not self.selected_node_id:
            return None
        path = find_node_path(self.tree, self.selected_node_id)
        return path[-2] if len(path) > 1 else None

    def render_nodes(self, width: Optional[float] = None, height: Optional[float] = None) -> List[RenderNode]:
        return layout(
            self.focused_node,
            width or self.width,
            height or self.height,
            self.is_zoomed,
            self.settings,
        )

    @property
    def persistence_warning(self) -> Optional[str]:
        if self.last_commit is None or self.last_commit.persisted:
            return None
        return self.last_commit.error.get_user_message()

    # ---------------------------------------------------------------------
    # Navigation
    # ---------------------------------------------------------------------
    def select(self, node_id: Optional[str]) -> bool:
        if node_id is not None and find_node_by_id(self.tree, node_id) is None:
            return False
        self.selected_node_id = node_id
        return True

    def focus(self, node_id: str) -> bool:
        if find_node_by_id(self.tree, node_id) is None:
            return False
        self.focused_node_id = node_id
        self.selected_node_id = node_id
        return True

    def focus_parent(self) -> bool:
        """Center hub click: step focus up one level."""
        path = self.breadcrumbs()
        if len(path) < 2:
            return False
        return self.focus(path[-2].id)

    # ---------------------------------------------------------------------
    # Edits
    # ---------------------------------------------------------------------
    def _commit(self, tree: Node) -> CommitResult:
        self.last_commit = self.history.commit(tree)
        return self.last_commit

    def add_child(self, parent_id: str, title: str = "New Subgoal") -> MutationResult:
        parent = find_node_by_id(self.tree, parent_id)
        if parent is None:
            return MutationResult(self.tree, None, False)
        new_node = Node(
            id=new_node_id(),
            title=title,
            importance=1,
            progress=0,
            color=parent.color,
        )
        result = add_node_checked(self.tree, parent_id, new_node)
        if result.success:
            self._commit(result.tree)
            self.selected_node_id = result.selected_id
        return result

    def add_sibling(self, sibling_id: str, title: str = "New Goal") -> MutationResult:
        path = find_node_path(self.tree, sibling_id)
        if len(path) < 2:
            return MutationResult(self.tree, None, False)
        parent = path[-2]
        new_node = Node(
            id=new_node_id(),
            title=title,
            importance=1,
            progress=0,
            color=parent.color,
        )
        result = add_node_checked(self.tree, parent.id, new_node)
        if result.success:
            self._commit(result.tree)
            self.selected_node_id = result.selected_id
        return result

    def update_node(self, updated_node: Node) -> bool:
        new_tree = rebalance_importance(self.tree, updated_node, self.settings.MIN_IMPORTANCE)
        if new_tree is self.tree:
            return False
        self._commit(new_tree)
        return True

    def delete_node(self, node_id: str, mode: str = DELETE_SUBTREE) -> MutationResult:
        if mode not in DELETE_MODES:
            raise ValueError(f"unknown delete mode: {mode}")

        focus_path_ids = [n.id for n in self.breadcrumbs()]
        if mode == PROMOTE_CHILDREN:
            result = promote_children_in_tree(self.tree, node_id)
        else:
            result = remove_node_from_tree(self.tree, node_id)

        if not result.success:
            return result

        self._commit(result.tree)
        if mode == DELETE_SUBTREE and node_id in focus_path_ids:
            self.focused_node_id = result.selected_id or result.tree.id
        elif mode == PROMOTE_CHILDREN and self.focused_node_id == node_id:
            self.focused_node_id = result.selected_id or result.tree.id
        self.selected_node_id = result.selected_id
        return result

    # ---------------------------------------------------------------------
    # History
    # ---------------------------------------------------------------------
    def _revalidate(self) -> None:
        tree = self.tree
        if find_node_by_id(tree, self.focused_node_id) is None:
            self.focused_node_id = tree.id
        if self.selected_node_id and find_node_by_id(tree, self.selected_node_id) is None:
            self.selected_node_id = self.focused_node_id

    def undo(self) -> Node:
        tree = self.history.undo()
        self._revalidate()
        return tree

    def redo(self) -> Node:
        tree = self.history.redo()
        self._revalidate()
        return tree

    def reset(self) -> CommitResult:
        """Drop the saved tree and start again from the sample tree."""
        if self.store is not None:
            try:
                self.store.clear()
            except PersistenceError as e:
                logger.warning("could not clear saved tree: %s", e.message)
        result = self._commit(SAMPLE_TREE)
        self.focused_node_id = SAMPLE_TREE.id
        self.selected_node_id = SAMPLE_TREE.id
        logger.info("goal map reset to the sample tree")
        return result
