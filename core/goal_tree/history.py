"""
History Manager: bounded undo/redo log of tree snapshots.

Every commit stores a whole tree. Trees are immutable and share unchanged
subtrees, so consecutive entries cost little more than the edited path.
"""
from typing import List, NamedTuple, Optional, TYPE_CHECKING

from core.config_manager import config
from core.exceptions import PersistenceError
from core.goal_tree.models import Node
from core.logger import get_logger

if TYPE_CHECKING:
    from core.snapshot_store import SnapshotStore

logger = get_logger("history")


class CommitResult(NamedTuple):
    index: int
    persisted: bool
    error: Optional[PersistenceError] = None


class HistoryManager:
    """
    Ordered snapshots plus a cursor.

    commit() drops any redo tail, appends, and trims the oldest entries past
    capacity. The entry under the cursor is never trimmed.
    """

    def __init__(
        self,
        initial_tree: Node,
        capacity: Optional[int] = None,
        store: Optional["SnapshotStore"] = None,
    ):
        self.capacity = capacity if capacity is not None else config.HISTORY_CAPACITY
        if self.capacity < 1:
            raise ValueError("history capacity must be at least 1")
        self.store = store
        self._entries: List[Node] = [initial_tree]
        self._index = 0

    @property
    def entries(self) -> List[Node]:
        return list(self._entries)

    @property
    def current_index(self) -> int:
        return self._index

    @property
    def current(self) -> Node:
        return self._entries[self._index]

    @property
    def can_undo(self) -> bool:
        return self._index > 0

    @property
    def can_redo(self) -> bool:
        return self._index < len(self._entries) - 1

    def __len__(self) -> int:
        return len(self._entries)

    def commit(self, new_tree: Node) -> CommitResult:
        del self._entries[self._index + 1:]
        self._entries.append(new_tree)
        self._index = len(self._entries) - 1

        overflow = len(self._entries) - self.capacity
        if overflow > 0:
            del self._entries[:overflow]
            self._index -= overflow
            logger.debug("history trimmed %d oldest entries", overflow)

        if self.store is None:
            return CommitResult(self._index, True)
        try:
            self.store.save_tree(new_tree)
        except PersistenceError as e:
            # 内存中的提交保留，只把失败报告给调用方
            logger.warning("commit kept in memory, persistence failed: %s", e.message)
            return CommitResult(self._index, False, e)
        return CommitResult(self._index, True)

    def undo(self) -> Node:
        if self._index > 0:
            self._index -= 1
        return self.current

    def redo(self) -> Node:
        if self._index < len(self._entries) - 1:
            self._index += 1
        return self.current
