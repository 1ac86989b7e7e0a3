"""
Snapshot Store for the Goal Map.

Persists the current goal tree under a single key of a key-value backend.
The backend is injectable (get/set/remove on string keys and values) so the
engine and its tests never depend on a concrete storage location.

Loading is forgiving: a missing, unreadable or malformed snapshot yields the
built-in sample tree.
"""
import json
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Optional

from core.config_manager import config
from core.exceptions import PersistenceError, SnapshotError
from core.goal_tree.models import Node, dict_to_node, node_to_dict
from core.goal_tree.sample import SAMPLE_TREE
from core.logger import get_logger
from core.paths import STORE_PATH

logger = get_logger("snapshot_store")


class KeyValueStore(ABC):
    """String key -> string value backend."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        pass

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        pass

    @abstractmethod
    def remove(self, key: str) -> None:
        pass


class InMemoryKeyValueStore(KeyValueStore):
    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)


class JsonFileKeyValueStore(KeyValueStore):
    """All keys in one JSON object on disk (default: data/goal_map_store.json)."""

    def __init__(self, path: Optional[Path] = None):
        self._path = path if path is not None else STORE_PATH

    @property
    def path(self) -> Path:
        return self._path

    def _read_all(self) -> Dict[str, str]:
        if not self._path.exists():
            return {}
        try:
            with open(self._path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, UnicodeDecodeError, RecursionError):
            logger.warning("store file %s is not valid UTF-8 JSON, ignoring it", self._path)
            return {}
        except OSError as e:
            raise PersistenceError(f"cannot read {self._path}: {e}") from e
        return data if isinstance(data, dict) else {}

    def _write_all(self, data: Dict[str, str], key: str) -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False, indent=2)
            tmp_path.replace(self._path)
        except OSError as e:
            raise PersistenceError(f"cannot write {self._path}: {e}", key=key) from e

    def get(self, key: str) -> Optional[str]:
        value = self._read_all().get(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        data = self._read_all()
        data[key] = value
        self._write_all(data, key)

    def remove(self, key: str) -> None:
        data = self._read_all()
        if key in data:
            del data[key]
            self._write_all(data, key)


def validate_snapshot(data: object) -> dict:
    """Minimal shape check: the root must have id, title and a children list."""
    if not isinstance(data, dict):
        raise SnapshotError("snapshot root is not an object")
    if "id" not in data or "title" not in data:
        raise SnapshotError("snapshot root is missing id or title")
    if not isinstance(data.get("children"), list):
        raise SnapshotError("snapshot root has no children list")
    return data


def parse_snapshot(raw: str) -> Node:
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise SnapshotError(f"snapshot is not valid JSON: {e}", raw=raw) from e
    except RecursionError as e:
        raise SnapshotError("snapshot is nested too deeply to decode", raw=raw) from e
    validate_snapshot(data)
    try:
        return dict_to_node(data)
    except (KeyError, TypeError) as e:
        raise SnapshotError(f"snapshot contains a malformed node: {e}", raw=raw) from e


class SnapshotStore:
    """Load/save the goal tree under config.STORAGE_KEY."""

    def __init__(self, backend: Optional[KeyValueStore] = None, key: Optional[str] = None):
        self.backend = backend if backend is not None else JsonFileKeyValueStore()
        self.key = key or config.STORAGE_KEY

    def load_tree(self, default: Optional[Node] = None) -> Node:
        fallback = default if default is not None else SAMPLE_TREE
        try:
            raw = self.backend.get(self.key)
        except PersistenceError as e:
            logger.warning("could not read saved tree, using sample: %s", e.message)
            return fallback
        if raw is None:
            return fallback
        try:
            return parse_snapshot(raw)
        except SnapshotError as e:
            logger.warning("saved tree rejected, using sample: %s", e.message)
            return fallback

    def save_tree(self, tree: Node) -> None:
        try:
            raw = json.dumps(node_to_dict(tree), ensure_ascii=False)
        except (RecursionError, ValueError) as e:
            raise PersistenceError(f"cannot encode tree: {e}", key=self.key) from e
        try:
            self.backend.set(self.key, raw)
        except PersistenceError as e:
            e.key = e.key or self.key
            raise
        except OSError as e:
            raise PersistenceError(f"cannot save tree: {e}", key=self.key) from e

    def clear(self) -> None:
        try:
            self.backend.remove(self.key)
        except OSError as e:
            raise PersistenceError(f"cannot clear saved tree: {e}", key=self.key) from e
