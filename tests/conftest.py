import os
import sys
from pathlib import Path

import pytest


PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

# Keep tests away from the real data directory.
os.environ.setdefault("GOAL_MAP_DATA_DIR", str(PROJECT_ROOT / ".pytest_data"))

from core.goal_tree.models import Node  # noqa: E402


def leaf(node_id, title=None, importance=1.0, progress=0.0, **kwargs):
    return Node(id=node_id, title=title or node_id, importance=importance, progress=progress, **kwargs)


@pytest.fixture
def small_tree():
    """root -> A(4) [A1, A2], B(2) [B1 -> B1a]."""
    return Node(
        id="root",
        title="Root",
        importance=1,
        progress=0.1,
        children=(
            Node(
                id="a",
                title="A",
                importance=4,
                progress=0.5,
                children=(leaf("a1", "A1", 1, 1.0), leaf("a2", "A2", 3, 0.0)),
            ),
            Node(
                id="b",
                title="B",
                importance=2,
                progress=0.2,
                children=(
                    Node(id="b1", title="B1", importance=1, progress=0.3,
                         children=(leaf("b1a", "B1a", 1, 0.6),)),
                ),
            ),
        ),
    )
