"""Built-in sample tree, used on first start and whenever a saved tree is unusable."""
from core.config_manager import config
from core.goal_tree.models import Node


def _leaf(node_id: str, title: str, importance: float, progress: float) -> Node:
    return Node(id=node_id, title=title, importance=importance, progress=progress)


SAMPLE_TREE = Node(
    id=config.ROOT_ID,
    title="Annual Company Goals",
    importance=1,
    progress=0.3,
    children=(
        Node(
            id="product",
            title="Product Development",
            importance=4,
            progress=0.5,
            children=(
                _leaf("feat1", "Feature A Launch", 3, 0.8),
                _leaf("feat2", "Feature B R&D", 2, 0.3),
                Node(
                    id="ux",
                    title="UX Overhaul",
                    importance=1,
                    progress=0.4,
                    children=(
                        _leaf("ux-research", "User Research", 1, 0.9),
                        _leaf("ux-design", "Design System Update", 1, 0.2),
                    ),
                ),
            ),
        ),
        Node(
            id="marketing",
            title="Marketing & Sales",
            importance=3,
            progress=0.2,
            children=(
                _leaf("campaign", "Q3 Campaign", 2, 0.1),
                _leaf("seo", "SEO Improvement", 1, 0.5),
                _leaf("sales-team", "Expand Sales Team", 2, 0.0),
            ),
        ),
        Node(
            id="hr",
            title="Human Resources",
            importance=2,
            progress=0.7,
            children=(
                _leaf("hiring", "Hire 10 Engineers", 1, 0.9),
                _leaf("culture", "Improve Company Culture", 1, 0.5),
            ),
        ),
    ),
)
