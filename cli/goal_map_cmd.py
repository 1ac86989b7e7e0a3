"""
CLI 命令：goalmap
查看目标树、打印布局、恢复示例数据
"""
import click
import sys
from pathlib import Path
from typing import Optional

# 添加项目根目录到 sys.path，以便导入 core 模块
project_root = Path(__file__).parent.parent
sys.path.append(str(project_root))

from core.config_manager import config
from core.exceptions import PersistenceError
from core.goal_tree.layout import layout as compute_layout
from core.goal_tree.progress import rollup_map
from core.goal_tree.sample import SAMPLE_TREE
from core.goal_tree.tree_store import find_node_by_id, sorted_children
from core.snapshot_store import JsonFileKeyValueStore, SnapshotStore


def _open_store(store_path: Optional[str]) -> SnapshotStore:
    backend = JsonFileKeyValueStore(Path(store_path)) if store_path else JsonFileKeyValueStore()
    return SnapshotStore(backend)


@click.group()
@click.option("--store", "store_path", default=None, help="Path of the JSON store file")
@click.pass_context
def goalmap(ctx, store_path):
    """Radial Goal Map 管理命令"""
    ctx.ensure_object(dict)
    ctx.obj["store"] = _open_store(store_path)


@goalmap.command()
@click.pass_context
def show(ctx):
    """按层级打印目标树及汇总进度"""
    tree = ctx.obj["store"].load_tree()
    rollups = rollup_map(tree)

    stack = [(tree, 0)]
    while stack:
        node, depth = stack.pop()
        pct = round(rollups[node.id] * 100)
        click.echo(f"{'  ' * depth}- {node.title} [{node.id}] importance={node.importance:g} progress={pct}%")
        for child in reversed(sorted_children(node)):
            stack.append((child, depth + 1))


@goalmap.command()
@click.option("--width", default=config.CHART_WIDTH, show_default=True, type=float)
@click.option("--height", default=config.CHART_HEIGHT, show_default=True, type=float)
@click.option("--focus", "focus_id", default=None, help="Node id to use as the center")
@click.pass_context
def layout(ctx, width, height, focus_id):
    """打印聚焦子树的渲染记录"""
    tree = ctx.obj["store"].load_tree()
    focused = tree
    if focus_id:
        focused = find_node_by_id(tree, focus_id)
        if focused is None:
            click.echo(f"❌ 错误: 节点不存在: {focus_id}", err=True)
            ctx.exit(1)

    nodes = compute_layout(focused, width, height, is_zoomed_in=focused.id != tree.id)
    click.echo("depth  theta0  theta1      r0      r1  progress  collapsed  id")
    for rn in nodes:
        click.echo(
            f"{rn.depth:>5}  {rn.theta0:6.3f}  {rn.theta1:6.3f}  {rn.r0:6.1f}  {rn.r1:6.1f}"
            f"  {rn.display_progress:8.2f}  {'yes' if rn.has_collapsed_children else 'no':>9}  {rn.node_id}"
        )


@goalmap.command()
@click.confirmation_option(prompt="Discard the saved goal tree and restore the sample?")
@click.pass_context
def reset(ctx):
    """清除已保存的目标树，恢复示例数据"""
    store = ctx.obj["store"]
    try:
        store.clear()
        store.save_tree(SAMPLE_TREE)
    except PersistenceError as e:
        click.echo(f"❌ {e.get_user_message()}", err=True)
        ctx.exit(1)
    click.echo("✅ 已恢复示例目标树")


if __name__ == "__main__":
    goalmap()
