"""
Configuration Manager for the Goal Map.

集中管理布局常量和运行参数。
所有经验值都显式声明，并可通过 config/runtime.yaml 覆盖。

使用方式:
    from core.config_manager import config
    capacity = config.HISTORY_CAPACITY
"""
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import yaml

from core.exceptions import ConfigError


CONFIG_DIR = Path(__file__).parent.parent / "config"
RUNTIME_CONFIG_PATH = CONFIG_DIR / "runtime.yaml"


@dataclass
class SystemConfig:
    """
    Goal Map 运行时常量配置。

    所有值均为经验值，可根据显示设备调整。
    """

    # === 树 ===

    # 根节点的固定 id，永远不可删除
    ROOT_ID: str = "root"

    # 重要性下限（兄弟节点再平衡时的夹紧值）
    MIN_IMPORTANCE: float = 0.1

    # === 画布 ===

    CHART_WIDTH: int = 800
    CHART_HEIGHT: int = 800

    # 外圈与画布边缘的留白 (px)
    CHART_MARGIN: int = 10

    # 中心 "返回" 圆盘半径 (px)
    CENTER_RADIUS: int = 30

    # === 深度限制 ===

    # 总览模式最多显示的环数
    # 调整建议：大屏可增至 4
    MAX_DEPTH_OVERVIEW: int = 3

    # 放大（聚焦子树）模式最多显示的环数
    MAX_DEPTH_ZOOMED: int = 5

    # 可接受的最小环厚度 (px)，低于此值时减少显示层数
    MIN_RING_THICKNESS: int = 24

    # === 延续条 (continuation sliver) ===

    # 可放下一个标签的最小弧长 (px)；父弧长小于其两倍时合并为一条
    MIN_LABEL_PX: int = 12

    # 延续条厚度 (px)
    SLIVER_THICKNESS: int = 6

    # 相邻延续条之间的间隙 (px)
    SLIVER_GAP_PX: int = 2

    # 小于此弧长 (px) 的延续条直接丢弃
    MIN_SLIVER_ARC_PX: int = 2

    # === 历史 ===

    # 撤销栈容量
    HISTORY_CAPACITY: int = 50

    # 聚焦切换动画时长 (ms)，由宿主界面使用
    TRANSITION_DURATION_MS: int = 350

    # === 存储 ===

    STORAGE_KEY: str = "goal_map.tree"

    # 按深度取色的调色板
    PALETTE: tuple = None

    def __post_init__(self):
        if self.PALETTE is None:
            self.PALETTE = (
                "#5B21B6",  # Violet
                "#1D4ED8",  # Blue
                "#047857",  # Emerald
                "#BE123C",  # Rose
                "#D97706",  # Amber
                "#6D28D9",  # Deep Violet
                "#2563EB",  # Bright Blue
                "#059669",  # Bright Emerald
                "#E11D48",  # Bright Rose
                "#F59E0B",  # Bright Amber
            )
        else:
            self.PALETTE = tuple(self.PALETTE)


def _load_runtime_config(path: Path) -> dict:
    """加载运行时配置覆盖（如果存在）。"""
    if not path.exists():
        return {}

    try:
        with open(path, "r", encoding="utf-8") as f:
            return yaml.safe_load(f) or {}
    except (yaml.YAMLError, OSError):
        return {}


def validate_config(cfg: SystemConfig, config_path: Optional[str] = None) -> SystemConfig:
    """Reject values the layout and history code cannot work with."""
    if cfg.HISTORY_CAPACITY < 1:
        raise ConfigError("HISTORY_CAPACITY must be at least 1", config_path)
    if not cfg.PALETTE:
        raise ConfigError("PALETTE must contain at least one color", config_path)
    if cfg.MAX_DEPTH_OVERVIEW < 1 or cfg.MAX_DEPTH_ZOOMED < 1:
        raise ConfigError("depth caps must be at least 1", config_path)
    if cfg.MIN_RING_THICKNESS <= 0:
        raise ConfigError("MIN_RING_THICKNESS must be positive", config_path)
    if cfg.MIN_IMPORTANCE <= 0:
        raise ConfigError("MIN_IMPORTANCE must be positive", config_path)
    return cfg


def get_config(path: Optional[Path] = None) -> SystemConfig:
    """
    获取系统配置实例。

    优先级：runtime.yaml > 默认值
    """
    config_path = path or RUNTIME_CONFIG_PATH
    base = SystemConfig()
    overrides = _load_runtime_config(config_path)

    for key, value in overrides.items():
        if hasattr(base, key):
            setattr(base, key, value)
    if "PALETTE" in overrides:
        base.PALETTE = tuple(base.PALETTE or ())

    return validate_config(base, str(config_path))


# 全局配置实例（单例模式）
config = get_config()
