"""
Goal Map logging.

All records go through the "goal_map" logger namespace:
- <logs>/system.log  INFO+ (commits, resets, rejected snapshots)
- <logs>/error.log   ERROR+
- stderr             WARNING+ (persistence problems the user should see)

The logs directory defaults to <project_root>/logs and can be moved with
GOAL_MAP_LOG_DIR; GOAL_MAP_LOG_LEVEL overrides the file level by name.
"""
import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional, Union

LOGS_DIR = Path(__file__).parent.parent / "logs"

ROOT_LOGGER_NAME = "goal_map"

FILE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
CONSOLE_FORMAT = "[%(levelname)s] %(message)s"

MAX_BYTES = 5 * 1024 * 1024
BACKUP_COUNT = 3


def resolve_logs_dir(logs_dir: Optional[Path] = None) -> Path:
    if logs_dir is not None:
        return logs_dir
    raw = os.getenv("GOAL_MAP_LOG_DIR", "").strip()
    return Path(raw).expanduser() if raw else LOGS_DIR


def resolve_level(level: Union[int, str, None], default: int) -> int:
    """Accept a logging constant or a level name ("debug", "WARNING")."""
    if level is None:
        return default
    if isinstance(level, int):
        return level
    value = logging.getLevelName(level.strip().upper())
    return value if isinstance(value, int) else default


def _rotating(path: Path, level: int, formatter: logging.Formatter) -> RotatingFileHandler:
    handler = RotatingFileHandler(path, maxBytes=MAX_BYTES, backupCount=BACKUP_COUNT, encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def setup_logging(
    log_level: Union[int, str, None] = None,
    console_level: int = logging.WARNING,
    logs_dir: Optional[Path] = None,
) -> logging.Logger:
    """
    初始化 goal_map 日志。可重复调用：旧 handler 会先关闭再替换。

    Args:
        log_level: system.log 的级别，缺省取 GOAL_MAP_LOG_LEVEL，再缺省为 INFO
        console_level: stderr 级别
        logs_dir: 日志目录，缺省取 GOAL_MAP_LOG_DIR 或 <project_root>/logs
    """
    target_dir = resolve_logs_dir(logs_dir)
    target_dir.mkdir(parents=True, exist_ok=True)
    file_level = resolve_level(
        log_level if log_level is not None else os.getenv("GOAL_MAP_LOG_LEVEL"),
        logging.INFO,
    )

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(logging.DEBUG)
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)

    file_format = logging.Formatter(FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
    logger.addHandler(_rotating(target_dir / "system.log", file_level, file_format))
    logger.addHandler(_rotating(target_dir / "error.log", logging.ERROR, file_format))

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(console_level)
    console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    logger.addHandler(console_handler)

    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """goal_map.<name>, e.g. get_logger("history")."""
    if name:
        return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")
    return logging.getLogger(ROOT_LOGGER_NAME)
