"""
Goal Map 异常定义模块。

定义系统中所有自定义异常的层次结构：
- GoalMapError: 基类，所有已知错误
- ConfigError: 配置文件错误
- PersistenceError: 快照存储读写失败
- SnapshotError: 已保存的快照格式非法

树操作本身不抛异常（找不到节点、删除根节点等都通过返回值表达），
这里只覆盖外部协作者（存储、配置）带来的错误。
"""
from typing import Optional


class GoalMapError(Exception):
    """Goal Map 基础异常类。

    所有系统内已知错误都继承自此类。
    捕获此类可以处理所有预期的错误情况。
    """

    def __init__(self, message: str, hint: Optional[str] = None):
        """
        Args:
            message: 错误描述
            hint: 对用户的操作建议
        """
        super().__init__(message)
        self.message = message
        self.hint = hint

    def get_user_message(self) -> str:
        """返回用户友好的错误消息。"""
        if self.hint:
            return f"{self.message}\n💡 建议: {self.hint}"
        return self.message


class ConfigError(GoalMapError):
    """配置文件错误。

    当配置文件内容非法时抛出。
    """

    def __init__(self, message: str, config_path: Optional[str] = None):
        hint = f"请检查配置文件: {config_path}" if config_path else "请检查配置文件格式"
        super().__init__(message, hint)
        self.config_path = config_path


class PersistenceError(GoalMapError):
    """快照存储读写失败。

    内存中的树不受影响，但修改可能在重新加载后丢失。
    """

    def __init__(self, message: str, key: Optional[str] = None):
        hint = "Changes are kept in memory but may not survive a reload"
        super().__init__(message, hint)
        self.key = key


class SnapshotError(GoalMapError):
    """已保存的快照无法解析为目标树。"""

    def __init__(self, message: str, raw: Optional[str] = None):
        hint = "The built-in sample tree will be used instead"
        super().__init__(message, hint)
        self.raw = raw
