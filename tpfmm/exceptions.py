"""
TPF-ModManager 统一异常体系

提供分层的异常结构，支持错误代码、错误类别、上下文信息和字典序列化。
"""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(Enum):
    """错误类别"""

    NOT_FOUND = "NotFound"  # 路径或模组 ID 不存在
    NOT_ACCESSIBLE = "NotAccessible"  # 权限或 IO 问题
    LOOKS_WRONG = "LooksWrong"  # 目录名不像 mods 目录（建议性）
    PERSISTENCE_ERROR = "PersistenceError"  # 设置写入失败
    SCAN_ERROR = "ScanError"  # 整个目录扫描失败
    MUTATION_ERROR = "MutationError"  # 启用/禁用/排序写入失败
    INVALID_PERMUTATION = "InvalidPermutation"
    NO_PATH_CONFIGURED = "NoPathConfigured"


class TpfModManagerError(Exception):
    """TPF-ModManager 基础异常类"""

    default_kind: Optional[ErrorKind] = None

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        kind: Optional[ErrorKind] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self._get_default_code()
        self.context = context or {}
        self.kind = kind or self.default_kind

    def _get_default_code(self) -> str:
        """获取默认错误代码"""
        return "E000"

    def to_dict(self) -> Dict[str, Any]:
        """将异常转换为字典格式"""
        return {
            "error": True,
            "code": self.code,
            "kind": self.kind.value if self.kind else None,
            "message": self.message,
            "context": self.context,
            "type": self.__class__.__name__,
        }

    def __str__(self) -> str:
        if self.code:
            return f"[{self.code}] {self.message}"
        return self.message


class ModsPathError(TpfModManagerError):
    """mods 目录校验错误"""

    def __init__(
        self,
        message: str,
        path: Optional[str] = None,
        code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, code, context)
        self.path = path
        if path is not None:
            self.context.setdefault("path", str(path))

    def _get_default_code(self) -> str:
        return "E100"


class ModsPathNotFoundError(ModsPathError):
    """路径不存在或不是目录"""

    default_kind = ErrorKind.NOT_FOUND

    def _get_default_code(self) -> str:
        return "E101"


class ModsPathNotAccessibleError(ModsPathError):
    """路径不可读或无法列出"""

    default_kind = ErrorKind.NOT_ACCESSIBLE

    def _get_default_code(self) -> str:
        return "E102"


class ModsPathLooksWrongError(ModsPathError):
    """
    路径看起来不是游戏的 mods 目录

    这是建议性错误：path 中保存了规范化后的路径，调用方可以选择继续使用。
    """

    default_kind = ErrorKind.LOOKS_WRONG

    def _get_default_code(self) -> str:
        return "E103"


class PersistenceError(TpfModManagerError):
    """设置文件写入失败"""

    default_kind = ErrorKind.PERSISTENCE_ERROR

    def _get_default_code(self) -> str:
        return "E200"


class ScanError(TpfModManagerError):
    """mods 目录扫描失败（仅限整个目录级别的失败）"""

    default_kind = ErrorKind.SCAN_ERROR

    def _get_default_code(self) -> str:
        return "E300"


class MetadataError(TpfModManagerError):
    """单个模组元数据解析失败，不会导致整个扫描失败"""

    def _get_default_code(self) -> str:
        return "E310"


class MutationError(TpfModManagerError):
    """启用、禁用或排序写入失败"""

    default_kind = ErrorKind.MUTATION_ERROR

    def _get_default_code(self) -> str:
        return "E400"


class ModNotFoundError(MutationError):
    """当前目录中不存在该模组 ID"""

    default_kind = ErrorKind.NOT_FOUND

    def __init__(self, mod_id: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(f"模组不存在: {mod_id}（请先刷新列表）", context=context)
        self.mod_id = mod_id
        self.context.setdefault("id", mod_id)

    def _get_default_code(self) -> str:
        return "E404"


class InvalidPermutationError(MutationError):
    """新顺序不是当前模组 ID 的一个排列"""

    default_kind = ErrorKind.INVALID_PERMUTATION

    def _get_default_code(self) -> str:
        return "E409"


class NoPathConfiguredError(TpfModManagerError):
    """尚未配置 mods 目录"""

    default_kind = ErrorKind.NO_PATH_CONFIGURED

    def _get_default_code(self) -> str:
        return "E500"


__all__ = [
    "ErrorKind",
    # 基础异常
    "TpfModManagerError",
    # 路径异常
    "ModsPathError",
    "ModsPathNotFoundError",
    "ModsPathNotAccessibleError",
    "ModsPathLooksWrongError",
    # 持久化异常
    "PersistenceError",
    # 扫描异常
    "ScanError",
    "MetadataError",
    # 修改异常
    "MutationError",
    "ModNotFoundError",
    "InvalidPermutationError",
    # 配置异常
    "NoPathConfiguredError",
]
