"""
TPF-ModManager

Transport Fever 模组管理核心：定位 mods 目录、发现模组、维护启用状态和加载顺序。
"""

__version__ = "0.1.0a5"

from tpfmm.manager import ModManager
from tpfmm.models import ModEntry, OperationResult, Settings
from tpfmm.exceptions import ErrorKind, TpfModManagerError

__all__ = [
    "__version__",
    "ModManager",
    "ModEntry",
    "OperationResult",
    "Settings",
    "ErrorKind",
    "TpfModManagerError",
]
