"""
TPF-ModManager 数据模型包

包含设置、模组条目和操作结果定义。
"""

from tpfmm.models.settings import Settings, MODS_PATH_KEY
from tpfmm.models.mod import ModInfo, ModEntry
from tpfmm.models.result import OperationResult

__all__ = [
    # 设置
    "Settings",
    "MODS_PATH_KEY",
    # 模组
    "ModInfo",
    "ModEntry",
    # 结果
    "OperationResult",
]
