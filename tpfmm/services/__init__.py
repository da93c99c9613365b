"""
TPF-ModManager 服务层

包含业务逻辑服务：设置存储、目录校验、元数据读取、模组目录。
"""

from tpfmm.services.settings_store import SettingsStore
from tpfmm.services.path_resolver import ModDirectoryResolver
from tpfmm.services.metadata import ModMetadataReader
from tpfmm.services.registry import ModRegistry

__all__ = [
    "SettingsStore",
    "ModDirectoryResolver",
    "ModMetadataReader",
    "ModRegistry",
]
