"""
模组数据模型

定义模组元数据和目录中的模组条目。
"""

import re
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

# Transport Fever 的模组目录命名惯例: <作者>_<名称>_<主版本号>
MAJOR_VERSION_PATTERN = re.compile(r"_(\d+)$")


@dataclass
class ModInfo:
    """从 mod.lua 的 info 表中读取的元数据"""

    name: Optional[str] = None
    description: str = ""
    minor_version: Optional[int] = None
    authors: Tuple[str, ...] = ()
    tags: Tuple[str, ...] = ()
    severity_add: Optional[str] = None
    severity_remove: Optional[str] = None


@dataclass
class ModEntry:
    """
    mods 目录中的一个模组包。

    id 是包在 mods 目录中的文件名或目录名，在同一个目录中唯一。
    """

    id: str
    display_name: str
    source_path: Path
    enabled: bool = False
    load_order: int = 0
    is_archive: bool = False
    description: str = ""
    authors: Tuple[str, ...] = ()
    tags: Tuple[str, ...] = ()
    minor_version: Optional[int] = None
    severity_add: Optional[str] = None
    severity_remove: Optional[str] = None
    metadata_error: Optional[str] = field(default=None, compare=False)

    @property
    def major_version(self) -> Optional[int]:
        """从目录名后缀 _<n> 解析的主版本号"""
        stem = self.id[: -len(".zip")] if self.is_archive else self.id
        match = MAJOR_VERSION_PATTERN.search(stem)
        return int(match.group(1)) if match else None

    @property
    def version(self) -> Optional[str]:
        if self.major_version is None:
            return None
        return f"{self.major_version}.{self.minor_version or 0}"

    def copy(self) -> "ModEntry":
        return replace(self)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.display_name,
            "path": str(self.source_path),
            "enabled": self.enabled,
            "load_order": self.load_order,
            "archive": self.is_archive,
            "version": self.version,
            "description": self.description,
            "authors": list(self.authors),
            "tags": list(self.tags),
            "severity_add": self.severity_add,
            "severity_remove": self.severity_remove,
        }
