"""
设置数据模型

定义持久化的用户配置。
"""

from dataclasses import dataclass, field
from typing import Any, Dict

MODS_PATH_KEY = "tpf_mod_path"


@dataclass
class Settings:
    """
    用户配置

    mods_path 为空字符串表示尚未配置。extra 保存文件中的其他键，
    保存时原样写回，以兼容新版本增加的配置项。
    """

    mods_path: str = ""
    extra: Dict[str, Any] = field(default_factory=dict)

    @property
    def has_mods_path(self) -> bool:
        return bool(self.mods_path)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Settings":
        """从字典创建设置，mods 路径类型不对时抛出 TypeError"""
        extra = {k: v for k, v in data.items() if k != MODS_PATH_KEY}
        mods_path = data.get(MODS_PATH_KEY, "")
        if not isinstance(mods_path, str):
            raise TypeError(
                f"{MODS_PATH_KEY} 必须是字符串，实际为 {type(mods_path).__name__}"
            )
        return cls(mods_path=mods_path, extra=extra)

    def to_dict(self) -> Dict[str, Any]:
        data = dict(self.extra)
        data[MODS_PATH_KEY] = self.mods_path
        return data

    def with_mods_path(self, mods_path: str) -> "Settings":
        """返回修改了 mods 路径的新设置对象，原对象不变"""
        return Settings(mods_path=mods_path, extra=dict(self.extra))
