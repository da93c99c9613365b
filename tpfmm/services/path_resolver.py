"""
mods 目录校验服务

校验用户选择的路径是否可以作为游戏的 mods 目录，并返回规范化后的路径。
"""

import os
from pathlib import Path
from typing import Union

from tpfmm.exceptions import (
    ModsPathLooksWrongError,
    ModsPathNotAccessibleError,
    ModsPathNotFoundError,
)
from tpfmm.utils import normalize_path

MODS_DIR_NAME = "mods"


class ModDirectoryResolver:
    """mods 目录校验器，无副作用"""

    def __init__(self, expected_name: str = MODS_DIR_NAME):
        self.expected_name = expected_name

    def normalize(self, candidate: Union[str, Path]) -> Path:
        return normalize_path(candidate)

    def looks_like_mods_dir(self, path: Union[str, Path]) -> bool:
        """最后一级目录名是否为 mods（大小写规则跟随当前平台）"""
        name = Path(path).name
        return os.path.normcase(name) == os.path.normcase(self.expected_name)

    def validate(self, candidate: Union[str, Path]) -> Path:
        """
        校验候选路径

        按顺序检查，遇到第一个失败即停止：
        1. 路径存在且是目录
        2. 路径可读且可列出
        3. 最后一级目录名为 mods

        Args:
            candidate: 用户选择的路径

        Returns:
            规范化后的绝对路径

        Raises:
            ModsPathNotFoundError: 路径不存在或不是目录
            ModsPathNotAccessibleError: 路径不可读
            ModsPathLooksWrongError: 目录名不像 mods 目录，path 属性为规范化后的路径
        """
        if candidate is None or not str(candidate).strip():
            raise ModsPathNotFoundError("未选择 mods 目录", path="")

        path = self.normalize(candidate)

        if not path.is_dir():
            raise ModsPathNotFoundError(f"目录不存在: {path}", path=str(path))

        if not os.access(path, os.R_OK | os.X_OK):
            raise ModsPathNotAccessibleError(f"目录不可读: {path}", path=str(path))
        try:
            with os.scandir(path) as it:
                next(it, None)
        except OSError as e:
            raise ModsPathNotAccessibleError(
                f"无法列出目录 {path}: {e}", path=str(path)
            ) from e

        if not self.looks_like_mods_dir(path):
            raise ModsPathLooksWrongError(
                f"'{path}' 看起来不是 Transport Fever 的 'mods' 文件夹",
                path=str(path),
            )

        return path
