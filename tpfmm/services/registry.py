"""
模组目录服务

扫描 mods 目录，维护内存中的模组列表，并负责启用、禁用和排序。

磁盘上的约定（均为 UTF-8 纯文本，每行一个模组 ID，# 开头为注释）：
- .tpfmm_enabled: 已启用的模组，是启用状态的唯一来源，缺失时全部视为禁用
- .tpfmm_load_order: 加载顺序，缺失时使用发现顺序

扫描从不修改文件系统。修改操作先写磁盘再改内存，磁盘写入失败时内存保持不变。
"""

import os
import zipfile
from collections import Counter
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Union

from loguru import logger

from tpfmm.exceptions import (
    ErrorKind,
    InvalidPermutationError,
    MetadataError,
    ModNotFoundError,
    MutationError,
    NoPathConfiguredError,
    ScanError,
)
from tpfmm.models import ModEntry, ModInfo
from tpfmm.services.metadata import MOD_LUA, STRINGS_LUA, ModMetadataReader
from tpfmm.utils import is_listable_id, normalize_path, read_id_list, write_id_list

ENABLED_FILENAME = ".tpfmm_enabled"
ORDER_FILENAME = ".tpfmm_load_order"
ARCHIVE_SUFFIXES = (".zip",)

_ENABLED_HEADER = "TPF-ModManager: 已启用的模组，每行一个 ID"
_ORDER_HEADER = "TPF-ModManager: 模组加载顺序，每行一个 ID"


def discovery_key(entry: ModEntry):
    """发现顺序：先按 ID 忽略大小写排序，再按路径"""
    return entry.id.casefold(), str(entry.source_path)


def find_archive_root(names: Iterable[str]) -> Optional[str]:
    """
    在压缩包中定位 mod.lua

    Returns:
        mod.lua 所在目录的前缀（根目录为空字符串），找不到时返回 None
    """
    names = list(names)
    if MOD_LUA in names:
        return ""
    roots = {
        name.split("/", 1)[0]
        for name in names
        if name.count("/") == 1 and name.endswith("/" + MOD_LUA)
    }
    if len(roots) == 1:
        return roots.pop() + "/"
    return None


class ModRegistry:
    """模组目录"""

    def __init__(self, metadata_reader: Optional[ModMetadataReader] = None):
        self.metadata_reader = metadata_reader or ModMetadataReader()
        self._mods_path: Optional[Path] = None
        self._entries: List[ModEntry] = []

    @property
    def mods_path(self) -> Optional[Path]:
        """当前模组列表所对应的 mods 目录，尚未扫描时为 None"""
        return self._mods_path

    # ------------------------------------------------------------------
    # 扫描
    # ------------------------------------------------------------------

    def discover(self, mods_path: Union[str, Path]) -> List[ModEntry]:
        """
        扫描 mods 目录但不更新当前模组列表

        Args:
            mods_path: 已校验的 mods 目录

        Returns:
            按加载顺序排列的模组列表

        Raises:
            ScanError: 目录不存在或无法读取
        """
        path = normalize_path(mods_path)
        logger.debug(f"扫描 mods 目录: {path}")

        try:
            with os.scandir(path) as it:
                children = list(it)
        except (FileNotFoundError, NotADirectoryError) as e:
            raise ScanError(
                f"mods 目录不存在: {path}",
                context={"path": str(path)},
                kind=ErrorKind.NOT_FOUND,
            ) from e
        except OSError as e:
            raise ScanError(
                f"无法读取 mods 目录 {path}: {e}",
                context={"path": str(path)},
                kind=ErrorKind.NOT_ACCESSIBLE,
            ) from e

        try:
            enabled_ids = set(read_id_list(path / ENABLED_FILENAME))
            saved_order = read_id_list(path / ORDER_FILENAME)
        except (OSError, UnicodeDecodeError) as e:
            raise ScanError(
                f"无法读取 mods 目录中的状态文件: {e}",
                context={"path": str(path)},
                kind=ErrorKind.NOT_ACCESSIBLE,
            ) from e

        entries: List[ModEntry] = []
        for child in children:
            entry = self._load_entry(child)
            if entry is None:
                continue
            entry.enabled = entry.id in enabled_ids
            entries.append(entry)

        entries.sort(key=discovery_key)
        entries = self._apply_saved_order(entries, saved_order)
        for index, entry in enumerate(entries):
            entry.load_order = index

        logger.info(
            f"发现 {len(entries)} 个模组，其中 {sum(e.enabled for e in entries)} 个已启用"
        )
        return entries

    def scan(self, mods_path: Union[str, Path]) -> List[ModEntry]:
        """扫描 mods 目录并替换当前模组列表，失败时保留原列表"""
        entries = self.discover(mods_path)
        self.adopt(mods_path, entries)
        return self.current()

    def adopt(self, mods_path: Union[str, Path], entries: List[ModEntry]) -> None:
        """使用 discover() 的结果作为当前模组列表"""
        self._mods_path = normalize_path(mods_path)
        self._entries = [entry.copy() for entry in entries]

    def _apply_saved_order(
        self, entries: List[ModEntry], saved_order: List[str]
    ) -> List[ModEntry]:
        """已保存顺序中的模组在前，其余按发现顺序追加在后"""
        if not saved_order:
            return entries
        remaining = {entry.id: entry for entry in entries}
        ordered = [remaining.pop(mod_id) for mod_id in saved_order if mod_id in remaining]
        ordered.extend(entry for entry in entries if entry.id in remaining)
        return ordered

    def _load_entry(self, child: os.DirEntry) -> Optional[ModEntry]:
        """把目录项转换为模组条目，不符合模组包约定时返回 None"""
        if child.name.startswith("."):
            return None
        if not is_listable_id(child.name):
            logger.warning(f"无法记录启用状态的模组名称，已跳过: {child.name!r}")
            return None

        source_path = Path(child.path)

        if child.is_dir():
            if not (source_path / MOD_LUA).is_file():
                logger.debug(f"跳过没有 {MOD_LUA} 的目录: {child.name}")
                return None
            return self._build_entry(
                child.name,
                source_path,
                is_archive=False,
                read_info=lambda: self.metadata_reader.read_directory(source_path),
            )

        if child.is_file() and source_path.suffix.lower() in ARCHIVE_SUFFIXES:
            return self._load_archive(child.name, source_path)

        return None

    def _load_archive(self, mod_id: str, source_path: Path) -> Optional[ModEntry]:
        try:
            with zipfile.ZipFile(source_path) as archive:
                root = find_archive_root(archive.namelist())
                if root is None:
                    logger.debug(f"跳过没有 {MOD_LUA} 的压缩包: {mod_id}")
                    return None
                mod_source = archive.read(root + MOD_LUA).decode("utf-8", errors="replace")
                strings_name = root + STRINGS_LUA
                strings_source = (
                    archive.read(strings_name).decode("utf-8", errors="replace")
                    if strings_name in archive.namelist()
                    else None
                )
        except (zipfile.BadZipFile, OSError) as e:
            logger.warning(f"无法读取压缩包 {mod_id}，已跳过: {e}")
            return None

        return self._build_entry(
            mod_id,
            source_path,
            is_archive=True,
            read_info=lambda: self.metadata_reader.read_info(
                mod_source, strings_source, origin=f"{mod_id}/{root}{MOD_LUA}"
            ),
        )

    def _build_entry(
        self,
        mod_id: str,
        source_path: Path,
        is_archive: bool,
        read_info: Callable[[], ModInfo],
    ) -> ModEntry:
        fallback_name = Path(mod_id).stem if is_archive else mod_id
        entry = ModEntry(
            id=mod_id,
            display_name=fallback_name,
            source_path=source_path,
            is_archive=is_archive,
        )

        try:
            info = read_info()
        except MetadataError as e:
            logger.warning(f"模组 {mod_id} 的元数据无效，使用名称 '{fallback_name}': {e}")
            entry.metadata_error = e.message
            return entry

        entry.display_name = info.name or fallback_name
        entry.description = info.description
        entry.authors = info.authors
        entry.tags = info.tags
        entry.minor_version = info.minor_version
        entry.severity_add = info.severity_add
        entry.severity_remove = info.severity_remove
        return entry

    # ------------------------------------------------------------------
    # 查询
    # ------------------------------------------------------------------

    def current(self) -> List[ModEntry]:
        """当前模组列表的快照（副本，不会随后续操作变化）"""
        return [entry.copy() for entry in self._entries]

    def enabled_mods(self) -> List[ModEntry]:
        """按加载顺序排列的已启用模组"""
        return [entry.copy() for entry in self._entries if entry.enabled]

    def get(self, mod_id: str) -> ModEntry:
        return self._find(mod_id).copy()

    def _find(self, mod_id: str) -> ModEntry:
        for entry in self._entries:
            if entry.id == mod_id:
                return entry
        raise ModNotFoundError(mod_id)

    def _require_path(self) -> Path:
        if self._mods_path is None:
            raise NoPathConfiguredError("尚未扫描 mods 目录")
        return self._mods_path

    # ------------------------------------------------------------------
    # 修改
    # ------------------------------------------------------------------

    def enable(self, mod_id: str) -> None:
        """启用模组，已启用时不做任何修改"""
        self._set_enabled(mod_id, True)

    def disable(self, mod_id: str) -> None:
        """禁用模组，已禁用时不做任何修改"""
        self._set_enabled(mod_id, False)

    def _set_enabled(self, mod_id: str, enabled: bool) -> None:
        entry = self._find(mod_id)
        mods_path = self._require_path()
        action = "启用" if enabled else "禁用"

        if entry.enabled == enabled:
            logger.debug(f"模组 {mod_id} 已经是{action}状态")
            return

        manifest = mods_path / ENABLED_FILENAME
        try:
            # 重新读取清单，只修改这一个 ID，保留其他行
            enabled_ids = read_id_list(manifest)
            if enabled:
                enabled_ids.append(mod_id)
            else:
                enabled_ids = [i for i in enabled_ids if i != mod_id]
            write_id_list(manifest, enabled_ids, header=_ENABLED_HEADER)
        except (OSError, UnicodeDecodeError) as e:
            logger.error(f"{action}模组 {mod_id} 失败: {e}")
            raise MutationError(
                f"{action}模组 {mod_id} 失败: {e}",
                context={"id": mod_id, "path": str(manifest)},
            ) from e

        entry.enabled = enabled
        logger.info(f"已{action}模组: {entry.display_name} ({mod_id})")

    def reorder(self, new_order: Iterable[str]) -> None:
        """
        调整加载顺序

        Args:
            new_order: 当前所有模组 ID 的一个排列

        Raises:
            InvalidPermutationError: 缺少、重复或包含未知 ID
            MutationError: 顺序文件写入失败
        """
        new_order = list(new_order)
        self._check_permutation(new_order)
        mods_path = self._require_path()

        order_file = mods_path / ORDER_FILENAME
        try:
            write_id_list(order_file, new_order, header=_ORDER_HEADER)
        except OSError as e:
            logger.error(f"保存加载顺序失败: {e}")
            raise MutationError(
                f"保存加载顺序失败: {e}", context={"path": str(order_file)}
            ) from e

        by_id = {entry.id: entry for entry in self._entries}
        self._entries = [by_id[mod_id] for mod_id in new_order]
        for index, entry in enumerate(self._entries):
            entry.load_order = index
        logger.info(f"已更新 {len(new_order)} 个模组的加载顺序")

    def _check_permutation(self, new_order: List[str]) -> None:
        current_ids = {entry.id for entry in self._entries}
        requested = set(new_order)
        duplicates = sorted(i for i, count in Counter(new_order).items() if count > 1)
        missing = sorted(current_ids - requested)
        unknown = sorted(requested - current_ids)

        if duplicates or missing or unknown:
            raise InvalidPermutationError(
                "新的加载顺序必须恰好包含当前所有模组各一次",
                context={"missing": missing, "duplicates": duplicates, "unknown": unknown},
            )
