"""
主协调器

整合设置存储、目录校验和模组目录，为界面层提供唯一的调用入口。
界面层只通过 ModManager 交互，所有结果以 OperationResult 返回。

ModManager 不做内部加锁，调用方需保证同一时间只有一个线程调用。
"""

from pathlib import Path
from typing import Iterable, List, Optional, Union

from loguru import logger

from tpfmm.exceptions import (
    ModsPathLooksWrongError,
    NoPathConfiguredError,
    TpfModManagerError,
)
from tpfmm.models import ModEntry, OperationResult, Settings
from tpfmm.services import ModDirectoryResolver, ModRegistry, SettingsStore


class ModManager:
    """TPF-ModManager 主协调器"""

    def __init__(
        self,
        settings_store: Optional[SettingsStore] = None,
        resolver: Optional[ModDirectoryResolver] = None,
        registry: Optional[ModRegistry] = None,
    ):
        self.settings_store = settings_store or SettingsStore()
        self.resolver = resolver or ModDirectoryResolver()
        self.registry = registry or ModRegistry()
        self._settings: Settings = self.settings_store.load()

    @property
    def settings(self) -> Settings:
        return self._settings.with_mods_path(self._settings.mods_path)

    @property
    def mods(self) -> List[ModEntry]:
        return self.current()

    def get_mods_path(self) -> str:
        """最后一次成功设置的 mods 目录，未设置时为空字符串"""
        return self._settings.mods_path

    def set_mods_path(
        self, candidate: Union[str, Path], force: bool = False
    ) -> OperationResult[List[ModEntry]]:
        """
        设置 mods 目录

        依次执行校验、扫描、保存设置，全部成功后才更新设置和模组列表。
        任何一步失败时，原有设置和模组列表保持不变。

        Args:
            candidate: 用户选择的目录
            force: 目录名不是 mods 时仍然接受

        Returns:
            成功时 data 为扫描得到的模组列表
        """
        warnings: List[str] = []

        try:
            try:
                mods_path = self.resolver.validate(candidate)
            except ModsPathLooksWrongError as e:
                if not force:
                    logger.warning(f"{e.message}，未保存")
                    return OperationResult.fail(e)
                logger.warning(f"{e.message}，按用户要求继续使用")
                warnings.append(e.message)
                mods_path = Path(e.path)

            entries = self.registry.discover(mods_path)
            new_settings = self._settings.with_mods_path(str(mods_path))
            self.settings_store.save(new_settings)
        except TpfModManagerError as e:
            logger.error(f"设置 mods 目录失败: {e}")
            return OperationResult.fail(e)

        self._settings = new_settings
        self.registry.adopt(mods_path, entries)
        logger.success(f"mods 目录已设置为 {mods_path}")
        return OperationResult.ok(self.registry.current(), warnings=warnings)

    def refresh(self) -> OperationResult[List[ModEntry]]:
        """重新扫描已保存的 mods 目录，失败时不修改设置"""
        mods_path = self.get_mods_path()
        if not mods_path:
            return OperationResult.fail(
                NoPathConfiguredError("请先设置 Transport Fever 的 'mods' 文件夹路径")
            )

        try:
            entries = self.registry.scan(mods_path)
        except TpfModManagerError as e:
            logger.error(f"刷新模组列表失败: {e}")
            return OperationResult.fail(e)
        return OperationResult.ok(entries)

    def enable(self, mod_id: str) -> OperationResult[None]:
        return self._mutate(self.registry.enable, mod_id)

    def disable(self, mod_id: str) -> OperationResult[None]:
        return self._mutate(self.registry.disable, mod_id)

    def reorder(self, mod_ids: Iterable[str]) -> OperationResult[None]:
        return self._mutate(self.registry.reorder, list(mod_ids))

    def _mutate(self, operation, argument) -> OperationResult[None]:
        try:
            operation(argument)
        except TpfModManagerError as e:
            return OperationResult.fail(e)
        return OperationResult.ok()

    def current(self) -> List[ModEntry]:
        """当前模组列表快照"""
        return self.registry.current()

    def enabled_mods(self) -> List[ModEntry]:
        return self.registry.enabled_mods()
