"""
设置存储服务

负责读写用户配置文件（TOML 格式）。
"""

import os
from pathlib import Path
from typing import Optional, Union

import click
import toml
from loguru import logger

from tpfmm.exceptions import PersistenceError
from tpfmm.models import Settings
from tpfmm.utils import atomic_write_text

APP_NAME = "TPF-ModManager"
SETTINGS_FILENAME = "settings.toml"


def default_config_dir() -> Path:
    """用户级配置目录，可通过 TPFMM_CONFIG_DIR 覆盖"""
    override = os.environ.get("TPFMM_CONFIG_DIR")
    if override:
        return Path(override)
    return Path(click.get_app_dir(APP_NAME))


class SettingsStore:
    """设置存储"""

    def __init__(self, config_dir: Optional[Union[str, Path]] = None):
        self.config_dir = Path(config_dir) if config_dir else default_config_dir()
        self.settings_path = self.config_dir / SETTINGS_FILENAME

    def load(self) -> Settings:
        """
        读取配置

        文件不存在、无法读取或格式错误时返回默认配置，不抛出异常。
        """
        if not self.settings_path.exists():
            logger.info(f"未找到设置文件 {self.settings_path}，使用默认设置")
            return Settings()

        try:
            data = toml.load(self.settings_path)
            settings = Settings.from_dict(data)
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"读取设置文件失败: {e}，使用默认设置")
            return Settings()
        except (toml.TomlDecodeError, TypeError) as e:
            logger.warning(f"设置文件格式错误: {e}，使用默认设置")
            return Settings()

        logger.debug(f"已加载设置: {self.settings_path}")
        return settings

    def save(self, settings: Settings) -> None:
        """
        原子写入配置

        Raises:
            PersistenceError: 配置目录或文件不可写
        """
        try:
            content = toml.dumps(settings.to_dict())
        except (TypeError, ValueError) as e:
            raise PersistenceError(
                f"设置无法序列化为 TOML: {e}",
                context={"path": str(self.settings_path)},
            ) from e

        try:
            self.config_dir.mkdir(parents=True, exist_ok=True)
            atomic_write_text(self.settings_path, content)
        except OSError as e:
            logger.error(f"写入设置文件失败: {e}")
            raise PersistenceError(
                f"无法写入设置文件 {self.settings_path}: {e}",
                context={"path": str(self.settings_path)},
            ) from e

        logger.debug(f"设置已保存到 {self.settings_path}")
