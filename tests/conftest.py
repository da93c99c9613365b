import sys
import zipfile
from pathlib import Path
from typing import Optional

import pytest
from loguru import logger

from tpfmm.manager import ModManager
from tpfmm.services import SettingsStore

MOD_LUA_TEMPLATE = """\
function data()
return {{
	info = {{
		minorVersion = {minor},
		severityAdd = "NONE",
		severityRemove = "WARNING",
		name = _("{name}"),
		description = _("{description}"),
		authors = {{
			{{ name = "{author}", role = "CREATOR" }},
		}},
		tags = {{ "Train", "Europe" }},
	}},
	runFn = function(settings)
		game.config.earnAchievementsWithMods = true
	end,
}}
end
"""


def mod_lua(
    name: str, description: str = "", author: str = "tester", minor: int = 0
) -> str:
    return MOD_LUA_TEMPLATE.format(
        name=name, description=description, author=author, minor=minor
    )


def make_mod(
    mods_dir: Path,
    mod_id: str,
    name: Optional[str] = None,
    source: Optional[str] = None,
    strings: Optional[str] = None,
) -> Path:
    """在 mods 目录中创建一个目录形式的模组"""
    mod_dir = mods_dir / mod_id
    mod_dir.mkdir(parents=True)
    if source is None:
        source = mod_lua(name or mod_id)
    (mod_dir / "mod.lua").write_text(source, encoding="utf-8")
    if strings is not None:
        (mod_dir / "strings.lua").write_text(strings, encoding="utf-8")
    return mod_dir


def make_archive_mod(
    mods_dir: Path, filename: str, name: str, nested: Optional[str] = None
) -> Path:
    """在 mods 目录中创建一个 zip 形式的模组"""
    archive_path = mods_dir / filename
    prefix = f"{nested}/" if nested else ""
    with zipfile.ZipFile(archive_path, "w") as archive:
        archive.writestr(prefix + "mod.lua", mod_lua(name))
        archive.writestr(prefix + "res/models/readme.txt", "model files")
    return archive_path


@pytest.fixture(autouse=True)
def isolated_environment(tmp_path, monkeypatch):
    """每个测试使用独立的设置目录，日志只输出到 stderr"""
    monkeypatch.setenv("TPFMM_CONFIG_DIR", str(tmp_path / "config"))
    monkeypatch.delenv("TPFMM_DEBUG", raising=False)
    logger.remove()
    logger.add(sys.stderr, level="DEBUG")
    yield
    logger.remove()


@pytest.fixture
def mods_dir(tmp_path) -> Path:
    path = tmp_path / "games" / "tpf" / "mods"
    path.mkdir(parents=True)
    return path


@pytest.fixture
def config_dir(tmp_path) -> Path:
    return tmp_path / "config"


@pytest.fixture
def settings_store(config_dir) -> SettingsStore:
    return SettingsStore(config_dir)


@pytest.fixture
def manager(settings_store) -> ModManager:
    return ModManager(settings_store=settings_store)
