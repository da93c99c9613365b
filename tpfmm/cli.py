"""
CLI 模块

命令行接口实现。只通过 ModManager 与核心交互。
"""

import json
import sys
from typing import List, Optional

import click
from loguru import logger

from tpfmm import __version__
from tpfmm.logger import setup_logger
from tpfmm.manager import ModManager
from tpfmm.models import ModEntry, OperationResult
from tpfmm.services import SettingsStore

TITLE = f"TPF-ModManager v{__version__}"
MISSING_PATH_MESSAGE = "请设置 Transport Fever 'mods' 文件夹的路径!"


def _unwrap(result: OperationResult):
    """失败的结果转换为 ClickException"""
    for warning in result.warnings:
        click.echo(f"警告: {warning}", err=True)
    if not result.success:
        raise click.ClickException(str(result.error))
    return result.data


def _ensure_catalog(manager: ModManager, prompt: bool = False) -> List[ModEntry]:
    """
    加载模组列表

    未设置 mods 目录时，交互式终端下提示用户输入，否则报错退出。
    """
    if not manager.get_mods_path():
        if not (prompt and sys.stdin.isatty()):
            raise click.ClickException(MISSING_PATH_MESSAGE)
        folder = click.prompt("请选择 Transport Fever 的 mods 文件夹", type=click.Path())
        return _unwrap(manager.set_mods_path(folder))
    return _unwrap(manager.refresh())


def _format_entry(entry: ModEntry) -> str:
    status = "✓" if entry.enabled else "✗"
    version = f" v{entry.version}" if entry.version else ""
    return f"{entry.load_order:>3}  [{status}] {entry.display_name}{version}  ({entry.id})"


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="输出详细日志")
@click.option("--debug", is_flag=True, help="启用调试模式")
@click.option(
    "--config-dir",
    type=click.Path(file_okay=False),
    envvar="TPFMM_CONFIG_DIR",
    help="设置文件所在目录",
)
@click.option(
    "--log-file",
    type=click.Path(dir_okay=False),
    help="同时写入的日志文件（DEBUG 级别，按大小轮转）",
)
@click.version_option(version=__version__, prog_name="TPF-ModManager")
@click.pass_context
def main(
    ctx: click.Context,
    verbose: bool,
    debug: bool,
    config_dir: Optional[str],
    log_file: Optional[str],
):
    """TPF-ModManager - Transport Fever 模组管理工具"""
    if debug:
        level = "DEBUG"
    elif verbose:
        level = "INFO"
    else:
        # 未指定时由 TPFMM_DEBUG 决定，默认只输出警告
        level = None
    setup_logger(level=level, log_file=log_file, default="WARNING")
    logger.debug(TITLE)
    ctx.obj = ModManager(SettingsStore(config_dir))


@main.command("path")
@click.pass_obj
def show_path(manager: ModManager):
    """显示当前的 mods 目录"""
    mods_path = manager.get_mods_path()
    if not mods_path:
        raise click.ClickException(MISSING_PATH_MESSAGE)
    click.echo(mods_path)


@main.command("set-path")
@click.argument("path", type=click.Path())
@click.option("--force", is_flag=True, help="目录名不是 mods 时仍然使用")
@click.pass_obj
def set_path(manager: ModManager, path: str, force: bool):
    """设置 mods 目录并扫描模组"""
    entries = _unwrap(manager.set_mods_path(path, force=force))
    click.echo(f"mods 目录: {manager.get_mods_path()}")
    click.echo(f"发现 {len(entries)} 个模组")


@main.command("list")
@click.option("--json", "as_json", is_flag=True, help="以 JSON 格式输出")
@click.option("--enabled-only", is_flag=True, help="只显示已启用的模组")
@click.pass_obj
def list_mods(manager: ModManager, as_json: bool, enabled_only: bool):
    """列出已安装的模组"""
    entries = _ensure_catalog(manager, prompt=True)
    if enabled_only:
        entries = [entry for entry in entries if entry.enabled]

    if as_json:
        click.echo(json.dumps([e.to_dict() for e in entries], ensure_ascii=False, indent=2))
        return

    if not entries:
        click.echo("没有找到任何模组")
        return
    for entry in entries:
        click.echo(_format_entry(entry))


@main.command()
@click.pass_obj
def refresh(manager: ModManager):
    """重新扫描 mods 目录"""
    entries = _ensure_catalog(manager)
    enabled = sum(1 for entry in entries if entry.enabled)
    click.echo(f"发现 {len(entries)} 个模组，其中 {enabled} 个已启用")


@main.command()
@click.argument("mod_ids", nargs=-1, required=True)
@click.pass_obj
def enable(manager: ModManager, mod_ids: tuple):
    """启用模组"""
    _ensure_catalog(manager)
    for mod_id in mod_ids:
        _unwrap(manager.enable(mod_id))
        click.echo(f"已启用: {mod_id}")


@main.command()
@click.argument("mod_ids", nargs=-1, required=True)
@click.pass_obj
def disable(manager: ModManager, mod_ids: tuple):
    """禁用模组"""
    _ensure_catalog(manager)
    for mod_id in mod_ids:
        _unwrap(manager.disable(mod_id))
        click.echo(f"已禁用: {mod_id}")


@main.command()
@click.argument("mod_ids", nargs=-1, required=True)
@click.pass_obj
def reorder(manager: ModManager, mod_ids: tuple):
    """按给定顺序排列所有模组"""
    _ensure_catalog(manager)
    _unwrap(manager.reorder(mod_ids))
    for entry in manager.current():
        click.echo(_format_entry(entry))


if __name__ == "__main__":
    main()
