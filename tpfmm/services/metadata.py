"""
模组元数据读取服务

Transport Fever 的模组用 Lua 描述自身：mod.lua 中的 data() 返回 info 表，
strings.lua 中的 data() 返回按语言分组的翻译表。
这里在受限的 Lua 运行时中执行这些脚本，只读取需要的字段。
"""

import math
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import lupa
from lupa import LuaRuntime
from loguru import logger

from tpfmm.exceptions import MetadataError
from tpfmm.models import ModInfo

MOD_LUA = "mod.lua"
STRINGS_LUA = "strings.lua"
DEFAULT_LANGUAGE = "en"

# 元数据脚本不需要访问文件系统、进程或 Python
_SANDBOX_SCRIPT = """
os = nil
io = nil
require = nil
dofile = nil
loadfile = nil
load = nil
loadstring = nil
package = nil
debug = nil
collectgarbage = nil
python = nil
_ = function(s) return s end
"""

# 读取 Lua 值时可能出现的错误：__index 元方法报错、非 UTF-8 字符串、
# 无法转换的数值
_FIELD_ERRORS = (lupa.LuaError, UnicodeDecodeError, OverflowError, ValueError)


def _is_table(value: Any) -> bool:
    return lupa.lua_type(value) == "table"


def _table_get(table: Any, key: str) -> Any:
    """Lua 表没有 .get() 方法，需要手动处理"""
    if not _is_table(table):
        return None
    try:
        return table[key]
    except (KeyError, TypeError):
        return None


def _as_str(value: Any) -> Optional[str]:
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    if isinstance(value, str):
        return value
    return None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and math.isfinite(value):
        return int(value)
    return None


def _string_list(table: Any, field: Optional[str] = None) -> Tuple[str, ...]:
    """把 Lua 数组转成字符串元组；field 不为空时取每个元素的该字段"""
    if not _is_table(table):
        return ()
    items = []
    for value in table.values():
        if field is not None:
            value = _table_get(value, field)
        text = _as_str(value)
        if text:
            items.append(text)
    return tuple(items)


class ModMetadataReader:
    """模组元数据读取器"""

    def __init__(self, language: str = DEFAULT_LANGUAGE):
        self.language = language

    def _new_runtime(self) -> LuaRuntime:
        """每个脚本使用独立的运行时，避免全局变量互相污染"""
        runtime = LuaRuntime(unpack_returned_tuples=True, register_eval=False)
        runtime.execute(_SANDBOX_SCRIPT)
        return runtime

    def _evaluate(self, source: str, origin: str) -> Any:
        """执行脚本并返回 data() 的结果"""
        runtime = self._new_runtime()
        try:
            runtime.execute(source)
            data_func = runtime.globals()["data"]
            if lupa.lua_type(data_func) != "function":
                raise MetadataError(
                    f"{origin} 没有定义 data() 函数", context={"origin": origin}
                )
            return data_func()
        except lupa.LuaError as e:
            raise MetadataError(
                f"Lua 执行错误 [{origin}]: {e}", context={"origin": origin}
            ) from e

    def read_strings(self, source: str, origin: str = STRINGS_LUA) -> Dict[str, str]:
        """
        读取翻译表

        Returns:
            当前语言的翻译，缺失的键回退到英文
        """
        table = self._evaluate(source, origin)
        if not _is_table(table):
            raise MetadataError(f"{origin} 的 data() 没有返回表", context={"origin": origin})

        translations: Dict[str, str] = {}
        try:
            for language in (DEFAULT_LANGUAGE, self.language):
                language_table = _table_get(table, language)
                if not _is_table(language_table):
                    continue
                for key, value in language_table.items():
                    key_text, value_text = _as_str(key), _as_str(value)
                    if key_text is not None and value_text is not None:
                        translations[key_text] = value_text
        except _FIELD_ERRORS as e:
            raise MetadataError(
                f"{origin} 的翻译表无法读取: {e}", context={"origin": origin}
            ) from e
        return translations

    def read_info(
        self,
        mod_source: str,
        strings_source: Optional[str] = None,
        origin: str = MOD_LUA,
    ) -> ModInfo:
        """
        读取 mod.lua 中的 info 表

        Args:
            mod_source: mod.lua 的内容
            strings_source: strings.lua 的内容（可选）
            origin: 用于错误信息的来源名称

        Returns:
            ModInfo

        Raises:
            MetadataError: 脚本无法执行或结构不符合约定
        """
        result = self._evaluate(mod_source, origin)
        try:
            info = _table_get(result, "info")
        except _FIELD_ERRORS as e:
            raise MetadataError(
                f"{origin} 的 info 表无法读取: {e}", context={"origin": origin}
            ) from e
        if not _is_table(info):
            raise MetadataError(f"{origin} 缺少 info 表", context={"origin": origin})

        translations: Dict[str, str] = {}
        if strings_source is not None:
            try:
                translations = self.read_strings(strings_source)
            except MetadataError as e:
                # 翻译只影响显示，不影响元数据本身
                logger.debug(f"忽略无法解析的翻译文件: {e}")

        def translate(value: Any) -> Optional[str]:
            text = _as_str(value)
            if text is None:
                return None
            return translations.get(text, text)

        try:
            name = translate(_table_get(info, "name"))
            if name is not None:
                name = name.strip() or None

            return ModInfo(
                name=name,
                description=translate(_table_get(info, "description")) or "",
                minor_version=_as_int(_table_get(info, "minorVersion")),
                authors=_string_list(_table_get(info, "authors"), field="name"),
                tags=_string_list(_table_get(info, "tags")),
                severity_add=_as_str(_table_get(info, "severityAdd")),
                severity_remove=_as_str(_table_get(info, "severityRemove")),
            )
        except _FIELD_ERRORS as e:
            raise MetadataError(
                f"{origin} 的 info 表字段无效: {e}", context={"origin": origin}
            ) from e

    def read_directory(self, mod_dir: Path) -> ModInfo:
        """读取目录形式模组的元数据"""
        mod_file = mod_dir / MOD_LUA
        strings_file = mod_dir / STRINGS_LUA
        try:
            mod_source = mod_file.read_text(encoding="utf-8", errors="replace")
            strings_source = (
                strings_file.read_text(encoding="utf-8", errors="replace")
                if strings_file.is_file()
                else None
            )
        except OSError as e:
            raise MetadataError(
                f"读取 {mod_file} 失败: {e}", context={"origin": str(mod_file)}
            ) from e
        return self.read_info(mod_source, strings_source, origin=str(mod_file))
