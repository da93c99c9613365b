import os
import tempfile
from pathlib import Path
from typing import Iterable, List, Union

PathLike = Union[str, Path]


def normalize_path(path: PathLike) -> Path:
    """
    规范化路径：展开 ~，转为绝对路径，去掉末尾分隔符并统一分隔符。

    不解析符号链接，保证结果与用户选择的路径在字面上一致。
    """
    expanded = os.path.expanduser(str(path))
    return Path(os.path.normpath(os.path.abspath(expanded)))


def atomic_write_text(path: PathLike, content: str, encoding: str = "utf-8") -> None:
    """
    原子写入文本文件

    先写入同目录下的临时文件，再用 os.replace 替换目标文件。
    进程在任何时刻崩溃，目标文件要么是旧内容，要么是新内容。

    Raises:
        OSError: 目录不可写或替换失败
    """
    target = Path(path)
    with tempfile.NamedTemporaryFile(
        mode="w",
        encoding=encoding,
        dir=target.parent,
        prefix=f".{target.name}.",
        suffix=".tmp",
        delete=False,
    ) as f:
        tmp_path = f.name
        try:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        except BaseException:
            f.close()
            os.unlink(tmp_path)
            raise

    try:
        os.replace(tmp_path, target)
    except BaseException:
        if os.path.exists(tmp_path):
            os.unlink(tmp_path)
        raise


def is_listable_id(mod_id: str) -> bool:
    """ID 写入列表文件后能否被 parse_id_list 原样读回"""
    if not mod_id or mod_id != mod_id.strip() or mod_id.startswith("#"):
        return False
    return len(mod_id.splitlines()) == 1


def parse_id_list(text: str) -> List[str]:
    """解析每行一个 ID 的文本，忽略空行、# 注释和重复项"""
    ids: List[str] = []
    seen = set()
    for line in text.splitlines():
        item = line.strip()
        if not item or item.startswith("#"):
            continue
        if item in seen:
            continue
        seen.add(item)
        ids.append(item)
    return ids


def read_id_list(path: PathLike) -> List[str]:
    """
    读取 ID 列表文件

    文件不存在时返回空列表，其他读取错误向上抛出。
    """
    try:
        text = Path(path).read_text(encoding="utf-8")
    except FileNotFoundError:
        return []
    return parse_id_list(text)


def format_id_list(ids: Iterable[str], header: str = "") -> str:
    lines = [f"# {line}" for line in header.splitlines()] if header else []
    lines.extend(ids)
    return "\n".join(lines) + "\n"


def write_id_list(path: PathLike, ids: Iterable[str], header: str = "") -> None:
    """原子写入 ID 列表文件"""
    atomic_write_text(path, format_id_list(ids, header))
