"""
日志模块

使用 loguru 提供统一的日志记录功能。核心库本身只调用 logger，
由入口（CLI 或图形界面）决定输出到哪里。
"""

import os
import sys
from pathlib import Path
from typing import Optional, Union

from loguru import logger

LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {message}"


def resolve_level(level: Optional[str] = None, default: str = "INFO") -> str:
    """显式指定的级别优先，其次是 TPFMM_DEBUG 环境变量，最后是 default"""
    if level:
        return level.upper()
    return "DEBUG" if os.environ.get("TPFMM_DEBUG", "0") == "1" else default.upper()


def setup_logger(
    level: Optional[str] = None,
    sink=sys.stderr,
    colorize: bool = True,
    log_file: Optional[Union[str, Path]] = None,
    default: str = "INFO",
) -> str:
    """
    设置日志记录器

    Args:
        level: 日志级别 (DEBUG, INFO, WARNING, ERROR)
        sink: 控制台输出目标
        colorize: 是否启用颜色
        log_file: 额外写入的日志文件（按大小轮转）
        default: 未指定 level 且未设置 TPFMM_DEBUG 时使用的级别

    Returns:
        实际使用的日志级别
    """
    level = resolve_level(level, default)
    debug_mode = level == "DEBUG"

    # 移除默认处理器
    logger.remove()

    logger.add(
        sink=sink,
        format=LOG_FORMAT,
        level=level,
        colorize=colorize,
        backtrace=debug_mode,
        diagnose=debug_mode,
    )

    if log_file is not None:
        logger.add(
            sink=str(log_file),
            format=LOG_FORMAT,
            level="DEBUG",
            rotation="1 MB",
            retention=3,
            encoding="utf-8",
        )

    if debug_mode:
        logger.debug("DEBUG 模式已启用")
    return level


__all__ = ["logger", "setup_logger", "resolve_level", "LOG_FORMAT"]
