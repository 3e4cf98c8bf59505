"""统一日志配置模块。

应用只保留一条日志输出链路：loguru 写入 stderr，
标准库 logging 的记录（各 Worker 的 logger、aiohttp 等第三方库）经 LoguruHandler 转发到 loguru。
日志级别可通过环境变量 LOG_LEVEL 设置（默认 INFO）。
"""

from __future__ import annotations

import logging
import os
import sys

from loguru import logger

LOG_FORMAT = (
    "<green>{time:MM-DD HH:mm:ss}</green> [<level>{level}</level>] <cyan>{name}</cyan>:{line} | {message}"
)


class LoguruHandler(logging.Handler):
    """将标准库 logging 的记录转发到 loguru，保留原 logger 名称与行号。"""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        logger.patch(lambda r: r.update(name=record.name, line=record.lineno)).opt(
            exception=record.exc_info
        ).log(level, record.getMessage())


def _resolve_level(level: int | str | None) -> int:
    if level is None:
        level = os.getenv("LOG_LEVEL", "INFO")
    if isinstance(level, int):
        return level

    value = logging.getLevelName(level.upper())
    return value if isinstance(value, int) else logging.INFO


def setup_logging(level: int | str | None = None) -> None:
    """配置全局日志输出。

    Args:
        level: 日志级别，int 或名称。若未提供，则读取环境变量 LOG_LEVEL；无法识别时使用 INFO。
    """
    resolved_level = _resolve_level(level)

    logger.remove()
    logger.add(sys.stderr, level=resolved_level, format=LOG_FORMAT)

    logging.basicConfig(handlers=[LoguruHandler()], level=resolved_level, force=True)
    logging.getLogger("aiohttp").setLevel(logging.WARNING)
