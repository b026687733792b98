from __future__ import annotations

"""
aisubs 的日志工具。

库代码只通过 get_logger 取得 logger，不修改任何日志配置；
控制台输出由入口（CLI、Web main）调用 setup_logging 挂到 "aisubs" logger 上，
因此作为库被引用时不会影响宿主应用的根 logger。
"""

import logging
import os
from typing import Optional


PACKAGE_LOGGER = "aisubs"
LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
_HANDLER_NAME = "aisubs-console"

logging.getLogger(PACKAGE_LOGGER).addHandler(logging.NullHandler())


def resolve_level(level: Optional[str] = None) -> int:
    """参数优先，其次 AISUBS_LOG_LEVEL，无法识别的名称回退为 INFO。"""
    level_name = (level or os.getenv("AISUBS_LOG_LEVEL") or "INFO").strip().upper()
    resolved = logging.getLevelName(level_name)
    return resolved if isinstance(resolved, int) else logging.INFO


def _console_handlers(logger: logging.Logger) -> list:
    return [h for h in logger.handlers if h.get_name() == _HANDLER_NAME]


def setup_logging(level: Optional[str] = None, force: bool = False) -> logging.Logger:
    """
    为 "aisubs" logger 安装控制台输出（只安装一次）。

    force=True 时替换已安装的 handler 并重新设置级别，供 --log-level 覆盖使用。
    """
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    existing = _console_handlers(package_logger)
    if existing and not force:
        return package_logger

    for handler in existing:
        package_logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    package_logger.addHandler(handler)
    package_logger.setLevel(resolve_level(level))
    return package_logger


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
