from __future__ import annotations

"""
aisubs Web 子模块

提供基于 FastAPI 的字幕翻译 HTTP 服务。
"""

from .app import create_app, main

__all__ = ["create_app", "main"]
