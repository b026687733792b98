from __future__ import annotations

from .config import AppConfig
from .pipeline import SubtitlePipeline

__all__ = ["AppConfig", "SubtitlePipeline"]

__version__ = "0.1.0"
