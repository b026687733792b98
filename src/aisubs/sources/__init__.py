from __future__ import annotations

from .base import FetchSubtitlesFn, SubtitleSource
from .opensubtitles import OpenSubtitlesSource, parse_video_id

__all__ = ["FetchSubtitlesFn", "SubtitleSource", "OpenSubtitlesSource", "parse_video_id"]
