from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable


# fetch_subtitles(video_id, lang) -> srt_text
FetchSubtitlesFn = Callable[[str, str], str]


class SubtitleSource(ABC):
    """
    原始字幕来源的抽象接口。

    实现需返回指定视频、指定语言的 SRT 文本；失败时抛出
    SourceServiceError 的子类（SubtitlesNotFound / SourceUnavailable / SourceNetworkError）。
    """

    name: str = "base"

    @abstractmethod
    def fetch_subtitles(self, video_id: str, lang: str) -> str:
        """返回 SRT 文本。"""

    def __call__(self, video_id: str, lang: str) -> str:
        return self.fetch_subtitles(video_id, lang)
