from __future__ import annotations

import re


VTT_HEADER = "WEBVTT"

_SRT_TIMESTAMP = re.compile(r"(\d{2}:\d{2}:\d{2}),(\d{3})")


def srt_to_vtt(srt: str) -> str:
    """
    将 SRT 文本转换为 WebVTT。

    纯文本层面的转换，不重新解析 Cue：统一换行符、把时间戳中的
    毫秒分隔符由逗号替换为句点，并在开头加上 WEBVTT 头。
    字幕正文中的逗号保持不变。
    """
    normalized = (srt or "").replace("\r", "")
    normalized = _SRT_TIMESTAMP.sub(r"\1.\2", normalized)
    return f"{VTT_HEADER}\n\n{normalized}"
