from __future__ import annotations

from dataclasses import dataclass


@dataclass
class Cue:
    """
    单条字幕项，对应 SRT 中的一个时间轴块。

    start / end 保持 SRT 线上格式（HH:MM:SS,mmm），不做数值化，
    以保证序列化后与原始时间轴逐字节一致。
    """

    index: int
    start: str
    end: str
    text: str
