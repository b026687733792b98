from __future__ import annotations

import re
from typing import Iterable, List, Optional

from .types import Cue


_BLOCK_SEPARATOR = re.compile(r"\n\n+")
_TIMING_LINE = re.compile(
    r"^(\d{2}:\d{2}:\d{2},\d{3})\s*-->\s*(\d{2}:\d{2}:\d{2},\d{3})"
)


def _parse_block(block: str) -> Optional[Cue]:
    lines = block.split("\n")
    if len(lines) < 2:
        return None
    try:
        index = int(lines[0].strip())
    except ValueError:
        return None
    match = _TIMING_LINE.match(lines[1].strip())
    if match is None:
        return None
    return Cue(
        index=index,
        start=match.group(1),
        end=match.group(2),
        text="\n".join(lines[2:]),
    )


def parse_srt(document: Optional[str]) -> List[Cue]:
    """
    将 SRT 文本解析为有序的 Cue 列表。

    解析策略是宽松的：
      - 先去掉 \\r 与 BOM，再按一个或多个空行切分为块；
      - 序号不是整数、或第二行不是时间轴的块会被直接跳过；
      - 整个文档没有任何合法块时返回空列表，而不是抛异常，
        由调用方决定如何处理“空字幕”。
    """
    if not document:
        return []
    normalized = document.replace("\r", "").lstrip("\ufeff")
    cues: List[Cue] = []
    for block in _BLOCK_SEPARATOR.split(normalized):
        # 文档首尾的换行会在块两端留下空行
        cue = _parse_block(block.strip("\n"))
        if cue is not None:
            cues.append(cue)
    return cues


def cues_to_srt(cues: Iterable[Cue]) -> str:
    """
    parse_srt 的逆操作：每个 Cue 输出为 "index\\nstart --> end\\ntext"，
    块之间以空行分隔，末尾保留一个换行。
    """
    blocks = [f"{cue.index}\n{cue.start} --> {cue.end}\n{cue.text}" for cue in cues]
    return "\n\n".join(blocks) + "\n"
