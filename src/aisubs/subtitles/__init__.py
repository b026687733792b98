from __future__ import annotations

from .types import Cue
from .srt import parse_srt, cues_to_srt
from .vtt import VTT_HEADER, srt_to_vtt

__all__ = ["Cue", "parse_srt", "cues_to_srt", "srt_to_vtt", "VTT_HEADER"]
