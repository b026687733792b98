from __future__ import annotations

import re

from .errors import ValidationError


_VIDEO_ID = re.compile(r"^(tt)?\d+(:\d+:\d+)?$")
_LANGUAGE = re.compile(r"^[a-z]{2}$")


def validate_video_id(video_id: str | None) -> str:
    """
    校验视频 ID，返回去除首尾空白后的值。

    接受 tt1234567、1234567、imdb:tt1234567 以及剧集形式 tt1234567:1:2。
    """
    if not video_id or not video_id.strip():
        raise ValidationError("video parameter is required")
    value = video_id.strip()
    cleaned = re.sub(r"^[a-z]+:(?=tt|\d)", "", value, flags=re.IGNORECASE)
    if not _VIDEO_ID.match(cleaned):
        raise ValidationError(
            "video must be a valid IMDb ID (e.g., tt1234567 or 1234567)"
        )
    return value


def validate_language(lang: str | None, field: str = "lang") -> str:
    if not lang or not lang.strip():
        raise ValidationError(f"{field} parameter is required")
    value = lang.strip()
    if not _LANGUAGE.match(value):
        raise ValidationError(
            f"{field} must be a 2-letter language code (e.g., en, it, es)"
        )
    return value
