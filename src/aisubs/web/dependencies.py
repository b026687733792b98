from __future__ import annotations

"""
Web 层与核心 Pipeline 之间的集成点。

负责按请求构造字幕来源与翻译引擎（支持请求级别传入的 API key），
以及把异常类型映射为 HTTP 状态码与 JSON 错误体。
"""

from typing import Any, Callable, Dict, Optional, Tuple

from aisubs.config import AppConfig
from aisubs.errors import (
    EmptyDocument,
    QuotaExceeded,
    ServiceNotConfigured,
    SourceServiceError,
    SubtitlesNotFound,
    TranslationAuthError,
    TranslationServiceError,
    ValidationError,
)
from aisubs.pipeline import SubtitlePipeline, needs_translation
from aisubs.sources import OpenSubtitlesSource
from aisubs.translate import get_translation_engine


# (config, source_lang, target_lang, openai_key, opensubtitles_key) -> SubtitlePipeline
PipelineFactory = Callable[
    [AppConfig, str, Optional[str], Optional[str], Optional[str]], SubtitlePipeline
]


def build_pipeline(
    config: AppConfig,
    source_lang: str,
    target_lang: Optional[str],
    openai_key: Optional[str] = None,
    opensubtitles_key: Optional[str] = None,
) -> SubtitlePipeline:
    """
    为单个请求构造 Pipeline。

    请求中携带的 key 优先于服务端配置；只有确实需要翻译时才构造翻译引擎，
    因此不翻译的请求不要求配置 OpenAI key。
    """
    source = OpenSubtitlesSource(
        api_key=opensubtitles_key or config.opensubtitles.api_key,
        user_agent=config.opensubtitles.user_agent,
        base_url=config.opensubtitles.base_url,
        proxies=config.proxies,
    )
    translator = None
    if needs_translation(source_lang, target_lang):
        translator = get_translation_engine(
            config.translation.engine,
            config,
            api_key=openai_key,
        )
    return SubtitlePipeline.from_config(config, source=source, translator=translator)


def error_to_response(exc: BaseException, environment: str) -> Tuple[int, Dict[str, Any]]:
    """
    将异常映射为 (status_code, body)。
    """
    if isinstance(exc, ValidationError):
        return 400, {"error": "Invalid request", "message": str(exc)}
    if isinstance(exc, ServiceNotConfigured):
        return 503, {
            "error": "Service unavailable",
            "message": f"{exc.service} is not properly configured",
        }
    if isinstance(exc, SubtitlesNotFound):
        return 404, {
            "error": "Subtitle service error",
            "message": "No subtitles found for this video",
        }
    if isinstance(exc, SourceServiceError):
        return 503, {
            "error": "Subtitle service error",
            "message": "Subtitle service temporarily unavailable",
        }
    if isinstance(exc, EmptyDocument):
        return 422, {"error": "Invalid subtitles", "message": str(exc)}
    if isinstance(exc, TranslationAuthError):
        return 401, {
            "error": "Translation service error",
            "message": "Translation service authentication failed",
        }
    if isinstance(exc, QuotaExceeded):
        return 429, {
            "error": "Translation service error",
            "message": "Translation service quota exceeded",
        }
    if isinstance(exc, TranslationServiceError):
        return 503, {
            "error": "Translation service error",
            "message": "Translation service temporarily unavailable",
        }
    message = (
        "An unexpected error occurred" if environment == "production" else str(exc)
    )
    return 500, {"error": "Internal server error", "message": message}
