from __future__ import annotations

import time
from typing import List, Optional

from .config import DEFAULT_BATCH_SIZE, AppConfig
from .errors import EmptyDocument, SourceServiceError, TranslationServiceError
from .logging_utils import get_logger
from .sources import FetchSubtitlesFn
from .subtitles import Cue, cues_to_srt, parse_srt, srt_to_vtt
from .translate import BatchTranslateFn, translate_all


logger = get_logger(__name__)


def needs_translation(source_lang: str, target_lang: Optional[str]) -> bool:
    """目标语言为空、仅含空白或与原语言相同（忽略大小写）时不翻译。"""
    if not target_lang or not target_lang.strip():
        return False
    return target_lang.strip().lower() != source_lang.strip().lower()


class SubtitlePipeline:
    """
    字幕翻译主 Pipeline：fetch -> parse -> (translate) -> SRT -> WebVTT。

    source / translator 以可调用对象注入（SubtitleSource、TranslationEngine
    或任意同签名函数），每次请求可使用各自的凭据。Pipeline 自身不保存
    跨请求的可变状态。
    """

    def __init__(
        self,
        source: FetchSubtitlesFn,
        translator: Optional[BatchTranslateFn] = None,
        batch_size: int = DEFAULT_BATCH_SIZE,
        max_workers: int = 1,
    ) -> None:
        self.source = source
        self.translator = translator
        self.batch_size = batch_size
        self.max_workers = max_workers

    @classmethod
    def from_config(
        cls,
        config: AppConfig,
        source: FetchSubtitlesFn,
        translator: Optional[BatchTranslateFn] = None,
    ) -> "SubtitlePipeline":
        return cls(
            source=source,
            translator=translator,
            batch_size=config.translation.batch_size,
            max_workers=config.translation.concurrency,
        )

    def run_fetch(self, video_id: str, lang: str) -> str:
        try:
            document = self.source(video_id, lang)
        except SourceServiceError:
            raise
        except Exception as exc:
            raise SourceServiceError(f"Fetching subtitles failed: {exc}") from exc
        logger.info(
            "Subtitles fetched: video=%s lang=%s size=%d", video_id, lang, len(document or "")
        )
        return document or ""

    def run_parse(self, document: str) -> List[Cue]:
        cues = parse_srt(document)
        if not cues:
            raise EmptyDocument("No valid subtitle cues found in fetched content")
        return cues

    def run_translation(self, cues: List[Cue], target_lang: str) -> List[Cue]:
        if self.translator is None:
            raise TranslationServiceError("No translation engine configured")
        started = time.monotonic()
        translated = translate_all(
            cues,
            target_lang,
            self.translator,
            max_batch_size=self.batch_size,
            max_workers=self.max_workers,
        )
        logger.info(
            "Translation completed: cues=%d target=%s elapsed=%.2fs",
            len(translated),
            target_lang,
            time.monotonic() - started,
        )
        return translated

    def translate(
        self,
        video_id: str,
        source_lang: str,
        target_lang: Optional[str] = None,
    ) -> str:
        """
        端到端执行，返回 WebVTT 文本。

        target_lang 为空或与 source_lang 相同时跳过翻译，仅做格式转换。
        """
        started = time.monotonic()
        document = self.run_fetch(video_id, source_lang)
        cues = self.run_parse(document)

        if needs_translation(source_lang, target_lang):
            logger.info(
                "Starting translation: video=%s from=%s to=%s cues=%d",
                video_id,
                source_lang,
                target_lang,
                len(cues),
            )
            cues = self.run_translation(cues, target_lang)  # type: ignore[arg-type]

        vtt = srt_to_vtt(cues_to_srt(cues))
        logger.info(
            "Pipeline completed: video=%s cues=%d output=%d elapsed=%.2fs",
            video_id,
            len(cues),
            len(vtt),
            time.monotonic() - started,
        )
        return vtt
