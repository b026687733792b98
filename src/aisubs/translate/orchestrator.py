from __future__ import annotations

"""
分批翻译调度。

负责把 Cue 文本切成大小受限的 batch，逐批调用外部翻译能力，
再按原顺序把译文写回 Cue。核心保证：输出 Cue 的数量、顺序、
序号与时间轴都与输入完全一致，只有 text 可能变化。
"""

import re
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import replace
from typing import List, Optional, Sequence

from aisubs.config import DEFAULT_BATCH_SIZE
from aisubs.errors import (
    InvalidTranslationRequest,
    ReconstructionError,
    TranslationServiceError,
)
from aisubs.logging_utils import get_logger
from aisubs.subtitles import Cue

from .translator import BatchTranslateFn


logger = get_logger(__name__)

_BLANK_LINES = re.compile(r"\n\s*\n+")


def extract_texts(cues: Sequence[Cue]) -> List[str]:
    """
    按 Cue 顺序取出需要翻译的文本（去除首尾空白）。

    空文本的 Cue 不进入翻译集合；reconstruct 会按同样的规则跳过它们，
    因此位置关系仍可还原。
    """
    texts: List[str] = []
    for cue in cues:
        text = (cue.text or "").strip()
        if text:
            texts.append(text)
    return texts


def chunk(texts: Sequence[str], max_batch_size: int = DEFAULT_BATCH_SIZE) -> List[List[str]]:
    """将有序文本切分为连续的 batch，每个 batch 最多 max_batch_size 条。"""
    if max_batch_size < 1:
        raise ValueError(f"max_batch_size must be >= 1, got {max_batch_size}")
    return [
        list(texts[start : start + max_batch_size])
        for start in range(0, len(texts), max_batch_size)
    ]


def normalize_translation(text: str) -> str:
    """
    清理单条译文：去掉 \\r，把连续空行合并为单个换行，并去除首尾空白。

    空行在 SRT 中是块分隔符，译文里残留的空行会在序列化后切出多余的块。
    """
    cleaned = str(text).replace("\r", "")
    return _BLANK_LINES.sub("\n", cleaned).strip()


def align_batch(
    batch: Sequence[str],
    translated: Sequence[str],
    batch_number: int,
) -> List[str]:
    """
    将单个 batch 的译文数量对齐到输入数量。

      - 译文偏少：用该 batch 末尾对应的原文补齐；
      - 译文偏多：截断为前 len(batch) 条。
    两种情况都只记录警告，不视为失败。每条译文先经 normalize_translation 清理。
    """
    result = [normalize_translation(text) for text in translated]
    expected = len(batch)
    if len(result) < expected:
        logger.warning(
            "Batch %d: provider returned %d of %d texts, keeping %d original text(s)",
            batch_number,
            len(result),
            expected,
            expected - len(result),
        )
        result.extend(batch[len(result) :])
    elif len(result) > expected:
        logger.warning(
            "Batch %d: provider returned %d texts for %d inputs, extra output dropped",
            batch_number,
            len(result),
            expected,
        )
        result = result[:expected]
    return result


def _translate_one_batch(
    translate_batch: BatchTranslateFn,
    batch: List[str],
    target_lang: str,
    batch_number: int,
) -> List[str]:
    try:
        translated = translate_batch(batch, target_lang)
    except TranslationServiceError:
        raise
    except Exception as exc:
        raise TranslationServiceError(
            f"Translation batch {batch_number} failed: {exc}"
        ) from exc
    if translated is None:
        raise InvalidTranslationRequest(
            f"Translation batch {batch_number} returned no result"
        )
    return align_batch(batch, list(translated), batch_number)


def translate_texts(
    texts: Sequence[str],
    target_lang: str,
    translate_batch: BatchTranslateFn,
    max_batch_size: int = DEFAULT_BATCH_SIZE,
    max_workers: int = 1,
) -> List[str]:
    """
    分批翻译一组文本，返回按原顺序拼接的译文列表。

    max_workers > 1 时各 batch 并行请求，但结果始终按 batch 序号归位，
    不依赖完成顺序。任一 batch 失败都会使整体失败。
    """
    batches = chunk(texts, max_batch_size)
    if not batches:
        return []

    results: List[Optional[List[str]]] = [None] * len(batches)
    worker_count = min(max(1, max_workers), len(batches))

    if worker_count <= 1:
        for i, batch in enumerate(batches):
            results[i] = _translate_one_batch(translate_batch, batch, target_lang, i + 1)
    else:
        with ThreadPoolExecutor(max_workers=worker_count) as executor:
            future_to_idx = {
                executor.submit(
                    _translate_one_batch, translate_batch, batch, target_lang, i + 1
                ): i
                for i, batch in enumerate(batches)
            }
            try:
                for future in as_completed(future_to_idx):
                    results[future_to_idx[future]] = future.result()
            except BaseException:
                for pending in future_to_idx:
                    pending.cancel()
                raise

    translated: List[str] = []
    for batch_result in results:
        translated.extend(batch_result or [])
    return translated


def reconstruct(cues: Sequence[Cue], translated_texts: Sequence[str]) -> List[Cue]:
    """
    把译文按顺序写回 Cue。

    原文非空的 Cue 依次消费一条译文，原文为空的 Cue 原样保留；
    多出来的译文被忽略，不足时抛出 ReconstructionError。
    """
    needed = len(extract_texts(cues))
    if len(translated_texts) < needed:
        raise ReconstructionError(
            f"Expected {needed} translated texts, got {len(translated_texts)}"
        )

    output: List[Cue] = []
    position = 0
    for cue in cues:
        if (cue.text or "").strip():
            output.append(replace(cue, text=translated_texts[position]))
            position += 1
        else:
            output.append(replace(cue))
    return output


def translate_all(
    cues: Sequence[Cue],
    target_lang: str,
    translate_batch: BatchTranslateFn,
    max_batch_size: int = DEFAULT_BATCH_SIZE,
    max_workers: int = 1,
) -> List[Cue]:
    """
    翻译整份字幕的 text 字段，返回新的 Cue 列表（不修改输入）。
    """
    texts = extract_texts(cues)
    logger.debug(
        "Translating %d of %d cues to %s (batch size %d)",
        len(texts),
        len(cues),
        target_lang,
        max_batch_size,
    )
    translated = translate_texts(
        texts,
        target_lang,
        translate_batch,
        max_batch_size=max_batch_size,
        max_workers=max_workers,
    )
    return reconstruct(cues, translated)
