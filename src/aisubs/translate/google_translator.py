from __future__ import annotations

from typing import Dict, List, Optional, Sequence

import requests

from aisubs.errors import (
    InvalidTranslationRequest,
    QuotaExceeded,
    TransientServiceError,
)
from aisubs.logging_utils import get_logger

from .translator import TranslationEngine


logger = get_logger(__name__)


class GoogleTranslator(TranslationEngine):
    """
    使用 Google 翻译兼容接口（translate_a/single）的简单翻译引擎。

    每个 batch 以换行符拼接成一个文本块发送，返回结果再按换行拆分；
    条数不一致时交由调度层补齐或截断。单条字幕内部的换行在发送前
    被替换为空格，以免破坏拆分。

    已知限制：多行字幕（如两行对白）经此引擎翻译后会合并为单行，
    原有的行结构无法恢复。需要保留换行时请使用 openai 引擎。

    不需要 API key，适合作为没有 OpenAI key 时的备选引擎。
    """

    name = "google"

    def __init__(
        self,
        base_url: str = "https://translate.googleapis.com",
        source_lang: str = "auto",
        timeout: float = 10.0,
        proxies: Optional[Dict[str, str]] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.source_lang = source_lang or "auto"
        self.timeout = timeout
        self.proxies = proxies

    def _endpoint(self) -> str:
        return f"{self.base_url}/translate_a/single"

    def _request(self, text: str, target_lang: str) -> str:
        params = {
            "client": "gtx",
            "sl": self.source_lang,
            "tl": target_lang,
            "dt": "t",
            "q": text,
        }
        headers = {
            "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) aisubs/0.1.0",
        }
        try:
            resp = requests.get(
                self._endpoint(),
                params=params,
                timeout=self.timeout,
                headers=headers,
                proxies=self.proxies,
            )
        except (requests.ConnectionError, requests.Timeout) as exc:
            raise TransientServiceError(f"Google translate unreachable: {exc}") from exc

        if resp.status_code == 429:
            raise QuotaExceeded("Google translate rate limited", status_code=429)
        if resp.status_code >= 500:
            raise TransientServiceError(
                f"Google translate error {resp.status_code}",
                status_code=resp.status_code,
            )
        if resp.status_code >= 400:
            raise InvalidTranslationRequest(
                f"Google translate rejected request ({resp.status_code})",
                status_code=resp.status_code,
            )

        try:
            data = resp.json()
        except ValueError as exc:
            raise InvalidTranslationRequest("Google translate returned non-JSON") from exc

        translated_parts: List[str] = []
        if isinstance(data, list) and data and isinstance(data[0], list):
            for part in data[0]:
                if isinstance(part, list) and part and part[0] is not None:
                    translated_parts.append(str(part[0]))
        if not translated_parts:
            raise InvalidTranslationRequest("Google translate returned an empty result")
        return "".join(translated_parts)

    def translate_batch(self, texts: Sequence[str], target_lang: str) -> List[str]:
        if not texts:
            return []
        joined = "\n".join(text.replace("\n", " ") for text in texts)
        block = self._request(joined, target_lang)
        parts = [part.strip() for part in block.strip("\n").split("\n")]
        if len(parts) != len(texts):
            logger.debug(
                "Google translate returned %d lines for %d texts", len(parts), len(texts)
            )
        return parts
