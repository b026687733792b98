from __future__ import annotations

import json
import re
from typing import Any, Dict, List, Optional, Sequence

import requests

from aisubs.errors import (
    InvalidTranslationRequest,
    QuotaExceeded,
    ServiceNotConfigured,
    TransientServiceError,
    TranslationAuthError,
    TranslationServiceError,
)
from aisubs.logging_utils import get_logger

from .translator import TranslationEngine


logger = get_logger(__name__)

SYSTEM_PROMPT = (
    "You are a professional subtitle translator. "
    "You receive a JSON object with a target_language and a list of subtitle texts. "
    "Translate every text into the target language, keeping line breaks inside a text "
    "and keeping the tone natural for on-screen subtitles. "
    "Reply with a JSON array of strings only, one translated string per input text, "
    "in the same order and with exactly the same number of elements."
)


def _retry_after(response: requests.Response) -> Optional[float]:
    value = response.headers.get("Retry-After")
    if not value:
        return None
    try:
        return float(value)
    except ValueError:
        return None


class LLMTranslator(TranslationEngine):
    """
    使用 OpenAI Chat Completions 兼容接口的翻译引擎。

    每个 batch 发起一次请求：请求体为 {target_language, texts} 的 JSON，
    要求模型返回等长的 JSON 字符串数组。返回条数不一致时不在这里处理，
    由调度层按既定规则补齐或截断。

    HTTP 错误映射：
      - 401 / 403         -> TranslationAuthError
      - 429               -> QuotaExceeded
      - 400 / 404 / 422   -> InvalidTranslationRequest
      - 5xx / 超时 / 连接失败 -> TransientServiceError
    """

    name = "openai"

    def __init__(
        self,
        api_key: Optional[str],
        model: str = "gpt-3.5-turbo",
        base_url: str = "https://api.openai.com/v1",
        max_tokens: int = 2000,
        temperature: float = 0.3,
        organization: Optional[str] = None,
        timeout: float = 60.0,
        proxies: Optional[Dict[str, str]] = None,
    ) -> None:
        if not api_key:
            raise ServiceNotConfigured("OpenAI API key not configured", "OpenAI")
        self.api_key = api_key
        self.model = model
        self.url = f"{base_url.rstrip('/')}/chat/completions"
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.organization = organization
        self.timeout = timeout
        self.proxies = proxies

        # 清理译文中的控制字符（保留换行）
        self._control_chars_pattern = re.compile(r"[\u0000-\u0009\u000B-\u001F\u007F]")

    def _headers(self) -> Dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.api_key}",
        }
        if self.organization:
            headers["OpenAI-Organization"] = self.organization
        return headers

    def _raise_for_status(self, response: requests.Response) -> None:
        status = response.status_code
        if status < 400:
            return
        snippet = response.text[:300]
        if status in {401, 403}:
            raise TranslationAuthError(
                f"Translation provider rejected credentials ({status})",
                status_code=status,
            )
        if status == 429:
            raise QuotaExceeded(
                f"Translation provider quota exceeded: {snippet}",
                status_code=status,
                retry_after=_retry_after(response),
            )
        if status >= 500:
            raise TransientServiceError(
                f"Translation provider error {status}: {snippet}",
                status_code=status,
                retry_after=_retry_after(response),
            )
        raise InvalidTranslationRequest(
            f"Translation request rejected ({status}): {snippet}",
            status_code=status,
        )

    def _call_chat(self, user_payload: Dict[str, Any]) -> str:
        body = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": json.dumps(user_payload, ensure_ascii=False)},
            ],
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }
        try:
            response = requests.post(
                self.url,
                headers=self._headers(),
                data=json.dumps(body),
                timeout=self.timeout,
                proxies=self.proxies,
            )
        except (requests.ConnectionError, requests.Timeout) as exc:
            raise TransientServiceError(f"Translation provider unreachable: {exc}") from exc
        except requests.RequestException as exc:
            raise TranslationServiceError(f"Translation request failed: {exc}") from exc

        self._raise_for_status(response)

        try:
            data = response.json()
        except ValueError as json_err:
            raise InvalidTranslationRequest(
                f"LLM response is not valid JSON, first 500 chars: {response.text[:500]}"
            ) from json_err

        choices = data.get("choices") if isinstance(data, dict) else None
        if not choices:
            raise InvalidTranslationRequest("LLM response missing 'choices' field")

        first = choices[0]
        content: Optional[str] = None
        message = first.get("message")
        if isinstance(message, dict):
            content = message.get("content")
        # 某些实现直接在 text 字段返回
        if content is None and "text" in first:
            content = first.get("text")
        if not content:
            raise InvalidTranslationRequest("LLM response missing content in first choice")
        return content

    @staticmethod
    def _strip_code_fence(content: str) -> str:
        text = content.strip()
        if text.startswith("```"):
            text = re.sub(r"^```[a-zA-Z]*\s*", "", text)
            text = re.sub(r"\s*```$", "", text)
        return text

    def _parse_translations(self, content: str) -> List[str]:
        try:
            parsed = json.loads(self._strip_code_fence(content))
        except json.JSONDecodeError as parse_err:
            raise InvalidTranslationRequest(
                f"LLM returned non-JSON content (first 500 chars): {content[:500]}"
            ) from parse_err

        if isinstance(parsed, dict):
            parsed = parsed.get("translations")
        if not isinstance(parsed, list):
            raise InvalidTranslationRequest("LLM response is not a JSON array of strings")
        return [self._control_chars_pattern.sub("", str(item)) for item in parsed]

    def translate_batch(self, texts: Sequence[str], target_lang: str) -> List[str]:
        if not texts:
            return []
        payload = {"target_language": target_lang, "texts": list(texts)}
        content = self._call_chat(payload)
        translations = self._parse_translations(content)
        logger.debug(
            "LLM translated batch: %d in, %d out (model=%s)",
            len(texts),
            len(translations),
            self.model,
        )
        return translations
