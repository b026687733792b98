from __future__ import annotations

from typing import Optional

from aisubs.config import AppConfig

from .google_translator import GoogleTranslator
from .llm_translator import LLMTranslator
from .translator import TranslationEngine


def get_translation_engine(
    name: str,
    config: AppConfig,
    api_key: Optional[str] = None,
) -> TranslationEngine:
    """
    根据名称返回对应的翻译引擎实例。

    支持：
      - "openai" / "llm" : LLMTranslator（api_key 优先于配置中的 key，用于按请求传入凭据）
      - "google"         : GoogleTranslator
    """
    key = name.lower()
    if key in {"openai", "llm"}:
        return LLMTranslator(
            api_key=api_key or config.openai.api_key,
            model=config.openai.model,
            base_url=config.openai.base_url,
            max_tokens=config.openai.max_tokens,
            temperature=config.openai.temperature,
            organization=config.openai.organization,
            proxies=config.proxies,
        )
    if key == "google":
        return GoogleTranslator(proxies=config.proxies)
    raise ValueError(f"Unknown translation engine: {name}")
