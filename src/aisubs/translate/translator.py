from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable, List, Sequence


# translate_batch(texts, target_lang) -> translated_texts
BatchTranslateFn = Callable[[Sequence[str], str], List[str]]


class TranslationEngine(ABC):
    """
    翻译引擎抽象接口。

    所有具体翻译实现（OpenAI 兼容 LLM / Google）都应遵循该接口，
    以便在 Pipeline 中统一调度。实例在构造后只读，可被多个请求并发使用。
    """

    name: str = "base"

    @abstractmethod
    def translate_batch(self, texts: Sequence[str], target_lang: str) -> List[str]:
        """
        将一批文本翻译为目标语言，理想情况下返回与 texts 等长、一一对应的译文列表。

        失败时应抛出 TranslationServiceError 的子类。
        """

    def __call__(self, texts: Sequence[str], target_lang: str) -> List[str]:
        return self.translate_batch(texts, target_lang)
