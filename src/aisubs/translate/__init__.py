from __future__ import annotations

from .translator import BatchTranslateFn, TranslationEngine
from .google_translator import GoogleTranslator
from .llm_translator import LLMTranslator
from .orchestrator import (
    align_batch,
    chunk,
    extract_texts,
    reconstruct,
    translate_all,
    translate_texts,
)
from .factory import get_translation_engine

__all__ = [
    "BatchTranslateFn",
    "TranslationEngine",
    "GoogleTranslator",
    "LLMTranslator",
    "align_batch",
    "chunk",
    "extract_texts",
    "reconstruct",
    "translate_all",
    "translate_texts",
    "get_translation_engine",
]
