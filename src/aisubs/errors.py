from __future__ import annotations

"""
aisubs 的异常层级。

底层的格式错误与网络错误在组件边界处被包装为这里的类型，
Web / CLI 层只需要根据类型决定返回码或提示信息。
"""

from typing import Optional


class AisubsError(Exception):
    """Base error for the aisubs pipeline."""


class ValidationError(AisubsError):
    """Raised at the boundary when request parameters are malformed."""


class EmptyDocument(AisubsError):
    """Raised when a fetched subtitle document yields zero cues."""


class ReconstructionError(AisubsError):
    """Raised when translated texts cannot be mapped back onto the cues."""


class ServiceNotConfigured(AisubsError):
    """Raised when a required credential for an external service is missing."""

    def __init__(self, message: str, service: str) -> None:
        super().__init__(message)
        self.service = service


class ProviderError(AisubsError):
    """
    外部服务错误的公共基类，附带可选的 HTTP 状态码与 Retry-After 秒数。
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        retry_after: Optional[float] = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.retry_after = retry_after


class SourceServiceError(ProviderError):
    """Raised when fetching the original subtitles fails."""


class SourceUnavailable(SourceServiceError):
    """The subtitle source returned no usable result."""


class SubtitlesNotFound(SourceServiceError):
    """No subtitles exist for the requested video and language."""


class SourceNetworkError(SourceServiceError):
    """The subtitle source could not be reached."""


class TranslationServiceError(ProviderError):
    """Raised when a translation batch call fails as a whole."""


class TranslationAuthError(TranslationServiceError):
    """The translation provider rejected the credentials."""


class QuotaExceeded(TranslationServiceError):
    """The translation provider rate limit or quota was hit."""


class TransientServiceError(TranslationServiceError):
    """Temporary provider failure (5xx, timeout, connection reset)."""


class InvalidTranslationRequest(TranslationServiceError):
    """The provider refused the request or returned an unusable payload."""
