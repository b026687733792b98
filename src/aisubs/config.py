from __future__ import annotations

from dataclasses import dataclass, field
import os
from typing import Any, Dict, List, Mapping, Optional


DEFAULT_BATCH_SIZE = 30


def _env_int(env: Mapping[str, str], name: str, default: int) -> int:
    value = env.get(name, "")
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _env_float(env: Mapping[str, str], name: str, default: float) -> float:
    value = env.get(name, "")
    if not value:
        return default
    try:
        return float(value)
    except ValueError:
        return default


def _env_list(env: Mapping[str, str], name: str) -> List[str]:
    value = env.get(name, "")
    return [part.strip() for part in value.split(",") if part.strip()]


def _env_str(env: Mapping[str, str], name: str) -> Optional[str]:
    value = env.get(name, "").strip()
    return value or None


def _parse_environment(value: Optional[str]) -> str:
    env = (value or "").strip().lower()
    if env in {"production", "test"}:
        return env
    return "development"


@dataclass
class ServerConfig:
    host: str = "127.0.0.1"
    port: int = 8787
    default_lang: str = "en"
    environment: str = "development"
    cors_origin: List[str] = field(default_factory=list)


@dataclass
class OpenAIConfig:
    api_key: Optional[str] = None
    model: str = "gpt-3.5-turbo"
    max_tokens: int = 2000
    temperature: float = 0.3
    organization: Optional[str] = None
    base_url: str = "https://api.openai.com/v1"


@dataclass
class OpenSubtitlesConfig:
    api_key: Optional[str] = None
    user_agent: str = "ai-subs-translator v1.0"
    base_url: str = "https://api.opensubtitles.com/api/v1"


@dataclass
class TranslationConfig:
    engine: str = "openai"
    batch_size: int = DEFAULT_BATCH_SIZE
    # 同时发起的 batch 请求数，1 表示串行
    concurrency: int = 1
    # 整条 Pipeline 的超时（秒），由 Web 层负责执行
    pipeline_timeout: float = 120.0


@dataclass
class AppConfig:
    """
    应用级配置对象。

    所有字段都可以通过 AISUBS_* 环境变量（或 .env）覆盖，
    无法解析的数值会静默回退到默认值。
    """

    server: ServerConfig = field(default_factory=ServerConfig)
    openai: OpenAIConfig = field(default_factory=OpenAIConfig)
    opensubtitles: OpenSubtitlesConfig = field(default_factory=OpenSubtitlesConfig)
    translation: TranslationConfig = field(default_factory=TranslationConfig)
    http_proxy: Optional[str] = None
    https_proxy: Optional[str] = None

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "AppConfig":
        if env is None:
            env = os.environ

        server = ServerConfig(
            host=env.get("AISUBS_HOST", "127.0.0.1") or "127.0.0.1",
            port=_env_int(env, "AISUBS_PORT", 8787),
            default_lang=env.get("AISUBS_DEFAULT_LANG", "en") or "en",
            environment=_parse_environment(env.get("AISUBS_ENV")),
            cors_origin=_env_list(env, "AISUBS_CORS_ORIGIN"),
        )
        openai = OpenAIConfig(
            api_key=_env_str(env, "AISUBS_OPENAI_API_KEY"),
            model=env.get("AISUBS_OPENAI_MODEL", "gpt-3.5-turbo") or "gpt-3.5-turbo",
            max_tokens=_env_int(env, "AISUBS_OPENAI_MAX_TOKENS", 2000),
            temperature=_env_float(env, "AISUBS_OPENAI_TEMPERATURE", 0.3),
            organization=_env_str(env, "AISUBS_OPENAI_ORGANIZATION"),
            base_url=(
                env.get("AISUBS_OPENAI_BASE_URL", "") or "https://api.openai.com/v1"
            ).rstrip("/"),
        )
        opensubtitles = OpenSubtitlesConfig(
            api_key=_env_str(env, "AISUBS_OPENSUBTITLES_API_KEY"),
            user_agent=env.get("AISUBS_OPENSUBTITLES_USER_AGENT", "")
            or "ai-subs-translator v1.0",
            base_url=(
                env.get("AISUBS_OPENSUBTITLES_BASE_URL", "")
                or "https://api.opensubtitles.com/api/v1"
            ).rstrip("/"),
        )
        translation = TranslationConfig(
            engine=(env.get("AISUBS_TRANSLATION_ENGINE", "") or "openai").strip().lower(),
            batch_size=_env_int(env, "AISUBS_TRANSLATE_BATCH_SIZE", DEFAULT_BATCH_SIZE),
            concurrency=max(1, _env_int(env, "AISUBS_TRANSLATE_CONCURRENCY", 1)),
            pipeline_timeout=_env_float(env, "AISUBS_PIPELINE_TIMEOUT", 120.0),
        )
        return cls(
            server=server,
            openai=openai,
            opensubtitles=opensubtitles,
            translation=translation,
            http_proxy=_env_str(env, "AISUBS_HTTP_PROXY"),
            https_proxy=_env_str(env, "AISUBS_HTTPS_PROXY"),
        )

    @property
    def proxies(self) -> Optional[Dict[str, str]]:
        proxies: Dict[str, str] = {}
        if self.http_proxy:
            proxies["http"] = self.http_proxy
        if self.https_proxy:
            proxies["https"] = self.https_proxy
        return proxies or None


def validate_config(config: AppConfig) -> List[str]:
    """
    返回配置中的问题列表（为空表示配置完整）。

    这些都只是警告：缺少 key 时服务仍可启动，只是对应功能不可用。
    """
    issues: List[str] = []
    if not config.openai.api_key:
        issues.append("AISUBS_OPENAI_API_KEY is not set - translation will not work")
    if not config.opensubtitles.api_key:
        issues.append(
            "AISUBS_OPENSUBTITLES_API_KEY is not set - subtitle fetching may be limited"
        )
    if not 1 <= config.server.port <= 65535:
        issues.append(f"Invalid port: {config.server.port}. Must be between 1 and 65535")
    if not 100 <= config.openai.max_tokens <= 8000:
        issues.append(
            f"Invalid OpenAI max tokens: {config.openai.max_tokens}. "
            "Should be between 100 and 8000"
        )
    if not 0 <= config.openai.temperature <= 2:
        issues.append(
            f"Invalid OpenAI temperature: {config.openai.temperature}. "
            "Should be between 0 and 2"
        )
    if config.translation.batch_size < 1:
        issues.append(
            f"Invalid translate batch size: {config.translation.batch_size}. Must be >= 1"
        )
    return issues


def config_status(config: AppConfig) -> Dict[str, Any]:
    """
    供 /status 使用的配置摘要，只暴露 key 是否存在，不暴露 key 本身。
    """
    return {
        "server": {
            "port": config.server.port,
            "environment": config.server.environment,
            "default_lang": config.server.default_lang,
            "has_cors_origin": bool(config.server.cors_origin),
        },
        "openai": {
            "has_api_key": bool(config.openai.api_key),
            "model": config.openai.model,
            "max_tokens": config.openai.max_tokens,
            "temperature": config.openai.temperature,
            "has_organization": bool(config.openai.organization),
        },
        "opensubtitles": {
            "has_api_key": bool(config.opensubtitles.api_key),
            "user_agent": config.opensubtitles.user_agent,
            "base_url": config.opensubtitles.base_url,
        },
        "translation": {
            "engine": config.translation.engine,
            "batch_size": config.translation.batch_size,
            "concurrency": config.translation.concurrency,
            "pipeline_timeout": config.translation.pipeline_timeout,
        },
        "validation": validate_config(config),
    }
