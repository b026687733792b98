from __future__ import annotations

import asyncio
import time
from typing import Any, Dict, Optional

from fastapi import FastAPI, Query, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from aisubs import __version__
from aisubs.config import AppConfig, config_status, validate_config
from aisubs.env import load_dotenv_if_present
from aisubs.errors import ProviderError
from aisubs.logging_utils import get_logger, setup_logging
from aisubs.validation import validate_language, validate_video_id
from .dependencies import PipelineFactory, build_pipeline, error_to_response


logger = get_logger(__name__)


def create_app(
    config: Optional[AppConfig] = None,
    pipeline_factory: Optional[PipelineFactory] = None,
) -> FastAPI:
    """
    创建并配置 FastAPI 应用。

    - 未传入 config 时加载 .env 并从环境变量构造；
    - pipeline_factory 默认使用 OpenSubtitles + 配置中的翻译引擎，测试中可替换；
    - 注册 /、/status、/health 与 /subs 路由。
    """
    if config is None:
        load_dotenv_if_present()
        config = AppConfig.from_env()
    factory: PipelineFactory = pipeline_factory or build_pipeline

    app = FastAPI(
        title="aisubs",
        description="Serve AI-translated subtitles on demand.",
        version=__version__,
    )
    app.state.config = config

    # 未配置 CORS 白名单时允许所有来源（开发环境）
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.server.cors_origin or ["*"],
        allow_credentials=bool(config.server.cors_origin),
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next: Any) -> Response:
        logger.info(
            "%s %s client=%s",
            request.method,
            request.url.path,
            request.client.host if request.client else "-",
        )
        return await call_next(request)

    @app.get("/", response_class=JSONResponse)
    async def index() -> Dict[str, str]:
        return {
            "name": "AI Subtitle Translator Server",
            "version": __version__,
            "status": "healthy",
            "environment": config.server.environment,
        }

    @app.get("/status", response_class=JSONResponse)
    async def status() -> Dict[str, Any]:
        return config_status(config)

    @app.get("/health", response_class=JSONResponse)
    async def health() -> JSONResponse:
        """
        健康检查：配置存在问题时返回 503，便于部署探针识别。
        """
        issues = validate_config(config)
        return JSONResponse(
            {
                "status": "healthy" if not issues else "unhealthy",
                "checks": {
                    "openai": bool(config.openai.api_key),
                    "opensubtitles": bool(config.opensubtitles.api_key),
                },
                "issues": issues,
            },
            status_code=200 if not issues else 503,
        )

    @app.get("/subs")
    async def subs(
        video: Optional[str] = Query(None),
        lang: Optional[str] = Query(None),
        target: Optional[str] = Query(None),
        openai_key: Optional[str] = Query(None),
        opensubtitles_key: Optional[str] = Query(None),
    ) -> Response:
        """
        获取（并按需翻译）字幕，返回 WebVTT。
        """
        started = time.monotonic()
        try:
            video_id = validate_video_id(video)
            source_lang = validate_language(lang or config.server.default_lang)
            target_lang = validate_language(target, "target") if target else None

            pipeline = factory(
                config, source_lang, target_lang, openai_key, opensubtitles_key
            )
            vtt = await asyncio.wait_for(
                run_in_threadpool(pipeline.translate, video_id, source_lang, target_lang),
                timeout=config.translation.pipeline_timeout,
            )
        except asyncio.TimeoutError:
            logger.error(
                "Subtitle processing timed out after %.1fs: video=%s",
                config.translation.pipeline_timeout,
                video,
            )
            return JSONResponse(
                {"error": "Timeout", "message": "Subtitle processing timed out"},
                status_code=504,
            )
        except Exception as exc:
            status_code, body = error_to_response(exc, config.server.environment)
            logger.error(
                "Subtitle processing failed: %s: %s",
                type(exc).__name__,
                exc,
                exc_info=config.server.environment == "development" and status_code >= 500,
            )
            headers: Dict[str, str] = {}
            if isinstance(exc, ProviderError) and exc.retry_after is not None:
                headers["Retry-After"] = str(int(exc.retry_after))
            return JSONResponse(body, status_code=status_code, headers=headers)
        finally:
            logger.info(
                "Request finished: video=%s elapsed=%.0fms",
                video,
                (time.monotonic() - started) * 1000,
            )

        return Response(
            content=vtt,
            media_type="text/vtt",
            headers={"Cache-Control": "public, max-age=3600"},
        )

    issues = validate_config(config)
    if issues:
        logger.warning("Configuration warnings: %s", "; ".join(issues))
    return app


def main() -> None:
    """
    本地启动 Web 服务的入口。

    监听地址与端口来自 AISUBS_HOST / AISUBS_PORT（默认 127.0.0.1:8787），
    日志级别来自 AISUBS_LOG_LEVEL。
    """
    import uvicorn

    load_dotenv_if_present()
    setup_logging()
    config = AppConfig.from_env()
    uvicorn.run(create_app(config), host=config.server.host, port=config.server.port)
