from __future__ import annotations

import argparse
import sys
from pathlib import Path

from .config import AppConfig
from .env import load_dotenv_if_present
from .errors import AisubsError
from .logging_utils import setup_logging
from .pipeline import SubtitlePipeline, needs_translation
from .sources import OpenSubtitlesSource
from .translate import get_translation_engine
from .validation import validate_language, validate_video_id


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="aisubs",
        description="aisubs: 获取指定视频的字幕，可选翻译为目标语言，并输出 WebVTT。",
    )
    parser.add_argument(
        "video",
        type=str,
        help="视频 ID（IMDb，如 tt1234567；剧集可用 tt1234567:1:2）。",
    )
    parser.add_argument(
        "--lang",
        type=str,
        default=None,
        help="原始字幕语言代码（默认读取 AISUBS_DEFAULT_LANG，未设置时为 en）。",
    )
    parser.add_argument(
        "--target",
        type=str,
        default=None,
        help="目标翻译语言代码（如: it, zh）。与 --lang 相同或不设置时不翻译。",
    )
    parser.add_argument(
        "--output",
        "-o",
        type=str,
        default=None,
        help="输出 VTT 文件路径；不指定时输出到标准输出。",
    )
    parser.add_argument(
        "--engine",
        type=str,
        choices=["openai", "google"],
        default=None,
        help="翻译引擎选择：openai / google（默认读取 AISUBS_TRANSLATION_ENGINE）。",
    )
    parser.add_argument(
        "--batch-size",
        type=int,
        default=None,
        help="每次翻译请求包含的字幕条数（默认 30，可通过 AISUBS_TRANSLATE_BATCH_SIZE 配置）。",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        help="日志级别（DEBUG / INFO / WARNING），默认读取 AISUBS_LOG_LEVEL。",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    # 确保在解析参数和使用配置之前加载 .env 中的环境变量
    load_dotenv_if_present()
    if argv is None:
        argv = sys.argv[1:]

    parser = build_arg_parser()
    args = parser.parse_args(argv)
    setup_logging(args.log_level, force=args.log_level is not None)

    config = AppConfig.from_env()
    if args.engine:
        config.translation.engine = args.engine
    if args.batch_size is not None:
        config.translation.batch_size = args.batch_size

    try:
        video_id = validate_video_id(args.video)
        source_lang = validate_language(args.lang or config.server.default_lang)
        target_lang = validate_language(args.target, "target") if args.target else None

        source = OpenSubtitlesSource(
            api_key=config.opensubtitles.api_key,
            user_agent=config.opensubtitles.user_agent,
            base_url=config.opensubtitles.base_url,
            proxies=config.proxies,
        )
        translator = None
        if needs_translation(source_lang, target_lang):
            translator = get_translation_engine(config.translation.engine, config)
        pipeline = SubtitlePipeline.from_config(config, source=source, translator=translator)
        vtt = pipeline.translate(video_id, source_lang, target_lang)
    except KeyboardInterrupt:
        print("\n用户中断", file=sys.stderr)
        return 1
    except (AisubsError, ValueError) as exc:
        print(f"处理失败: {exc}", file=sys.stderr)
        return 1

    if args.output:
        out_path = Path(args.output).expanduser().resolve()
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(vtt, encoding="utf-8")
        print(f"字幕已写入: {out_path}", file=sys.stderr)
    else:
        sys.stdout.write(vtt)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
