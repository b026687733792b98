from __future__ import annotations

import re
from typing import Any, Dict, Optional, Tuple

import requests

from aisubs.errors import (
    ServiceNotConfigured,
    SourceNetworkError,
    SourceUnavailable,
    SubtitlesNotFound,
)
from aisubs.logging_utils import get_logger

from .base import SubtitleSource


logger = get_logger(__name__)

_VIDEO_ID = re.compile(r"^(?:tt)?(\d+)(?::(\d+):(\d+))?$")


def parse_video_id(video_id: str) -> Tuple[int, Optional[int], Optional[int]]:
    """
    解析视频 ID，返回 (imdb 数字 ID, season, episode)。

    支持的形式：tt1234567、1234567、imdb:tt1234567，以及剧集的 tt1234567:1:2。
    """
    cleaned = re.sub(r"^[a-z]+:(?=tt|\d)", "", video_id.strip(), flags=re.IGNORECASE)
    match = _VIDEO_ID.match(cleaned)
    if match is None:
        raise ValueError(f"Unsupported video id: {video_id}")
    imdb_id = int(match.group(1))
    season = int(match.group(2)) if match.group(2) else None
    episode = int(match.group(3)) if match.group(3) else None
    return imdb_id, season, episode


class OpenSubtitlesSource(SubtitleSource):
    """
    OpenSubtitles REST API（v1）客户端。

    流程：
      1. GET  /subtitles  按 IMDb ID 与语言搜索，取第一条结果的第一个文件；
      2. POST /download   换取临时下载链接；
      3. GET  <link>      下载 SRT 文本。
    """

    name = "opensubtitles"

    def __init__(
        self,
        api_key: Optional[str],
        user_agent: str = "ai-subs-translator v1.0",
        base_url: str = "https://api.opensubtitles.com/api/v1",
        timeout: float = 15.0,
        proxies: Optional[Dict[str, str]] = None,
    ) -> None:
        if not api_key:
            raise ServiceNotConfigured(
                "OpenSubtitles API key not configured", "OpenSubtitles"
            )
        self.api_key = api_key
        self.user_agent = user_agent
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.proxies = proxies

    def _headers(self) -> Dict[str, str]:
        return {
            "Api-Key": self.api_key,
            "User-Agent": self.user_agent,
            "Accept": "application/json",
        }

    @staticmethod
    def _check_response(response: requests.Response, what: str) -> None:
        status = response.status_code
        if status < 400:
            return
        if status == 404:
            raise SubtitlesNotFound(f"{what}: not found", status_code=status)
        retry_after: Optional[float] = None
        header = response.headers.get("Retry-After")
        if header:
            try:
                retry_after = float(header)
            except ValueError:
                retry_after = None
        raise SourceUnavailable(
            f"{what}: OpenSubtitles returned {status}",
            status_code=status,
            retry_after=retry_after,
        )

    def _send(self, method: str, url: str, what: str, **kwargs: Any) -> requests.Response:
        try:
            response = requests.request(
                method,
                url,
                timeout=self.timeout,
                proxies=self.proxies,
                **kwargs,
            )
        except (requests.ConnectionError, requests.Timeout) as exc:
            raise SourceNetworkError(f"{what}: {exc}") from exc
        except requests.RequestException as exc:
            raise SourceUnavailable(f"{what}: {exc}") from exc
        self._check_response(response, what)
        return response

    def _json(self, response: requests.Response, what: str) -> Dict[str, Any]:
        try:
            data = response.json()
        except ValueError as exc:
            raise SourceUnavailable(f"{what}: response is not valid JSON") from exc
        if not isinstance(data, dict):
            raise SourceUnavailable(f"{what}: unexpected response shape")
        return data

    def _search_file_id(self, video_id: str, lang: str) -> int:
        try:
            imdb_id, season, episode = parse_video_id(video_id)
        except ValueError as exc:
            raise SubtitlesNotFound(str(exc)) from exc

        params: Dict[str, Any] = {"languages": lang.lower()}
        if season is not None and episode is not None:
            params["parent_imdb_id"] = imdb_id
            params["season_number"] = season
            params["episode_number"] = episode
        else:
            params["imdb_id"] = imdb_id

        response = self._send(
            "GET",
            f"{self.base_url}/subtitles",
            "Subtitle search",
            params=params,
            headers=self._headers(),
        )
        data = self._json(response, "Subtitle search")
        for entry in data.get("data") or []:
            files = (entry.get("attributes") or {}).get("files") or []
            if files and files[0].get("file_id") is not None:
                return int(files[0]["file_id"])
        raise SubtitlesNotFound(f"No subtitles found for {video_id} ({lang})")

    def _download_link(self, file_id: int) -> str:
        headers = self._headers()
        headers["Content-Type"] = "application/json"
        response = self._send(
            "POST",
            f"{self.base_url}/download",
            "Subtitle download",
            json={"file_id": file_id},
            headers=headers,
        )
        link = self._json(response, "Subtitle download").get("link")
        if not link:
            raise SourceUnavailable("Subtitle download: response has no link")
        return str(link)

    def fetch_subtitles(self, video_id: str, lang: str) -> str:
        file_id = self._search_file_id(video_id, lang)
        link = self._download_link(file_id)
        response = self._send(
            "GET",
            link,
            "Subtitle file",
            headers={"User-Agent": self.user_agent},
        )
        # requests 对未声明 charset 的 text/* 默认 ISO-8859-1，这里改用内容探测
        if not response.encoding or response.encoding.lower() == "iso-8859-1":
            response.encoding = response.apparent_encoding or "utf-8"
        text = response.text
        if not text.strip():
            raise SourceUnavailable(f"Subtitle file {file_id} is empty")
        logger.debug("Downloaded subtitle file %s (%d chars)", file_id, len(text))
        return text
