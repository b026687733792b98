"""
Tests for the OpenSubtitles source and translation engine clients (HTTP mocked).
"""

import json

import pytest
import requests

from aisubs.config import AppConfig
from aisubs.errors import (
    InvalidTranslationRequest,
    QuotaExceeded,
    ServiceNotConfigured,
    SourceNetworkError,
    SourceUnavailable,
    SubtitlesNotFound,
    TransientServiceError,
    TranslationAuthError,
)
from aisubs.sources import OpenSubtitlesSource, parse_video_id
from aisubs.translate import GoogleTranslator, LLMTranslator, get_translation_engine
from aisubs.translate import google_translator, llm_translator
from aisubs.sources import opensubtitles


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=None, headers=None, encoding="utf-8"):
        self.status_code = status_code
        self._payload = payload
        self.text = text if text is not None else json.dumps(payload)
        self.headers = headers or {}
        self.encoding = encoding
        self.apparent_encoding = "utf-8"

    def json(self):
        if self._payload is None:
            raise ValueError("no json")
        return self._payload


def chat_response(content):
    return FakeResponse(payload={"choices": [{"message": {"content": content}}]})


class TestLLMTranslator:
    def test_requires_api_key(self):
        with pytest.raises(ServiceNotConfigured):
            LLMTranslator(api_key=None)

    def test_translates_batch(self, monkeypatch):
        captured = {}

        def fake_post(url, headers, data, timeout, proxies):
            captured["url"] = url
            captured["headers"] = headers
            captured["body"] = json.loads(data)
            return chat_response(json.dumps(["Ciao, mondo!", "Questo è un sottotitolo."]))

        monkeypatch.setattr(llm_translator.requests, "post", fake_post)
        engine = LLMTranslator(api_key="sk-test", model="gpt-test", base_url="http://llm/v1/")
        result = engine.translate_batch(["Hello, world!", "This is a subtitle."], "it")

        assert result == ["Ciao, mondo!", "Questo è un sottotitolo."]
        assert captured["url"] == "http://llm/v1/chat/completions"
        assert captured["headers"]["Authorization"] == "Bearer sk-test"
        assert captured["body"]["model"] == "gpt-test"
        user = json.loads(captured["body"]["messages"][1]["content"])
        assert user == {"target_language": "it", "texts": ["Hello, world!", "This is a subtitle."]}

    def test_accepts_object_and_code_fence(self, monkeypatch):
        content = '```json\n{"translations": ["A", "B"]}\n```'
        monkeypatch.setattr(llm_translator.requests, "post", lambda *a, **k: chat_response(content))
        engine = LLMTranslator(api_key="sk")
        assert engine(["a", "b"], "de") == ["A", "B"]

    def test_non_json_content(self, monkeypatch):
        monkeypatch.setattr(
            llm_translator.requests, "post", lambda *a, **k: chat_response("Sure! Here you go")
        )
        with pytest.raises(InvalidTranslationRequest):
            LLMTranslator(api_key="sk").translate_batch(["a"], "de")

    @pytest.mark.parametrize(
        "status, error",
        [
            (401, TranslationAuthError),
            (403, TranslationAuthError),
            (429, QuotaExceeded),
            (400, InvalidTranslationRequest),
            (500, TransientServiceError),
            (503, TransientServiceError),
        ],
    )
    def test_status_mapping(self, monkeypatch, status, error):
        response = FakeResponse(status_code=status, text="error", headers={"Retry-After": "7"})
        monkeypatch.setattr(llm_translator.requests, "post", lambda *a, **k: response)
        with pytest.raises(error) as excinfo:
            LLMTranslator(api_key="sk").translate_batch(["a"], "de")
        assert excinfo.value.status_code == status

    def test_quota_retry_after(self, monkeypatch):
        response = FakeResponse(status_code=429, text="slow", headers={"Retry-After": "7"})
        monkeypatch.setattr(llm_translator.requests, "post", lambda *a, **k: response)
        with pytest.raises(QuotaExceeded) as excinfo:
            LLMTranslator(api_key="sk").translate_batch(["a"], "de")
        assert excinfo.value.retry_after == 7.0

    def test_connection_error_is_transient(self, monkeypatch):
        def boom(*args, **kwargs):
            raise requests.ConnectionError("refused")

        monkeypatch.setattr(llm_translator.requests, "post", boom)
        with pytest.raises(TransientServiceError):
            LLMTranslator(api_key="sk").translate_batch(["a"], "de")

    def test_empty_batch_makes_no_request(self, monkeypatch):
        def never(*args, **kwargs):
            raise AssertionError("unexpected request")

        monkeypatch.setattr(llm_translator.requests, "post", never)
        assert LLMTranslator(api_key="sk").translate_batch([], "de") == []


class TestGoogleTranslator:
    def test_joins_and_splits_lines(self, monkeypatch):
        captured = {}

        def fake_get(url, params, timeout, headers, proxies):
            captured["params"] = params
            return FakeResponse(payload=[[["Ciao\n", "Ciao\n"], ["Mondo", "World two"]]])

        monkeypatch.setattr(google_translator.requests, "get", fake_get)
        result = GoogleTranslator().translate_batch(["Hello", "World\ntwo"], "it")
        assert result == ["Ciao", "Mondo"]
        assert captured["params"]["q"] == "Hello\nWorld two"
        assert captured["params"]["tl"] == "it"

    def test_multi_line_cue_comes_back_as_one_line(self, monkeypatch):
        def fake_get(url, params, timeout, headers, proxies):
            assert params["q"] == "First line second line"
            return FakeResponse(payload=[[["Prima riga seconda riga", "x"]]])

        monkeypatch.setattr(google_translator.requests, "get", fake_get)
        result = GoogleTranslator().translate_batch(["First line\nsecond line"], "it")
        assert result == ["Prima riga seconda riga"]

    def test_rate_limit(self, monkeypatch):
        monkeypatch.setattr(
            google_translator.requests, "get", lambda *a, **k: FakeResponse(status_code=429, text="")
        )
        with pytest.raises(QuotaExceeded):
            GoogleTranslator().translate_batch(["a"], "it")


class TestFactory:
    def test_openai_engine_uses_request_key(self):
        config = AppConfig.from_env({"AISUBS_OPENAI_API_KEY": "sk-server"})
        engine = get_translation_engine("openai", config, api_key="sk-request")
        assert isinstance(engine, LLMTranslator)
        assert engine.api_key == "sk-request"

    def test_openai_engine_without_key(self):
        with pytest.raises(ServiceNotConfigured):
            get_translation_engine("llm", AppConfig.from_env({}))

    def test_google_engine(self):
        assert isinstance(get_translation_engine("google", AppConfig.from_env({})), GoogleTranslator)

    def test_unknown_engine(self):
        with pytest.raises(ValueError):
            get_translation_engine("babelfish", AppConfig.from_env({}))


class TestParseVideoId:
    @pytest.mark.parametrize(
        "video_id, expected",
        [
            ("tt1234567", (1234567, None, None)),
            ("1234567", (1234567, None, None)),
            ("imdb:tt0000042", (42, None, None)),
            ("tt0944947:3:9", (944947, 3, 9)),
        ],
    )
    def test_forms(self, video_id, expected):
        assert parse_video_id(video_id) == expected

    def test_invalid(self):
        with pytest.raises(ValueError):
            parse_video_id("not-a-video")


class FakeOpenSubtitles:
    """按 (method, url) 返回预设响应的 requests.request 替身。"""

    def __init__(self, routes):
        self.routes = routes
        self.calls = []

    def __call__(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        response = self.routes[(method, url)]
        if isinstance(response, Exception):
            raise response
        return response


BASE = "https://api.opensubtitles.com/api/v1"
SEARCH_OK = FakeResponse(payload={"data": [{"attributes": {"files": [{"file_id": 99}]}}]})
DOWNLOAD_OK = FakeResponse(payload={"link": "https://dl.example/99.srt"})


class TestOpenSubtitlesSource:
    def test_requires_api_key(self):
        with pytest.raises(ServiceNotConfigured):
            OpenSubtitlesSource(api_key="")

    def test_fetches_subtitles(self, monkeypatch, sample_srt):
        fake = FakeOpenSubtitles(
            {
                ("GET", f"{BASE}/subtitles"): SEARCH_OK,
                ("POST", f"{BASE}/download"): DOWNLOAD_OK,
                ("GET", "https://dl.example/99.srt"): FakeResponse(text=sample_srt),
            }
        )
        monkeypatch.setattr(opensubtitles.requests, "request", fake)

        text = OpenSubtitlesSource(api_key="os-key").fetch_subtitles("tt1234567", "EN")

        assert text == sample_srt
        search_kwargs = fake.calls[0][2]
        assert search_kwargs["params"] == {"languages": "en", "imdb_id": 1234567}
        assert search_kwargs["headers"]["Api-Key"] == "os-key"
        assert fake.calls[1][2]["json"] == {"file_id": 99}

    def test_episode_search_params(self, monkeypatch, sample_srt):
        fake = FakeOpenSubtitles(
            {
                ("GET", f"{BASE}/subtitles"): SEARCH_OK,
                ("POST", f"{BASE}/download"): DOWNLOAD_OK,
                ("GET", "https://dl.example/99.srt"): FakeResponse(text=sample_srt),
            }
        )
        monkeypatch.setattr(opensubtitles.requests, "request", fake)
        OpenSubtitlesSource(api_key="k").fetch_subtitles("tt0944947:1:2", "it")
        assert fake.calls[0][2]["params"] == {
            "languages": "it",
            "parent_imdb_id": 944947,
            "season_number": 1,
            "episode_number": 2,
        }

    def test_no_results(self, monkeypatch):
        fake = FakeOpenSubtitles({("GET", f"{BASE}/subtitles"): FakeResponse(payload={"data": []})})
        monkeypatch.setattr(opensubtitles.requests, "request", fake)
        with pytest.raises(SubtitlesNotFound):
            OpenSubtitlesSource(api_key="k").fetch_subtitles("tt1", "en")

    def test_http_404(self, monkeypatch):
        fake = FakeOpenSubtitles({("GET", f"{BASE}/subtitles"): FakeResponse(status_code=404, text="")})
        monkeypatch.setattr(opensubtitles.requests, "request", fake)
        with pytest.raises(SubtitlesNotFound):
            OpenSubtitlesSource(api_key="k").fetch_subtitles("tt1", "en")

    def test_rate_limited(self, monkeypatch):
        fake = FakeOpenSubtitles(
            {
                ("GET", f"{BASE}/subtitles"): SEARCH_OK,
                ("POST", f"{BASE}/download"): FakeResponse(
                    status_code=429, text="", headers={"Retry-After": "30"}
                ),
            }
        )
        monkeypatch.setattr(opensubtitles.requests, "request", fake)
        with pytest.raises(SourceUnavailable) as excinfo:
            OpenSubtitlesSource(api_key="k").fetch_subtitles("tt1", "en")
        assert excinfo.value.status_code == 429
        assert excinfo.value.retry_after == 30.0

    def test_network_error(self, monkeypatch):
        fake = FakeOpenSubtitles({("GET", f"{BASE}/subtitles"): requests.Timeout("slow")})
        monkeypatch.setattr(opensubtitles.requests, "request", fake)
        with pytest.raises(SourceNetworkError):
            OpenSubtitlesSource(api_key="k").fetch_subtitles("tt1", "en")
