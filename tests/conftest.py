from typing import List, Sequence

import pytest


SAMPLE_SRT = """1
00:00:01,000 --> 00:00:03,000
Hello, world!

2
00:00:03,500 --> 00:00:05,000
This is a sample subtitle.
"""


@pytest.fixture
def sample_srt() -> str:
    return SAMPLE_SRT


@pytest.fixture
def static_source():
    calls = []

    def fetch(video_id: str, lang: str) -> str:
        calls.append((video_id, lang))
        return SAMPLE_SRT

    fetch.calls = calls
    return fetch


@pytest.fixture
def reversing_translator():
    calls = []

    def translate(texts: Sequence[str], target_lang: str) -> List[str]:
        calls.append((list(texts), target_lang))
        return [text[::-1] for text in texts]

    translate.calls = calls
    return translate
