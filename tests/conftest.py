"""Pytest configuration and fixtures."""

import pytest

from listenlab.backends.types import Sentence


@pytest.fixture
def sample_sentences():
    """Three back-to-back sentences, five seconds each."""
    return [
        Sentence(text="Hello, how are you?", start_time=0.0, end_time=5.0, translation="你好，你好吗？"),
        Sentence(text="I am fine, thanks.", start_time=5.0, end_time=10.0, translation="我很好，谢谢。"),
        Sentence(text="See you tomorrow.", start_time=10.0, end_time=15.0, translation="明天见。"),
    ]


@pytest.fixture
def transcript_json():
    """Raw JSON as returned by the transcript model."""
    return (
        '[{"text": "Hello world.", "startTime": 0.4, "endTime": 2.1, "translation": "你好世界。"},'
        ' {"text": "Good morning.", "startTime": 2.3, "endTime": 4.0, "translation": "早上好。"}]'
    )
