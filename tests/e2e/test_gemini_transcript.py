"""End-to-end check of the Gemini transcript backend."""

import pytest

from listenlab.backends.transcript.gemini import GeminiTranscriptBackend
from listenlab.scripts.transcribe_smoke import generate_silence_wav


@pytest.mark.e2e
def test_silence_returns_valid_sentences(gemini_api_key, tmp_path):
    """Silence may yield no sentences, but whatever comes back must parse."""
    wav_path = tmp_path / "silence.wav"
    generate_silence_wav(str(wav_path), duration_sec=2.0)

    backend = GeminiTranscriptBackend(api_key=gemini_api_key)
    sentences = backend.transcribe(wav_path.read_bytes(), "audio/wav")

    assert isinstance(sentences, list)
    for sentence in sentences:
        assert isinstance(sentence.text, str)
