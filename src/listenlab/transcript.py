"""
Transcript acquisition - thin shim delegating to the transcript backend.

The backend returns whatever the model produced; this module applies the
timing check so that a sentence with unusable timestamps never becomes a
practice card.

Configuration:
    TRANSCRIPT_BACKEND: Backend to use (default: "gemini")
    GEMINI_API_KEY: Credential for the Gemini backend
"""

from listenlab.backends import get_transcript_backend
from listenlab.backends.types import Sentence


def filter_valid_sentences(sentences: list[Sentence]) -> list[Sentence]:
    """Drop sentences whose timestamps are non-finite, negative or inverted."""
    valid = []
    for i, sentence in enumerate(sentences):
        if sentence.is_valid:
            valid.append(sentence)
        else:
            print(
                f"Dropping sentence {i} with invalid timing "
                f"({sentence.start_time} - {sentence.end_time}): {sentence.text[:40]!r}"
            )
    return valid


def transcribe_audio(audio: bytes, mime_type: str) -> list[Sentence]:
    """Transcribe uploaded audio and return the sentences usable for practice.

    Raises:
        ConfigurationError: If the backend credential is missing.
        ServiceError: If the backend call or response parsing fails.
    """
    backend = get_transcript_backend()
    sentences = backend.transcribe(audio, mime_type)
    return filter_valid_sentences(sentences)
