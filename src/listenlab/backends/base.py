"""Abstract base classes for pluggable transcript backends."""

from __future__ import annotations

from abc import ABC, abstractmethod

from listenlab.backends.types import Sentence


class TranscriptBackend(ABC):
    """Abstract interface for audio-to-transcript backends."""

    @abstractmethod
    def load_model(self) -> None:
        """Prepare the client.

        Raises:
            ConfigurationError: If a required credential is missing.
        """

    @abstractmethod
    def warmup(self) -> None:
        """Check that the backend is usable before the first upload."""

    @abstractmethod
    def transcribe(self, audio: bytes, mime_type: str) -> list[Sentence]:
        """Transcribe audio into ordered, timestamped, translated sentences.

        Args:
            audio: Raw bytes of the uploaded audio file.
            mime_type: MIME type of the audio (e.g. "audio/mpeg").

        Returns:
            Sentences in transcript order.

        Raises:
            ConfigurationError: If the backend is not configured.
            ServiceError: On transport failure, empty or unparseable response.
        """

    def supports_mime_type(self, mime_type: str) -> bool:
        """Check if this backend accepts the given audio MIME type."""
        return mime_type.startswith("audio/")
