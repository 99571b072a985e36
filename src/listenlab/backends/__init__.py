"""Pluggable backend factory functions.

The factory returns a singleton backend instance based on environment variables.
Only the selected backend is imported (lazy), so missing dependencies for other
backends don't cause ImportError.

Environment variables:
    TRANSCRIPT_BACKEND: "gemini" (default)
"""

from __future__ import annotations

import os
from functools import lru_cache

from listenlab.backends.base import TranscriptBackend


@lru_cache(maxsize=1)
def get_transcript_backend() -> TranscriptBackend:
    """Get the configured transcript backend singleton."""
    name = os.getenv("TRANSCRIPT_BACKEND", "gemini")
    if name == "gemini":
        from listenlab.backends.transcript.gemini import GeminiTranscriptBackend

        return GeminiTranscriptBackend()
    raise ValueError(f"Unknown transcript backend: {name}")
