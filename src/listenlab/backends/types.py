"""Shared data types for backend interfaces."""

from __future__ import annotations

import math
from dataclasses import dataclass


@dataclass(frozen=True)
class Sentence:
    """A single transcribed, timestamped and translated sentence."""

    text: str
    start_time: float  # seconds relative to audio start
    end_time: float
    translation: str | None = None

    @property
    def is_valid(self) -> bool:
        """True when the timing is finite, non-negative and start < end."""
        if not (math.isfinite(self.start_time) and math.isfinite(self.end_time)):
            return False
        return 0.0 <= self.start_time < self.end_time

    def to_dict(self) -> dict:
        data = {
            "text": self.text,
            "startTime": self.start_time,
            "endTime": self.end_time,
        }
        if self.translation is not None:
            data["translation"] = self.translation
        return data
