"""
Segment playback synchronized to transcript timestamps.

The controller exclusively owns one media transport (the browser's audio
element, reached through RemoteTransport) and tracks which sentence is
"active". Two kinds of playback converge on pause:

    Idle -> Playing(continuous)   user operates the transport directly
    Idle -> Playing(segment)      play_segment() with an end bound
    Playing(segment) -> Idle      position reaches the end bound

State transitions are pure functions of (state, current_time) so they can be
tested without any media backend; PlaybackController applies them to the
transport.

Buffers:
    SEGMENT_PREROLL_SEC: Seek this far before a sentence on segment replay so
        its onset is not clipped by seek latency.
    CONTINUOUS_LOOKAHEAD_SEC: During continuous playback a sentence becomes
        active this much before its start time to hide highlight lag.
"""

from __future__ import annotations

import os
from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from dataclasses import dataclass, replace
from enum import Enum

from listenlab.backends.types import Sentence

SEGMENT_PREROLL_SEC = float(os.getenv("SEGMENT_PREROLL_SEC", "0.5"))
CONTINUOUS_LOOKAHEAD_SEC = float(os.getenv("CONTINUOUS_LOOKAHEAD_SEC", "0.2"))


class PlaybackMode(str, Enum):
    IDLE = "idle"
    CONTINUOUS = "continuous"
    SEGMENT = "segment"


@dataclass(frozen=True)
class PlaybackState:
    """
    Playback cursor bookkeeping.

    The position itself is owned by the transport and is not duplicated here.

    Attributes:
        active_index: Sentence currently highlighted, or None
        segment_end: When set, playback is stopped once the position reaches it
    """

    active_index: int | None = None
    segment_end: float | None = None


def segment_start(start: float) -> float:
    return max(0.0, start - SEGMENT_PREROLL_SEC)


def start_segment(state: PlaybackState, end: float, index: int) -> PlaybackState:
    """Enter segment mode: bound playback at `end` and highlight `index` now.

    The target sentence is highlighted immediately rather than whatever
    sentence the pre-roll position falls in.
    """
    return replace(state, active_index=index, segment_end=end)


def find_active_index(
    sentences: Sequence[Sentence],
    current_time: float,
    lookahead: float = CONTINUOUS_LOOKAHEAD_SEC,
) -> int | None:
    """
    Find the sentence whose window [start - lookahead, end) contains current_time.

    The first matching sentence wins, so with back-to-back sentences the
    current one stays active until its end and the look-ahead only shows
    across a gap.
    """
    for i, sentence in enumerate(sentences):
        if sentence.start_time - lookahead <= current_time < sentence.end_time:
            return i
    return None


def advance(
    state: PlaybackState,
    current_time: float,
    *,
    paused: bool,
    sentences: Sequence[Sentence],
) -> tuple[PlaybackState, bool]:
    """
    Apply one time update.

    Args:
        state: Current playback state
        current_time: Transport position in seconds
        paused: Whether the transport is paused
        sentences: Transcript in order

    Returns:
        Tuple of (new_state, should_pause). should_pause is True exactly when
        a segment play just reached its end bound.
    """
    if state.segment_end is not None:
        if current_time >= state.segment_end:
            return PlaybackState(), True
        # In segment mode the highlight stays on the requested sentence
        return state, False

    if paused or not sentences:
        return state, False

    index = find_active_index(sentences, current_time)
    if index is not None and index != state.active_index:
        return replace(state, active_index=index), False
    return state, False


TimeListener = Callable[[float], None]


class MediaTransport(ABC):
    """Abstract interface for the single audio transport a controller owns."""

    @property
    @abstractmethod
    def current_time(self) -> float:
        """Playback position in seconds."""

    @property
    @abstractmethod
    def paused(self) -> bool:
        """True when the transport is not playing."""

    @abstractmethod
    def seek(self, position: float) -> None:
        """Move the playback position."""

    @abstractmethod
    def play(self) -> None:
        """Start or resume playback."""

    @abstractmethod
    def pause(self) -> None:
        """Pause without rewinding."""

    @abstractmethod
    def subscribe(self, listener: TimeListener) -> None:
        """Register a callback invoked with the position on every time update."""

    @abstractmethod
    def unsubscribe(self, listener: TimeListener) -> None:
        """Remove a callback registered with subscribe()."""


class RemoteTransport(MediaTransport):
    """
    Mirror of an audio element that lives in the client.

    The client reports its position and paused flag via report(); commands
    issued here are queued until the connection handler drains and sends
    them. Seek/play/pause update the mirrored state immediately so the
    controller sees the effect of its own commands without a round trip.
    """

    def __init__(self) -> None:
        self._current_time = 0.0
        self._paused = True
        self._listeners: list[TimeListener] = []
        self._commands: list[dict] = []

    @property
    def current_time(self) -> float:
        return self._current_time

    @property
    def paused(self) -> bool:
        return self._paused

    def seek(self, position: float) -> None:
        self._current_time = position
        self._commands.append({"type": "seek", "time": position})

    def play(self) -> None:
        self._paused = False
        self._commands.append({"type": "play"})

    def pause(self) -> None:
        self._paused = True
        self._commands.append({"type": "pause"})

    def subscribe(self, listener: TimeListener) -> None:
        self._listeners.append(listener)

    def unsubscribe(self, listener: TimeListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def report(self, current_time: float, paused: bool) -> None:
        """Record a time update from the client and notify subscribers."""
        self._current_time = current_time
        self._paused = paused
        for listener in list(self._listeners):
            listener(current_time)

    def drain_commands(self) -> list[dict]:
        """Return and clear the commands queued for the client."""
        commands, self._commands = self._commands, []
        return commands


class PlaybackController:
    """Owns the transport and the active-sentence state for one transcript."""

    def __init__(self, transport: MediaTransport, sentences: Sequence[Sentence] = ()):
        self.transport = transport
        self.sentences: list[Sentence] = list(sentences)
        self.state = PlaybackState()
        self._closed = False
        transport.subscribe(self.on_time_update)

    @property
    def active_index(self) -> int | None:
        return self.state.active_index

    @property
    def mode(self) -> PlaybackMode:
        if self.transport.paused:
            return PlaybackMode.IDLE
        if self.state.segment_end is not None:
            return PlaybackMode.SEGMENT
        return PlaybackMode.CONTINUOUS

    def load(self, sentences: Sequence[Sentence]) -> None:
        """Replace the transcript; playback bookkeeping starts over."""
        self.sentences = list(sentences)
        self.state = PlaybackState()

    def play_segment(self, start: float, end: float, index: int) -> None:
        """Play one sentence from just before `start` up to `end`."""
        self.transport.seek(segment_start(start))
        self.state = start_segment(self.state, end, index)
        self.transport.play()

    def on_time_update(self, current_time: float) -> None:
        new_state, should_pause = advance(
            self.state,
            current_time,
            paused=self.transport.paused,
            sentences=self.sentences,
        )
        if should_pause:
            self.transport.pause()
        self.state = new_state

    def reset(self) -> None:
        """Stop playback and rewind, as when the audio file is discarded."""
        self.transport.pause()
        self.transport.seek(0.0)
        self.state = PlaybackState()

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self.transport.unsubscribe(self.on_time_update)
