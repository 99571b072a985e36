"""
Session registry for practice sessions.

Each browser page owns one session identified by a URL-safe token. A session
bundles the uploaded media, the transcript processing state, the practice
cards and the playback controller for the page's audio element.

Upload lifecycle:
    1. begin_upload(token, media) - Supersedes previous media, bumps upload_id,
       status becomes "processing"
    2. complete_upload(token, upload_id, sentences) - Installs the transcript
       if upload_id is still current, otherwise discards the stale result
    3. fail_upload(token, upload_id, message) - Same staleness rule, status
       becomes "error"
    4. unregister(token) - Teardown, releases media
"""

import asyncio
import secrets
from dataclasses import dataclass, field

from listenlab.backends.types import Sentence
from listenlab.media import MediaHandle, MediaSlot
from listenlab.playback import PlaybackController, RemoteTransport
from listenlab.practice import PracticeSession

STATUS_IDLE = "idle"
STATUS_PROCESSING = "processing"
STATUS_SUCCESS = "success"
STATUS_ERROR = "error"


@dataclass
class ProcessingState:
    status: str = STATUS_IDLE
    message: str | None = None


@dataclass
class PracticeEntry:
    """A registered practice session."""

    token: str
    media: MediaSlot = field(default_factory=MediaSlot)
    processing: ProcessingState = field(default_factory=ProcessingState)
    practice: PracticeSession = field(default_factory=PracticeSession)
    transport: RemoteTransport = field(default_factory=RemoteTransport)
    controller: PlaybackController | None = None
    upload_id: int = 0

    def __post_init__(self) -> None:
        if self.controller is None:
            self.controller = PlaybackController(self.transport)

    def clear_transcript(self, status: str = STATUS_IDLE) -> None:
        """Stop playback and drop the cards, keeping mode and difficulty."""
        self.controller.reset()
        self.controller.load([])
        self.practice = self._new_practice([])
        self.processing = ProcessingState(status=status)

    def reset(self) -> None:
        """Discard the audio and transcript; any in-flight result becomes stale."""
        self.upload_id += 1
        self.media.clear()
        self.clear_transcript()

    def _new_practice(self, sentences: list[Sentence]) -> PracticeSession:
        return PracticeSession(
            sentences,
            mode=self.practice.mode,
            difficulty=self.practice.difficulty,
            rng=self.practice.rng,
        )

    def install_transcript(self, sentences: list[Sentence]) -> None:
        self.practice = self._new_practice(sentences)
        self.controller.load(sentences)
        self.processing = ProcessingState(status=STATUS_SUCCESS)

    def close(self) -> None:
        self.media.clear()
        self.controller.close()

    def snapshot(self) -> dict:
        """Serializable view of the whole session."""
        handle = self.media.handle
        return {
            "token": self.token,
            "status": self.processing.status,
            "message": self.processing.message,
            "filename": handle.filename if handle else None,
            "mode": self.practice.mode.value,
            "difficulty": self.practice.difficulty.value,
            "active_index": self.controller.active_index,
            "playback": self.controller.mode.value,
            "sentences": self.practice.views(self.controller.active_index),
        }


class SessionRegistry:
    """Registry for practice sessions."""

    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._sessions: dict[str, PracticeEntry] = {}

    def generate_token(self) -> str:
        """Generate a unique session token."""
        return secrets.token_urlsafe(24)  # 192 bits, URL-safe

    async def create(self) -> PracticeEntry:
        async with self._lock:
            token = self.generate_token()
            while token in self._sessions:
                token = self.generate_token()
            entry = PracticeEntry(token=token)
            self._sessions[token] = entry
            return entry

    async def get(self, token: str) -> PracticeEntry | None:
        async with self._lock:
            return self._sessions.get(token)

    async def unregister(self, token: str) -> bool:
        """Remove a session and release its resources. Returns False if unknown."""
        async with self._lock:
            entry = self._sessions.pop(token, None)
        if entry is None:
            return False
        entry.close()
        return True

    async def close_all(self) -> None:
        """Tear down every session (application shutdown)."""
        async with self._lock:
            entries = list(self._sessions.values())
            self._sessions.clear()
        for entry in entries:
            entry.close()

    async def begin_upload(self, token: str, media: MediaHandle) -> int | None:
        """Start processing a new upload. Returns its upload id, or None if unknown."""
        async with self._lock:
            entry = self._sessions.get(token)
            if entry is None:
                media.release()
                return None
            entry.upload_id += 1
            entry.media.replace(media)
            entry.clear_transcript(STATUS_PROCESSING)
            return entry.upload_id

    async def complete_upload(self, token: str, upload_id: int, sentences: list[Sentence]) -> bool:
        """Install a transcript. Returns False if the result is stale or the session is gone."""
        async with self._lock:
            entry = self._sessions.get(token)
            if entry is None or entry.upload_id != upload_id:
                print(f"Discarding stale transcript for session {token[:8]}... (upload {upload_id})")
                return False
            entry.install_transcript(sentences)
            return True

    async def fail_upload(self, token: str, upload_id: int, message: str) -> bool:
        async with self._lock:
            entry = self._sessions.get(token)
            if entry is None or entry.upload_id != upload_id:
                print(f"Discarding stale error for session {token[:8]}... (upload {upload_id})")
                return False
            entry.processing = ProcessingState(status=STATUS_ERROR, message=message)
            return True


# Global registry instance
registry = SessionRegistry()
