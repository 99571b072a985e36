"""
Uploaded audio storage.

Each upload is written to a temporary file wrapped in a MediaHandle. A
session holds at most one handle at a time in a MediaSlot; the previous
handle is released when a new upload supersedes it or when the session is
torn down. Release deletes the file exactly once.
"""

from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass, field


@dataclass
class MediaHandle:
    """A stored audio upload."""

    path: str
    mime_type: str
    filename: str = "audio"
    released: bool = field(default=False, init=False)

    @classmethod
    def from_bytes(cls, content: bytes, mime_type: str, filename: str | None = None) -> MediaHandle:
        suffix = os.path.splitext(filename or "")[1] or ".audio"
        with tempfile.NamedTemporaryFile(suffix=suffix, delete=False) as f:
            f.write(content)
            path = f.name
        return cls(path=path, mime_type=mime_type, filename=filename or "audio")

    def read(self) -> bytes:
        if self.released:
            raise ValueError(f"Media handle {self.path} was already released")
        with open(self.path, "rb") as f:
            return f.read()

    def release(self) -> bool:
        """Delete the backing file. Returns False if it was already released."""
        if self.released:
            return False
        self.released = True
        try:
            os.unlink(self.path)
        except FileNotFoundError:
            pass
        print(f"Released media {self.filename}")
        return True


class MediaSlot:
    """Holds the current media handle of a session."""

    def __init__(self) -> None:
        self._handle: MediaHandle | None = None

    @property
    def handle(self) -> MediaHandle | None:
        return self._handle

    def replace(self, handle: MediaHandle) -> None:
        """Install a new handle, releasing the one it supersedes."""
        previous, self._handle = self._handle, handle
        if previous is not None and previous is not handle:
            previous.release()

    def clear(self) -> None:
        previous, self._handle = self._handle, None
        if previous is not None:
            previous.release()
