"""A reader that feeds every consumed byte into a SHA-256 hasher."""

from __future__ import annotations

import hashlib
import io


class HashingReader(io.RawIOBase):
    """Wrap a binary stream and hash exactly the bytes read through it."""

    def __init__(self, inner, hasher=None):
        super().__init__()
        self._inner = inner
        self.hasher = hasher if hasher is not None else hashlib.sha256()

    def readable(self) -> bool:
        return True

    def read(self, size=-1) -> bytes:
        if size is None or size < 0:
            data = self._inner.read()
        else:
            data = self._inner.read(size)
        data = data or b""
        if data:
            self.hasher.update(data)
        return data

    def readinto(self, buffer) -> int:
        view = memoryview(buffer).cast("B")
        data = self._inner.read(len(view)) or b""
        count = len(data)
        view[:count] = data
        if count:
            self.hasher.update(data)
        return count

    def hexdigest(self) -> str:
        """Hex digest of all bytes read so far."""
        return self.hasher.hexdigest()