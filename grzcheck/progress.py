"""A reader that reports consumed bytes to two progress bars."""

from __future__ import annotations

import io


class DualProgressReader(io.RawIOBase):
    """Wrap a binary stream and advance a per-file and a global progress bar.

    The bars need only an ``update(n)`` method; either may be ``None``.
    """

    def __init__(self, inner, file_pb=None, global_pb=None):
        super().__init__()
        self._inner = inner
        self._bars = tuple(pb for pb in (file_pb, global_pb) if pb is not None)

    def _advance(self, count: int) -> None:
        if count > 0:
            for bar in self._bars:
                bar.update(count)

    def readable(self) -> bool:
        return True

    def read(self, size=-1) -> bytes:
        if size is None or size < 0:
            data = self._inner.read()
        else:
            data = self._inner.read(size)
        data = data or b""
        self._advance(len(data))
        return data

    def readinto(self, buffer) -> int:
        view = memoryview(buffer).cast("B")
        data = self._inner.read(len(view)) or b""
        count = len(data)
        view[:count] = data
        self._advance(count)
        return count