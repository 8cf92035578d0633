"""Sequential reader over a binary column that owns a session checkout."""

from __future__ import annotations

import io
from typing import Any

from querykit.session import ConnectionSession


class BinaryColumnStream(io.RawIOBase):
    """
    Read-only, forward-only stream over one binary value.

    The stream holds one reference on ``session`` and releases it exactly
    once: when a read reaches the end of the data or when the stream is
    closed, whichever comes first.  Not seekable.
    """

    def __init__(self, session: ConnectionSession, cursor: Any, data: bytes | None):
        super().__init__()
        self._session: ConnectionSession | None = session
        self._cursor = cursor
        self._data = memoryview(data or b"")
        self._position = 0

    def readable(self) -> bool:
        return True

    def tell(self) -> int:
        return self._position

    def readinto(self, buffer: Any) -> int:
        if self._session is None:
            return 0
        chunk = self._data[self._position : self._position + len(buffer)]
        read = len(chunk)
        buffer[:read] = chunk
        self._position += read
        if read == 0:
            self._release()
        return read

    def _release(self) -> None:
        if self._cursor is not None:
            self._cursor.close()
            self._cursor = None
        if self._session is not None:
            session, self._session = self._session, None
            session.release()

    def close(self) -> None:
        if not self.closed:
            self._release()
        super().close()


__all__ = ["BinaryColumnStream"]
