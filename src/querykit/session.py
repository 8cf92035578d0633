"""
Connection session with nested-open reference counting.

Manifesto:
    Opening a connection per query is wasteful when a caller runs a series
    of queries; keeping one open forever leaks it.  A session opens the
    connection lazily on the first ``acquire()`` and closes it when the
    matching outermost ``release()`` brings the count back to zero, so
    callers can wrap several operations in one checkout and inner
    operations reuse the same handle.

Architecture:
    ::

        acquire()                 acquire()          release()     release()
        ─────────                 ─────────          ─────────     ─────────
        count 0 → 1               count 1 → 2        2 → 1         1 → 0
        handle = open()           (reuse handle)     (keep open)   close(handle)
                                                                   handle = None

    Invariant: ``handle is not None`` iff ``ref_count > 0``.

Guardrails:
    ❌ Pairing ``acquire()``/``release()`` by hand around code that can raise
    ✅ ``with session.checkout(): ...`` releases on every exit path

    ❌ Sharing one session across threads that run queries concurrently
    ✅ One session per thread; the internal lock only keeps the counter and
       handle consistent, it does not serialize use of the connection

Tags:
    querykit, connection, session, reference-counting

Doc-Types:
    api-reference
"""

from __future__ import annotations

import threading
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from querykit.adapters.base import DatabaseAdapter
from querykit.logging import get_logger

logger = get_logger(__name__)


class ConnectionSession:
    """Owns the lifecycle of one logical connection for one adapter."""

    def __init__(self, adapter: DatabaseAdapter):
        self.adapter = adapter
        self.handle: Any = None
        self.ref_count = 0
        self.lock = threading.RLock()

    @property
    def is_open(self) -> bool:
        return self.handle is not None

    def acquire(self) -> None:
        """Open the connection if needed and take a reference.

        Connection failures propagate; the count is left unchanged.
        """
        with self.lock:
            if self.handle is None:
                self.handle = self.adapter.open_connection()
                logger.info("connection_opened", engine=self.adapter.name)
            self.ref_count += 1

    def release(self) -> None:
        """Drop a reference; close the connection when the count reaches zero.

        A no-op when no connection is open.
        """
        with self.lock:
            if self.handle is None:
                return
            self.ref_count -= 1
            if self.ref_count == 0:
                handle, self.handle = self.handle, None
                self.adapter.close_connection(handle)
                logger.info("connection_closed", engine=self.adapter.name)

    @contextmanager
    def checkout(self) -> Iterator[Any]:
        """Acquire for the duration of a ``with`` block; yields the handle."""
        self.acquire()
        try:
            yield self.handle
        finally:
            self.release()

    def __enter__(self) -> ConnectionSession:
        self.acquire()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.release()

    def __repr__(self) -> str:
        return f"ConnectionSession(engine={self.adapter.name!r}, refs={self.ref_count})"


__all__ = ["ConnectionSession"]
