"""
Flattened transaction scope over a connection session.

Nested ``begin()`` calls share one native transaction; only the outermost
``commit()`` commits.  A ``rollback()`` at any depth aborts the whole
transaction and resets the count, so the remaining ``commit()`` calls of
outer scopes become no-ops until the next ``begin()``.

Example:
    >>> with executor.session.checkout():
    ...     with executor.transaction.scope():
    ...         executor.execute("INSERT INTO t (v) VALUES (@0)", 1)
    ...         executor.execute("INSERT INTO t (v) VALUES (@0)", 2)
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

from querykit.adapters.base import NativeTransaction
from querykit.logging import get_logger
from querykit.session import ConnectionSession

logger = get_logger(__name__)


class TransactionScope:
    """Reference-counted transaction bound to one :class:`ConnectionSession`.

    Every method is a no-op while the session has no open connection.
    """

    def __init__(self, session: ConnectionSession):
        self.session = session
        self.handle: NativeTransaction | None = None
        self.ref_count = 0

    @property
    def current(self) -> NativeTransaction | None:
        """The active transaction, or None."""
        with self.session.lock:
            self._drop_stale()
            return self.handle

    @property
    def is_active(self) -> bool:
        return self.current is not None

    def _drop_stale(self) -> None:
        # The session closed the connection this transaction was started on.
        if self.handle is not None and self.handle.connection is not self.session.handle:
            logger.warning("transaction_discarded", engine=self.session.adapter.name)
            self.handle = None
            self.ref_count = 0

    def begin(self) -> None:
        """Start the transaction on first use; otherwise just nest deeper."""
        with self.session.lock:
            if not self.session.is_open:
                return
            self._drop_stale()
            if self.handle is None:
                self.handle = self.session.adapter.begin_transaction(self.session.handle)
                logger.debug("transaction_started", engine=self.session.adapter.name)
            self.ref_count += 1

    def commit(self) -> None:
        """Leave one nesting level; commit when the outermost level is left."""
        with self.session.lock:
            if not self.session.is_open:
                return
            self._drop_stale()
            if self.handle is None:
                return
            self.ref_count -= 1
            if self.ref_count == 0:
                handle, self.handle = self.handle, None
                handle.commit()
                logger.debug("transaction_committed", engine=self.session.adapter.name)

    def rollback(self) -> None:
        """Roll back immediately and discard every nesting level."""
        with self.session.lock:
            if not self.session.is_open:
                return
            self._drop_stale()
            if self.handle is None:
                return
            handle, self.handle = self.handle, None
            self.ref_count = 0
            handle.rollback()
            logger.info("transaction_rolled_back", engine=self.session.adapter.name)

    @contextmanager
    def scope(self) -> Iterator[NativeTransaction | None]:
        """Begin on entry, commit on normal exit, roll back on exception."""
        self.begin()
        try:
            yield self.handle
        except BaseException:
            self.rollback()
            raise
        self.commit()

    def __repr__(self) -> str:
        return f"TransactionScope(active={self.handle is not None}, refs={self.ref_count})"


__all__ = ["TransactionScope"]
