"""Tests for ``querykit.session``: reference-counted connection session."""

from __future__ import annotations

import threading
from unittest.mock import MagicMock

import pytest

from querykit.errors import DatabaseConnectionError
from querykit.session import ConnectionSession


def _adapter() -> MagicMock:
    adapter = MagicMock(name="adapter")
    adapter.name = "fake"
    adapter.open_connection.side_effect = lambda: MagicMock(name="connection")
    return adapter


class TestAcquireRelease:
    def test_first_acquire_opens(self):
        adapter = _adapter()
        session = ConnectionSession(adapter)
        session.acquire()
        assert session.is_open
        assert session.ref_count == 1
        adapter.open_connection.assert_called_once()

    def test_nested_acquire_reuses_handle(self):
        adapter = _adapter()
        session = ConnectionSession(adapter)
        session.acquire()
        handle = session.handle
        session.acquire()
        assert session.handle is handle
        assert session.ref_count == 2
        adapter.open_connection.assert_called_once()

    def test_close_only_on_outermost_release(self):
        adapter = _adapter()
        session = ConnectionSession(adapter)
        session.acquire()
        session.acquire()
        handle = session.handle

        session.release()
        assert session.is_open
        adapter.close_connection.assert_not_called()

        session.release()
        assert not session.is_open
        assert session.ref_count == 0
        adapter.close_connection.assert_called_once_with(handle)

    def test_release_without_handle_is_noop(self):
        adapter = _adapter()
        session = ConnectionSession(adapter)
        session.release()
        assert session.ref_count == 0
        adapter.close_connection.assert_not_called()

    def test_reopen_after_close_gives_new_handle(self):
        adapter = _adapter()
        session = ConnectionSession(adapter)
        session.acquire()
        first = session.handle
        session.release()
        session.acquire()
        assert session.handle is not first
        assert adapter.open_connection.call_count == 2

    def test_failed_open_leaves_count_unchanged(self):
        adapter = _adapter()
        adapter.open_connection.side_effect = DatabaseConnectionError("refused")
        session = ConnectionSession(adapter)
        with pytest.raises(DatabaseConnectionError):
            session.acquire()
        assert session.ref_count == 0
        assert not session.is_open


class TestCheckout:
    def test_checkout_yields_handle_and_releases(self):
        adapter = _adapter()
        session = ConnectionSession(adapter)
        with session.checkout() as handle:
            assert handle is session.handle
            assert session.ref_count == 1
        assert not session.is_open

    def test_checkout_releases_on_error(self):
        adapter = _adapter()
        session = ConnectionSession(adapter)
        with pytest.raises(RuntimeError):
            with session.checkout():
                raise RuntimeError("boom")
        assert session.ref_count == 0
        adapter.close_connection.assert_called_once()

    def test_context_manager_protocol(self):
        adapter = _adapter()
        with ConnectionSession(adapter) as session:
            assert session.is_open
        assert not session.is_open


class TestThreadSafety:
    def test_concurrent_acquire_release_keeps_count_consistent(self):
        adapter = _adapter()
        session = ConnectionSession(adapter)
        session.acquire()

        def worker():
            for _ in range(200):
                session.acquire()
                session.release()

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert session.ref_count == 1
        adapter.open_connection.assert_called_once()
        session.release()
        assert not session.is_open
