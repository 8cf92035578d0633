"""
Query executor: parameterized execution and typed result readers.

Manifesto:
    Every public operation follows the same routine: check the session out
    (opening the connection only for the outermost call), build a command
    with bound parameters, execute, shape the rows, and release the session
    on every exit path.  Result readers differ only in the shape they build,
    so the arity of tuples and dictionaries is a runtime argument (a
    sequence of target types) rather than one method per arity.

Architecture:
    ::

        executor.get_dictionary(int, str, "SELECT id, name FROM t WHERE kind = @0", 3)
              │
              ▼
        session.checkout()          ── acquire (open if outermost)
              │
              ▼
        build_command()             ── ParameterBinder + adapter.create_command
              │                        (bound to the active transaction)
              ▼
        adapter.execute()           ── render placeholders, run on the driver
              │
              ▼
        project() each column       ── null-hiding into the target types
              │
              ▼
        cursor.close(); release     ── always, including on error

Examples:
    >>> executor = QueryExecutor(SQLiteAdapter("app.db"))
    >>> executor.execute("CREATE TABLE t (id INTEGER PRIMARY KEY, name TEXT)")
    -1
    >>> executor.execute_get_identity("INSERT INTO t (name) VALUES (@0)", "alice")
    1
    >>> executor.get(str, "SELECT name FROM t WHERE id = @0", 1)
    'alice'

Guardrails:
    ❌ Interpolating values into the SQL text
    ✅ ``@0, @1`` placeholders with arguments; lists expand for ``IN (...)``

    ❌ ``session.acquire()`` ... ``session.release()`` around code that can raise
    ✅ ``with executor.session.checkout():`` to share one connection

Tags:
    querykit, executor, query, result-readers, null-hiding

Doc-Types:
    api-reference
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from decimal import Decimal
from typing import Any

from querykit.adapters.base import DatabaseAdapter
from querykit.binding import ParameterBinder, make_in_placeholders
from querykit.command import Command
from querykit.logging import get_logger
from querykit.projection import hide_null, is_null, project, to_bytes
from querykit.session import ConnectionSession
from querykit.streams import BinaryColumnStream
from querykit.transaction import TransactionScope

logger = get_logger(__name__)

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1


class QueryExecutor:
    """
    Runs queries against one adapter through one session.

    Args:
        adapter: Engine adapter used for the executor's whole lifetime
        command_timeout: Seconds per command; negative keeps the engine default
        parameters_prefix: Placeholder prefix (``@`` gives ``@0, @1, ...``)
        parameters_starting_index: Index of the first placeholder
    """

    def __init__(
        self,
        adapter: DatabaseAdapter,
        *,
        command_timeout: int = -1,
        parameters_prefix: str = "@",
        parameters_starting_index: int = 0,
    ):
        self.adapter = adapter
        self.command_timeout = command_timeout
        self.binder = ParameterBinder(adapter, parameters_prefix, parameters_starting_index)
        self.session = ConnectionSession(adapter)
        self.transaction = TransactionScope(self.session)

    @property
    def parameters_prefix(self) -> str:
        return self.binder.prefix

    @parameters_prefix.setter
    def parameters_prefix(self, value: str) -> None:
        self.binder.prefix = value

    @property
    def parameters_starting_index(self) -> int:
        return self.binder.starting_index

    @parameters_starting_index.setter
    def parameters_starting_index(self, value: int) -> None:
        self.binder.starting_index = value

    # ── Session / transaction delegates ──────────────────────────────

    def open_connection(self) -> None:
        self.session.acquire()

    def close_connection(self) -> None:
        self.session.release()

    def begin_transaction(self) -> None:
        self.transaction.begin()

    def commit_transaction(self) -> None:
        self.transaction.commit()

    def rollback_transaction(self) -> None:
        self.transaction.rollback()

    def make_in_placeholders(self, start: int, count: int, separator: str = ", ") -> str:
        """Placeholders for an ``IN (...)`` list, without parentheses."""
        return make_in_placeholders(self.parameters_prefix, start, count, separator)

    # ── Command plumbing ─────────────────────────────────────────────

    def build_command(self, query: str, *args: Any) -> Command:
        """Bind ``args`` and build a command bound to the active transaction."""
        return self.adapter.create_command(
            query,
            self.binder.bind_all(args),
            self.command_timeout,
            self.transaction.current,
        )

    @contextmanager
    def _cursor(self, query: str, args: Sequence[Any]) -> Iterator[Any]:
        with self.session.checkout() as connection:
            cursor = self.adapter.execute(connection, self.build_command(query, *args))
            try:
                yield cursor
            finally:
                cursor.close()

    def _first_row(self, query: str, args: Sequence[Any]) -> Sequence[Any] | None:
        with self._cursor(query, args) as cursor:
            return cursor.fetchone()

    def _rows(self, query: str, args: Sequence[Any]) -> list[Sequence[Any]]:
        with self._cursor(query, args) as cursor:
            return cursor.fetchall()

    # ── Basic ────────────────────────────────────────────────────────

    def execute(self, query: str, *args: Any) -> int:
        """Execute a statement and return the number of rows affected."""
        with self._cursor(query, args) as cursor:
            return cursor.rowcount

    def execute_get_identity(self, query: str, *args: Any) -> int:
        """
        Execute an INSERT and return the identity of the inserted row.

        The identity query runs on the same connection.  A NULL or
        non-integer identity yields 0.
        """
        with self.session.checkout():
            with self._cursor(query, args):
                pass
            row = self._first_row(self.adapter.identity_query, ())

        value = row[0] if row else None
        if is_null(value):
            return 0
        try:
            identity = round(value) if isinstance(value, (float, Decimal)) else int(value)
        except (TypeError, ValueError, OverflowError):
            logger.debug("identity_unavailable", engine=self.adapter.name)
            return 0
        if not INT64_MIN <= identity <= INT64_MAX:
            logger.debug("identity_unavailable", engine=self.adapter.name)
            return 0
        return identity

    def get_object(self, query: str, *args: Any) -> Any:
        """First column of the first row as returned by the driver, or None."""
        row = self._first_row(query, args)
        return row[0] if row else None

    def get(self, target: type, query: str, *args: Any) -> Any:
        """First column of the first row projected into ``target``."""
        return project(target, self.get_object(query, *args))

    def try_get(self, target: type, query: str, *args: Any) -> tuple[bool, Any]:
        """Like :meth:`get`, also reporting whether a non-NULL value was read."""
        value = self.get_object(query, *args)
        return value is not None, project(target, value)

    def get_byte_array(self, query: str, *args: Any) -> bytes | None:
        """Column 0 of the first row as bytes; ``DatabaseError`` when it is not binary."""
        return to_bytes(self.get_object(query, *args))

    def get_binary_stream(self, query: str, *args: Any) -> BinaryColumnStream | None:
        """
        Stream column 0 of the first row.

        The session stays checked out until the stream is exhausted or
        closed.  Returns None, with the session released, when there is no row.
        A non-binary column raises ``DatabaseError``, also with the session released.
        """
        self.session.acquire()
        cursor = None
        try:
            cursor = self.adapter.execute(self.session.handle, self.build_command(query, *args))
            row = cursor.fetchone()
            if row is not None:
                return BinaryColumnStream(self.session, cursor, to_bytes(row[0]))
        except BaseException:
            if cursor is not None:
                cursor.close()
            self.session.release()
            raise

        cursor.close()
        self.session.release()
        return None

    def get_fields(self, query: str, *args: Any) -> list[Any] | None:
        """All columns of the first row, or None when there is no row."""
        row = self._first_row(query, args)
        return list(row) if row is not None else None

    def get_list(self, target: type, query: str, *args: Any) -> list[Any]:
        """Column 0 of every row projected into ``target``."""
        return [project(target, row[0]) for row in self._rows(query, args)]

    def get_table(self, query: str, *args: Any) -> list[dict[str, Any]]:
        """Every row as a ``{column: value}`` dict."""
        with self._cursor(query, args) as cursor:
            columns = [desc[0] for desc in cursor.description or ()]
            return [dict(zip(columns, row, strict=False)) for row in cursor.fetchall()]

    # ── Tuples, lists, dictionaries ──────────────────────────────────

    @staticmethod
    def _project_row(targets: Sequence[type], row: Sequence[Any], offset: int = 0) -> tuple:
        return tuple(project(t, row[offset + i]) for i, t in enumerate(targets))

    def get_tuple(self, targets: Sequence[type], query: str, *args: Any) -> tuple:
        """
        Columns ``0..len(targets)-1`` of the first row as a tuple.

        Without a row, every element is the zero value of its target.
        """
        row = self._first_row(query, args)
        if row is None:
            return tuple(hide_null(t, None) for t in targets)
        return self._project_row(targets, row)

    def get_tuple_list(self, targets: Sequence[type], query: str, *args: Any) -> list[tuple]:
        return [self._project_row(targets, row) for row in self._rows(query, args)]

    def get_dictionary(self, key_type: type, value_type: type, query: str, *args: Any) -> dict:
        """
        Column 0 → column 1.

        Rows with a NULL key are skipped; the first row for a key wins.
        """
        result: dict[Any, Any] = {}
        for row in self._rows(query, args):
            if is_null(row[0]):
                continue
            key = project(key_type, row[0])
            if key not in result:
                result[key] = project(value_type, row[1])
        return result

    def get_list_dictionary(self, key_type: type, value_type: type, query: str, *args: Any) -> dict:
        """Column 1 grouped into lists by column 0 (NULL keys skipped)."""
        result: dict[Any, list[Any]] = {}
        for row in self._rows(query, args):
            if is_null(row[0]):
                continue
            key = project(key_type, row[0])
            result.setdefault(key, []).append(project(value_type, row[1]))
        return result

    def get_tuple_dictionary(
        self, key_type: type, value_types: Sequence[type], query: str, *args: Any
    ) -> dict:
        """Column 0 → tuple of columns ``1..k``; the first row for a key wins."""
        result: dict[Any, tuple] = {}
        for row in self._rows(query, args):
            if is_null(row[0]):
                continue
            key = project(key_type, row[0])
            if key not in result:
                result[key] = self._project_row(value_types, row, offset=1)
        return result

    def get_tuple_list_dictionary(
        self, key_type: type, value_types: Sequence[type], query: str, *args: Any
    ) -> dict:
        """Tuples of columns ``1..k`` grouped into lists by column 0."""
        result: dict[Any, list[tuple]] = {}
        for row in self._rows(query, args):
            if is_null(row[0]):
                continue
            key = project(key_type, row[0])
            result.setdefault(key, []).append(self._project_row(value_types, row, offset=1))
        return result

    def __repr__(self) -> str:
        return f"QueryExecutor(adapter={self.adapter!r}, session={self.session!r})"


__all__ = ["QueryExecutor"]
