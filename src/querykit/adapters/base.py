"""Database adapter base class.

Manifesto:
    All engines share the same lifecycle (open, execute, close), the same
    parameter taxonomy and the same placeholder convention (``@0, @1, ...``).
    What differs is small and declarative: the driver, its paramstyle, a
    mapping table from ``ParamType`` to the engine's type tags, blob size
    tiering and the "last inserted identity" query.  The abstract base holds
    everything shared so each adapter only declares those differences.

Features:
    - Abstract ``open_connection()`` / ``close_connection()``
    - Per-engine ``type_map`` and ``blob_tier()`` consumed by the binder
    - Placeholder rewriting into the driver's paramstyle (``qmark``/``format``)
    - ``NativeTransaction`` handle bound to one connection
    - Driver failures wrapped in ``QueryError`` with the driver error chained

Tags:
    querykit, database, abstract-base, adapter-pattern

Doc-Types:
    api-reference
"""

from __future__ import annotations

import importlib
import re
import time
from abc import ABC, abstractmethod
from typing import Any

from querykit.binding import BoundParameter, ParamType
from querykit.command import Command
from querykit.errors import ConfigError, QueryError
from querykit.logging import get_logger

from .types import DatabaseType

logger = get_logger(__name__)

# Quoted literals and identifiers; a doubled quote stays inside the literal.
_QUOTED = r"'(?:[^']|'')*'" + "|" + r'"(?:[^"]|"")*"'
_QUOTED_BACKSLASH = r"'(?:[^'\\]|\\.|'')*'" + "|" + r'"(?:[^"\\]|\\.|"")*"'


class NativeTransaction:
    """
    One engine transaction on one connection.

    Created by :meth:`DatabaseAdapter.begin_transaction`; commands built while
    it is active carry it and may only run on its connection.
    """

    def __init__(self, adapter: DatabaseAdapter, connection: Any):
        self.adapter = adapter
        self.connection = connection
        self.active = True

    def commit(self) -> None:
        self.adapter.commit_transaction(self.connection)
        self.active = False

    def rollback(self) -> None:
        self.adapter.rollback_transaction(self.connection)
        self.active = False


class DatabaseAdapter(ABC):
    """
    Abstract base class for database adapters.

    Subclasses set ``name``, ``db_type``, ``identity_query``, ``paramstyle``
    and ``type_map`` and implement the connection hooks.
    """

    name: str = ""
    db_type: DatabaseType
    identity_query: str = ""
    paramstyle: str = "qmark"
    type_map: dict[ParamType, Any] = {}
    backslash_escapes: bool = False

    def __init__(self, connection_string: str = ""):
        self.connection_string = connection_string

    # ── Connection lifecycle ─────────────────────────────────────────

    @abstractmethod
    def open_connection(self) -> Any:
        """Open a new autocommit connection to the engine."""
        ...

    def close_connection(self, connection: Any) -> None:
        """Close a connection opened by :meth:`open_connection`."""
        connection.close()

    # ── Transactions ─────────────────────────────────────────────────

    def begin_transaction(self, connection: Any) -> NativeTransaction:
        """Start a transaction on ``connection``."""
        self._begin(connection)
        return NativeTransaction(self, connection)

    @abstractmethod
    def _begin(self, connection: Any) -> None:
        ...

    def commit_transaction(self, connection: Any) -> None:
        connection.commit()

    def rollback_transaction(self, connection: Any) -> None:
        connection.rollback()

    # ── Parameters ───────────────────────────────────────────────────

    def type_tag(self, param_type: ParamType, value: Any) -> tuple[Any, int | None]:
        """Select the engine type tag (and size) for a parameter."""
        if param_type is ParamType.BLOB and value is not None:
            return self.blob_tier(len(value))
        return self.type_map[param_type], None

    def blob_tier(self, length: int) -> tuple[Any, int | None]:
        """Select the blob tag and size hint for a blob of ``length`` bytes."""
        return self.type_map[ParamType.BLOB], None

    def to_driver_value(self, parameter: BoundParameter) -> Any:
        """Convert a bound value into something the driver accepts."""
        if isinstance(parameter.value, memoryview):
            return parameter.value.tobytes()
        return parameter.value

    # ── Commands ─────────────────────────────────────────────────────

    def create_command(
        self,
        text: str,
        parameters: list[BoundParameter] | None = None,
        timeout: int = -1,
        transaction: NativeTransaction | None = None,
    ) -> Command:
        """Build a command; it is bound to ``transaction`` when one is active."""
        return Command(
            text=text,
            parameters=list(parameters or []),
            timeout=timeout,
            transaction=transaction,
        )

    def render(self, command: Command) -> tuple[str, list[Any]]:
        """
        Rewrite ``@name`` placeholders into the driver paramstyle.

        Returns the SQL text and the positional driver values.  A placeholder
        may occur several times; every occurrence gets its value.  Names that
        are not bound parameters (``@@IDENTITY``) and text inside quoted
        literals or identifiers are left untouched.
        """
        sql, ordered = self._rewrite(command)
        return sql, [self.to_driver_value(p) for p in ordered]

    def _rewrite(self, command: Command) -> tuple[str, list[BoundParameter]]:
        if not command.parameters:
            return command.text, []

        by_name = {p.name: p for p in command.parameters}
        names = "|".join(re.escape(n) for n in sorted(by_name, key=len, reverse=True))
        quoted = _QUOTED_BACKSLASH if self.backslash_escapes else _QUOTED
        ordered: list[BoundParameter] = []

        if self.paramstyle == "format":
            pattern = re.compile(rf"(?P<quoted>{quoted})|(?<![\w@])(?P<ph>{names})(?!\w)|%", re.S)
            marker = "%s"
        else:
            pattern = re.compile(rf"(?P<quoted>{quoted})|(?<![\w@])(?P<ph>{names})(?!\w)", re.S)
            marker = "?"

        def substitute(match: re.Match[str]) -> str:
            literal = match.group("quoted")
            if literal is not None:
                return literal.replace("%", "%%") if marker == "%s" else literal
            name = match.group("ph")
            if name is None:
                return "%%"
            ordered.append(by_name[name])
            return marker

        return pattern.sub(substitute, command.text), ordered

    def set_input_sizes(self, cursor: Any, parameters: list[BoundParameter]) -> None:
        """Declare driver types for the positional values; most drivers infer them."""
        return None

    def apply_timeout(self, connection: Any, cursor: Any, seconds: int) -> None:
        """Apply a per-command timeout; engines without one ignore it."""
        return None

    def driver_errors(self) -> tuple[type[BaseException], ...]:
        """Exception types raised by the driver for failed statements."""
        return ()

    def execute(self, connection: Any, command: Command) -> Any:
        """Run ``command`` on ``connection`` and return the open cursor."""
        if command.transaction is not None and command.transaction.connection is not connection:
            raise QueryError("Command is bound to a transaction on another connection").with_context(
                engine=self.name, query=command.text
            )

        sql, ordered = self._rewrite(command)
        values = [self.to_driver_value(p) for p in ordered]
        cursor = connection.cursor()
        started = time.perf_counter()
        try:
            if command.timeout >= 0:
                self.apply_timeout(connection, cursor, command.timeout)
            if values:
                self.set_input_sizes(cursor, ordered)
                cursor.execute(sql, values)
            else:
                cursor.execute(sql)
        except self.driver_errors() as e:
            cursor.close()
            logger.error("command_failed", engine=self.name, error=str(e))
            raise QueryError(f"Query failed on {self.name}: {e}", cause=e).with_context(
                engine=self.name, query=command.text
            ) from e

        logger.debug(
            "command_executed",
            engine=self.name,
            parameters=[(p.name, _tag_name(p.type_tag)) for p in command.parameters],
            elapsed_ms=round((time.perf_counter() - started) * 1000, 3),
        )
        return cursor

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r})"


def _tag_name(tag: Any) -> str | None:
    return getattr(tag, "value", tag)


def import_driver(module: str, package: str) -> Any:
    """Import an optional driver module, raising ``ConfigError`` when missing."""
    try:
        return importlib.import_module(module)
    except ImportError:
        raise ConfigError(
            f"{package} is required for this adapter. Install with: pip install {package}"
        ) from None


__all__ = [
    "DatabaseAdapter",
    "NativeTransaction",
    "import_driver",
]
