"""SQLite database adapter."""

from __future__ import annotations

import sqlite3
import uuid
from datetime import datetime
from decimal import Decimal
from enum import Enum
from pathlib import Path
from typing import Any

from querykit.binding import BoundParameter, ParamType
from querykit.errors import DatabaseConnectionError
from querykit.logging import get_logger

from .base import DatabaseAdapter
from .types import DatabaseType, parse_connection_string

logger = get_logger(__name__)

# Blobs below this size get an explicit Binary tag and size hint.
BINARY_HINT_LIMIT = 8000


class SQLiteDbType(str, Enum):
    """Type tags used for SQLite parameters."""

    INT32 = "Int32"
    INT64 = "Int64"
    STRING = "String"
    DATETIME = "DateTime"
    DOUBLE = "Double"
    DECIMAL = "Decimal"
    GUID = "Guid"
    BINARY = "Binary"


class SQLiteAdapter(DatabaseAdapter):
    """
    SQLite database adapter.

    Uses the built-in sqlite3 module.  The connection string is either a
    plain path (``:memory:``, ``data.db``, ``file:...?mode=ro``) or a
    ``Data Source=path;`` style string.

    SQLite has no native GUID, decimal or datetime storage; those values
    are bound as text.
    """

    name = "sqlite"
    db_type = DatabaseType.SQLITE
    identity_query = "SELECT last_insert_rowid();"
    paramstyle = "qmark"
    type_map = {
        ParamType.INT32: SQLiteDbType.INT32,
        ParamType.INT64: SQLiteDbType.INT64,
        ParamType.STRING: SQLiteDbType.STRING,
        ParamType.DATETIME: SQLiteDbType.DATETIME,
        ParamType.FLOAT64: SQLiteDbType.DOUBLE,
        ParamType.DECIMAL: SQLiteDbType.DECIMAL,
        ParamType.GUID: SQLiteDbType.GUID,
        ParamType.BOOL: SQLiteDbType.INT32,
        ParamType.BLOB: SQLiteDbType.BINARY,
    }

    def __init__(self, connection_string: str = ":memory:", *, busy_timeout: float = 5.0):
        super().__init__(connection_string)
        self.busy_timeout = busy_timeout

    @property
    def path(self) -> str:
        """Database path resolved from the connection string."""
        if "=" in self.connection_string and not self.connection_string.startswith("file:"):
            options = parse_connection_string(self.connection_string)
            return options.get("data source", ":memory:")
        return self.connection_string or ":memory:"

    def open_connection(self) -> sqlite3.Connection:
        """Open an autocommit SQLite connection."""
        path = self.path
        uri = path.startswith("file:")

        try:
            conn = sqlite3.connect(
                path,
                timeout=self.busy_timeout,
                isolation_level=None,
                check_same_thread=False,
                uri=uri,
            )
            conn.execute("PRAGMA foreign_keys = ON")
        except sqlite3.Error as e:
            raise DatabaseConnectionError(
                f"Failed to connect to SQLite: {e}",
                cause=e,
            ).with_context(engine=self.name) from e

        logger.debug("driver_connected", engine=self.name, path=path)
        return conn

    def _begin(self, connection: sqlite3.Connection) -> None:
        connection.execute("BEGIN")

    def blob_tier(self, length: int) -> tuple[Any, int | None]:
        if length < BINARY_HINT_LIMIT:
            return SQLiteDbType.BINARY, length
        return None, None

    def to_driver_value(self, parameter: BoundParameter) -> Any:
        value = parameter.value
        if isinstance(value, uuid.UUID):
            return str(value)
        if isinstance(value, Decimal):
            return str(value)
        if isinstance(value, datetime):
            return value.isoformat(sep=" ")
        return super().to_driver_value(parameter)

    def apply_timeout(self, connection: Any, cursor: Any, seconds: int) -> None:
        cursor.execute(f"PRAGMA busy_timeout = {int(seconds) * 1000}")

    def driver_errors(self) -> tuple[type[BaseException], ...]:
        return (sqlite3.Error,)

    @staticmethod
    def create_database(path: str | Path) -> None:
        """Create an empty database file at ``path``, truncating any existing file."""
        Path(path).write_bytes(b"")
        logger.info("database_created", engine="sqlite", path=str(path))


__all__ = [
    "SQLiteAdapter",
    "SQLiteDbType",
    "BINARY_HINT_LIMIT",
]
