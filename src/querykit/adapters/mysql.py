"""MySQL database adapter.

Uses ``mysql.connector`` from the ``mysql-connector-python`` package.
MySQL uses **format** (``%s``) placeholder style; ``@0`` placeholders are
rewritten before execution and literal ``%`` characters are escaped.

Install the driver::

    pip install mysql-connector-python
    # or:  pip install querykit[mysql]

This adapter is import-guarded: if ``mysql.connector`` is not installed
a clear :class:`~querykit.errors.ConfigError` is raised at
``open_connection()`` time.
"""

from __future__ import annotations

import uuid
from enum import Enum
from typing import Any

from querykit.binding import BoundParameter, ParamType
from querykit.errors import DatabaseConnectionError
from querykit.logging import get_logger

from .base import DatabaseAdapter, import_driver
from .types import DatabaseType, parse_connection_string

logger = get_logger(__name__)

BLOB_MAX = 65535
MEDIUM_BLOB_MAX = 16277215

_KEY_ALIASES = {
    "server": "host",
    "host": "host",
    "data source": "host",
    "port": "port",
    "database": "database",
    "initial catalog": "database",
    "uid": "user",
    "user": "user",
    "user id": "user",
    "username": "user",
    "pwd": "password",
    "password": "password",
    "charset": "charset",
    "character set": "charset",
}


class MySqlDbType(str, Enum):
    """Type tags used for MySQL parameters."""

    INT32 = "Int32"
    INT64 = "Int64"
    VAR_STRING = "VarString"
    DATETIME = "DateTime"
    FLOAT = "Float"
    DECIMAL = "Decimal"
    GUID = "Guid"
    BLOB = "Blob"
    MEDIUM_BLOB = "MediumBlob"
    LONG_BLOB = "LongBlob"


class MySQLAdapter(DatabaseAdapter):
    """MySQL / MariaDB database adapter.

    The connection string uses ``key=value;`` pairs, e.g.
    ``Server=db;Port=3306;Database=sales;Uid=app;Pwd=secret;``.
    """

    name = "mysql"
    db_type = DatabaseType.MYSQL
    identity_query = "SELECT @@IDENTITY;"
    paramstyle = "format"
    backslash_escapes = True
    type_map = {
        ParamType.INT32: MySqlDbType.INT32,
        ParamType.INT64: MySqlDbType.INT64,
        ParamType.STRING: MySqlDbType.VAR_STRING,
        ParamType.DATETIME: MySqlDbType.DATETIME,
        ParamType.FLOAT64: MySqlDbType.FLOAT,
        ParamType.DECIMAL: MySqlDbType.DECIMAL,
        ParamType.GUID: MySqlDbType.GUID,
        ParamType.BOOL: MySqlDbType.INT32,
        ParamType.BLOB: MySqlDbType.BLOB,
    }

    def __init__(self, connection_string: str = "", *, connect_timeout: int = 10):
        super().__init__(connection_string)
        self.connect_timeout = connect_timeout
        self._driver: Any = None

    def connect_kwargs(self) -> dict[str, Any]:
        """Translate the connection string into ``mysql.connector.connect`` kwargs."""
        kwargs: dict[str, Any] = {}
        for key, value in parse_connection_string(self.connection_string).items():
            target = _KEY_ALIASES.get(key, key.replace(" ", "_"))
            kwargs[target] = int(value) if target == "port" else value
        kwargs.setdefault("charset", "utf8mb4")
        # Readers fetch one row and close; unbuffered cursors would refuse.
        kwargs.setdefault("buffered", True)
        kwargs["connection_timeout"] = self.connect_timeout
        kwargs["autocommit"] = True
        return kwargs

    def open_connection(self) -> Any:
        """Connect to MySQL."""
        self._driver = import_driver("mysql.connector", "mysql-connector-python")
        kwargs = self.connect_kwargs()

        try:
            conn = self._driver.connect(**kwargs)
        except self._driver.Error as e:
            raise DatabaseConnectionError(
                f"Failed to connect to MySQL: {e}",
                cause=e,
            ).with_context(engine=self.name) from e

        logger.debug("driver_connected", engine=self.name, host=kwargs.get("host"))
        return conn

    def _begin(self, connection: Any) -> None:
        connection.start_transaction()

    def blob_tier(self, length: int) -> tuple[Any, int | None]:
        if length > MEDIUM_BLOB_MAX:
            return MySqlDbType.LONG_BLOB, length
        if length > BLOB_MAX:
            return MySqlDbType.MEDIUM_BLOB, length
        return MySqlDbType.BLOB, length

    def to_driver_value(self, parameter: BoundParameter) -> Any:
        if isinstance(parameter.value, uuid.UUID):
            return str(parameter.value)
        return super().to_driver_value(parameter)

    def apply_timeout(self, connection: Any, cursor: Any, seconds: int) -> None:
        cursor.execute(f"SET SESSION max_execution_time = {int(seconds) * 1000}")

    def driver_errors(self) -> tuple[type[BaseException], ...]:
        if self._driver is None:
            return ()
        return (self._driver.Error,)


__all__ = [
    "MySQLAdapter",
    "MySqlDbType",
    "BLOB_MAX",
    "MEDIUM_BLOB_MAX",
]
