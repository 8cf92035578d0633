"""Microsoft SQL Server database adapter.

Uses ``pyodbc`` with an ODBC connection string passed through unchanged,
e.g. ``Driver={ODBC Driver 18 for SQL Server};Server=db;Database=sales;UID=app;PWD=secret;``.
pyodbc uses **qmark** (``?``) placeholder style.

Install the driver::

    pip install pyodbc
    # or:  pip install querykit[mssql]

Import-guarded: a missing ``pyodbc`` raises
:class:`~querykit.errors.ConfigError` at ``open_connection()`` time.
"""

from __future__ import annotations

from decimal import Decimal
from enum import Enum
from typing import Any

from querykit.binding import BoundParameter, ParamType
from querykit.errors import DatabaseConnectionError
from querykit.logging import get_logger

from .base import DatabaseAdapter, import_driver
from .types import DatabaseType

logger = get_logger(__name__)


class SqlDbType(str, Enum):
    """Type tags used for SQL Server parameters."""

    INT = "Int"
    BIG_INT = "BigInt"
    NVARCHAR = "NVarChar"
    DATETIME = "DateTime"
    FLOAT = "Float"
    DECIMAL = "Decimal"
    UNIQUE_IDENTIFIER = "UniqueIdentifier"
    VARBINARY = "VarBinary"


# pyodbc constant name, column size (0 is MAX), decimal digits
_ODBC_TYPES: dict[SqlDbType, tuple[str, int, int]] = {
    SqlDbType.INT: ("SQL_INTEGER", 0, 0),
    SqlDbType.BIG_INT: ("SQL_BIGINT", 0, 0),
    SqlDbType.NVARCHAR: ("SQL_WVARCHAR", 0, 0),
    SqlDbType.DATETIME: ("SQL_TYPE_TIMESTAMP", 23, 3),
    SqlDbType.FLOAT: ("SQL_DOUBLE", 0, 0),
    SqlDbType.DECIMAL: ("SQL_DECIMAL", 38, 0),
    SqlDbType.UNIQUE_IDENTIFIER: ("SQL_GUID", 16, 0),
    SqlDbType.VARBINARY: ("SQL_VARBINARY", 0, 0),
}


class MSSQLAdapter(DatabaseAdapter):
    """
    SQL Server database adapter.

    Connections run in autocommit mode; a transaction switches autocommit
    off until it is committed or rolled back.
    """

    name = "mssql"
    db_type = DatabaseType.MSSQL
    identity_query = "SELECT @@IDENTITY;"
    paramstyle = "qmark"
    type_map = {
        ParamType.INT32: SqlDbType.INT,
        ParamType.INT64: SqlDbType.BIG_INT,
        ParamType.STRING: SqlDbType.NVARCHAR,
        ParamType.DATETIME: SqlDbType.DATETIME,
        ParamType.FLOAT64: SqlDbType.FLOAT,
        ParamType.DECIMAL: SqlDbType.DECIMAL,
        ParamType.GUID: SqlDbType.UNIQUE_IDENTIFIER,
        ParamType.BOOL: SqlDbType.INT,
        ParamType.BLOB: SqlDbType.VARBINARY,
    }

    def __init__(self, connection_string: str = "", *, login_timeout: int = 10):
        super().__init__(connection_string)
        self.login_timeout = login_timeout
        self._driver: Any = None

    def open_connection(self) -> Any:
        """Connect to SQL Server through ODBC."""
        self._driver = import_driver("pyodbc", "pyodbc")

        try:
            conn = self._driver.connect(
                self.connection_string,
                autocommit=True,
                timeout=self.login_timeout,
            )
        except self._driver.Error as e:
            raise DatabaseConnectionError(
                f"Failed to connect to SQL Server: {e}",
                cause=e,
            ).with_context(engine=self.name) from e

        logger.debug("driver_connected", engine=self.name)
        return conn

    def _begin(self, connection: Any) -> None:
        connection.autocommit = False

    def commit_transaction(self, connection: Any) -> None:
        try:
            connection.commit()
        finally:
            connection.autocommit = True

    def rollback_transaction(self, connection: Any) -> None:
        try:
            connection.rollback()
        finally:
            connection.autocommit = True

    def set_input_sizes(self, cursor: Any, parameters: list[BoundParameter]) -> None:
        """Declare each value's SQL type so NULLs bind as their declared type.

        pyodbc otherwise sends ``None`` as a varchar NULL, which SQL Server
        refuses to convert into ``varbinary`` and ``uniqueidentifier`` columns.
        """
        cursor.setinputsizes([self._input_size(p) for p in parameters])

    def _input_size(self, parameter: BoundParameter) -> tuple[Any, int, int]:
        constant, size, digits = _ODBC_TYPES[parameter.type_tag]
        if parameter.size is not None:
            size = parameter.size
        if parameter.type_tag is SqlDbType.DECIMAL and isinstance(parameter.value, Decimal):
            exponent = parameter.value.as_tuple().exponent
            if isinstance(exponent, int):
                digits = min(max(-exponent, 0), size)
        return getattr(self._driver, constant), size, digits

    def apply_timeout(self, connection: Any, cursor: Any, seconds: int) -> None:
        connection.timeout = int(seconds)

    def driver_errors(self) -> tuple[type[BaseException], ...]:
        if self._driver is None:
            return ()
        return (self._driver.Error,)


__all__ = [
    "MSSQLAdapter",
    "SqlDbType",
]
