"""
QueryKit: parameterized SQL execution over SQLite, MySQL and SQL Server.

Manifesto:
    Application code should write one SQL string with ``@0, @1, ...``
    placeholders and get typed Python values back, whatever the engine.
    Connections open lazily and close when the outermost user is done;
    nested transactions flatten into one native transaction.

Modules:
    binding       Parameter type resolution, TypeValuePair, IN-list expansion
    command       Engine-neutral command (text, parameters, timeout, transaction)
    session       Reference-counted connection session
    transaction   Reference-counted, flattened transaction scope
    projection    Null-hiding projection of column values
    streams       Binary column stream that owns a session checkout
    executor      QueryExecutor and its result readers
    adapters/     One DatabaseAdapter per engine plus the registry
    errors        QueryKitError hierarchy
    logging       structlog configuration
    settings      QUERYKIT_* environment settings
    cli           ``querykit`` command line

Examples:
    >>> from querykit import QueryExecutor, SQLiteAdapter
    >>> executor = QueryExecutor(SQLiteAdapter(":memory:"))
    >>> executor.get(int, "SELECT @0 + @1", 2, 3)
    5

Tags:
    querykit, sql, database, parameters, sqlite, mysql, mssql

Doc-Types:
    package-overview, module-index
"""

from querykit.adapters import (
    AdapterRegistry,
    DatabaseAdapter,
    MSSQLAdapter,
    MySQLAdapter,
    SQLiteAdapter,
    adapter_registry,
    get_adapter,
)
from querykit.binding import ParamType, TypeValuePair, make_in_placeholders
from querykit.command import Command
from querykit.errors import (
    ConfigError,
    DatabaseConnectionError,
    DatabaseError,
    QueryError,
    QueryKitError,
    UnsupportedNullTargetError,
    UnsupportedParameterTypeError,
)
from querykit.executor import QueryExecutor
from querykit.projection import EMPTY_GUID, hide_null
from querykit.session import ConnectionSession
from querykit.settings import QueryKitSettings, create_executor, get_settings
from querykit.streams import BinaryColumnStream
from querykit.transaction import TransactionScope

__version__ = "0.1.0"

__all__ = [
    "__version__",
    # Executor
    "QueryExecutor",
    "ConnectionSession",
    "TransactionScope",
    "BinaryColumnStream",
    "Command",
    # Parameters and values
    "ParamType",
    "TypeValuePair",
    "make_in_placeholders",
    "EMPTY_GUID",
    "hide_null",
    # Adapters
    "DatabaseAdapter",
    "SQLiteAdapter",
    "MySQLAdapter",
    "MSSQLAdapter",
    "AdapterRegistry",
    "adapter_registry",
    "get_adapter",
    # Settings
    "QueryKitSettings",
    "get_settings",
    "create_executor",
    # Errors
    "QueryKitError",
    "ConfigError",
    "UnsupportedParameterTypeError",
    "DatabaseConnectionError",
    "DatabaseError",
    "QueryError",
    "UnsupportedNullTargetError",
]
