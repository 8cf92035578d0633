"""Database adapters -- one capability interface, three engines.

Manifesto:
    Query code must not care which engine it talks to.  Each adapter
    supplies the engine-specific pieces (driver connection, paramstyle,
    parameter type tags, blob tiering, identity query) and nothing else;
    sessions, transactions, binding and result reading are shared.

    Each adapter except SQLite is **import-guarded**: the driver is only
    required at ``open_connection()`` time.  Install the corresponding extra::

        pip install querykit[mysql]   # mysql-connector-python
        pip install querykit[mssql]   # pyodbc

Architecture::

    DatabaseAdapter (base.py)        Abstract base: connect/render/execute
        |-- SQLiteAdapter            stdlib sqlite3 (always available)
        |-- MySQLAdapter             mysql.connector (optional)
        |-- MSSQLAdapter             pyodbc (optional)

    AdapterRegistry (registry.py)    name -> adapter class
    DatabaseType (types.py)          Enum of supported engines

Guardrails:
    ❌ ``executor.execute("DELETE FROM t WHERE id=" + user_input)``
    ✅ ``executor.execute("DELETE FROM t WHERE id=@0", user_input)``
    ❌ Importing optional drivers at module scope
    ✅ Import-guarded at ``open_connection()`` time with clear ``ConfigError``

Tags:
    querykit, database, adapters, multi-backend, import-guarded,
    registry-pattern, sqlite, mysql, mssql

Doc-Types:
    package-overview, module-index
"""

from .base import DatabaseAdapter, NativeTransaction
from .mssql import MSSQLAdapter, SqlDbType
from .mysql import MySQLAdapter, MySqlDbType
from .registry import AdapterRegistry, adapter_registry, get_adapter
from .sqlite import SQLiteAdapter, SQLiteDbType
from .types import DatabaseType, parse_connection_string

__all__ = [
    # Types
    "DatabaseType",
    "parse_connection_string",
    # Base class
    "DatabaseAdapter",
    "NativeTransaction",
    # Implementations
    "SQLiteAdapter",
    "SQLiteDbType",
    "MySQLAdapter",
    "MySqlDbType",
    "MSSQLAdapter",
    "SqlDbType",
    # Registry
    "AdapterRegistry",
    "adapter_registry",
    "get_adapter",
]
