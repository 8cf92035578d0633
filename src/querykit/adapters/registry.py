"""Engine name to adapter class lookup.

Manifesto:
    Settings and the CLI name an engine as a string (``sqlite``, ``mysql``,
    ``mssql``).  The registry turns that name into a configured adapter so
    nothing above the adapters imports a concrete adapter class.

Features:
    - Built-in engines plus the ``mariadb`` and ``sqlserver`` aliases
    - ``register()`` for additional engines
    - ``get_adapter()`` accepts a ``DatabaseType`` or a plain name

Tags:
    querykit, database, registry, factory

Doc-Types:
    api-reference
"""

from __future__ import annotations

from typing import Any

from querykit.errors import ConfigError

from .base import DatabaseAdapter
from .mssql import MSSQLAdapter
from .mysql import MySQLAdapter
from .sqlite import SQLiteAdapter
from .types import DatabaseType


_DEFAULTS: dict[str, type[DatabaseAdapter]] = {
    DatabaseType.SQLITE.value: SQLiteAdapter,
    DatabaseType.MYSQL.value: MySQLAdapter,
    "mariadb": MySQLAdapter,
    DatabaseType.MSSQL.value: MSSQLAdapter,
    "sqlserver": MSSQLAdapter,
}


class AdapterRegistry:
    """
    Engine name → adapter class.

    Names are case-insensitive.  ``mariadb`` and ``sqlserver`` are aliases of
    ``mysql`` and ``mssql``.
    """

    def __init__(self):
        self._adapters: dict[str, type[DatabaseAdapter]] = dict(_DEFAULTS)

    def register(self, name: str, adapter_class: type[DatabaseAdapter]) -> None:
        """Add or replace the adapter class for ``name``."""
        self._adapters[name.lower()] = adapter_class

    def create(self, name: str, connection_string: str = "", **kwargs: Any) -> DatabaseAdapter:
        """Instantiate the adapter registered under ``name``.

        Extra keyword arguments go to the adapter constructor
        (``busy_timeout``, ``connect_timeout``, ``login_timeout``).

        Raises:
            ConfigError: No adapter is registered under ``name``.
        """
        adapter_class = self._adapters.get(name.lower())
        if adapter_class is None:
            raise ConfigError(f"Unknown database adapter: {name.lower()}").with_context(
                available=self.list_adapters()
            )
        return adapter_class(connection_string, **kwargs)

    def list_adapters(self) -> list[str]:
        return sorted(self._adapters)


adapter_registry = AdapterRegistry()


def get_adapter(
    db_type: DatabaseType | str,
    connection_string: str = "",
    **kwargs: Any,
) -> DatabaseAdapter:
    """
    Create an adapter from the global registry.

    Usage:
        adapter = get_adapter(DatabaseType.SQLITE, "data.db")
        adapter = get_adapter("mysql", "Server=db;Database=sales;Uid=app;Pwd=secret;")
    """
    name = db_type.value if isinstance(db_type, DatabaseType) else db_type
    return adapter_registry.create(name, connection_string, **kwargs)


__all__ = [
    "AdapterRegistry",
    "adapter_registry",
    "get_adapter",
]
