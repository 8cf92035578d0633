"""Tests for ``querykit.adapters.registry`` and connection-string parsing."""

from __future__ import annotations

import pytest

from querykit.adapters.base import DatabaseAdapter
from querykit.adapters.mssql import MSSQLAdapter
from querykit.adapters.mysql import MySQLAdapter
from querykit.adapters.registry import AdapterRegistry, adapter_registry, get_adapter
from querykit.adapters.sqlite import SQLiteAdapter
from querykit.adapters.types import DatabaseType, parse_connection_string
from querykit.errors import ConfigError


class TestAdapterRegistry:
    def test_defaults_registered(self):
        assert adapter_registry.list_adapters() == ["mariadb", "mssql", "mysql", "sqlite", "sqlserver"]

    def test_create_by_name_is_case_insensitive(self):
        adapter = adapter_registry.create("SQLite", "app.db")
        assert isinstance(adapter, SQLiteAdapter)
        assert adapter.connection_string == "app.db"

    def test_aliases(self):
        assert isinstance(adapter_registry.create("mariadb"), MySQLAdapter)
        assert isinstance(adapter_registry.create("sqlserver"), MSSQLAdapter)

    def test_kwargs_forwarded(self):
        adapter = adapter_registry.create("sqlite", "app.db", busy_timeout=1.0)
        assert adapter.busy_timeout == 1.0

    def test_unknown_adapter(self):
        with pytest.raises(ConfigError, match="Unknown database adapter: oracle"):
            adapter_registry.create("oracle")

    def test_register_custom(self):
        class CustomAdapter(SQLiteAdapter):
            name = "custom"

        registry = AdapterRegistry()
        registry.register("Custom", CustomAdapter)
        assert isinstance(registry.create("custom"), CustomAdapter)
        assert "custom" not in adapter_registry.list_adapters()


class TestGetAdapter:
    def test_by_enum(self):
        adapter = get_adapter(DatabaseType.MSSQL, "Server=db;")
        assert isinstance(adapter, MSSQLAdapter)
        assert isinstance(adapter, DatabaseAdapter)

    def test_by_string(self):
        assert isinstance(get_adapter("mysql"), MySQLAdapter)


class TestParseConnectionString:
    def test_keys_lowercased_and_stripped(self):
        assert parse_connection_string(" Server = db ; Database=sales;") == {"server": "db", "database": "sales"}

    def test_value_may_contain_equals(self):
        assert parse_connection_string("Pwd=a=b")["pwd"] == "a=b"

    def test_empty(self):
        assert parse_connection_string("") == {}

    def test_malformed_segment(self):
        with pytest.raises(ConfigError):
            parse_connection_string("Server=db;oops")
