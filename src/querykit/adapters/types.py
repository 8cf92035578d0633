"""Database types and connection-string parsing."""

from __future__ import annotations

from enum import Enum

from querykit.errors import ConfigError


class DatabaseType(str, Enum):
    """Supported database types."""

    SQLITE = "sqlite"
    MYSQL = "mysql"
    MSSQL = "mssql"


def parse_connection_string(connection_string: str) -> dict[str, str]:
    """
    Parse a ``key=value;key=value`` connection string.

    Keys are lower-cased and stripped; empty segments are ignored.  Values
    may contain ``=`` but not ``;``.

    >>> parse_connection_string("Server=db;Database=sales;")
    {'server': 'db', 'database': 'sales'}
    """
    options: dict[str, str] = {}
    for segment in connection_string.split(";"):
        if not segment.strip():
            continue
        key, sep, value = segment.partition("=")
        if not sep:
            raise ConfigError(f"Malformed connection string segment: {segment.strip()!r}")
        options[key.strip().lower()] = value.strip()
    return options


__all__ = [
    "DatabaseType",
    "parse_connection_string",
]
