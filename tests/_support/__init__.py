"""
Test support utilities for querykit tests.

Helpers that are not fixtures but are shared by several test modules:
the stand-in driver error class and the ODBC type constants the fake
``pyodbc`` module exposes.
"""

from __future__ import annotations


class FakeDriverError(Exception):
    """Stands in for a driver's DB-API ``Error`` class."""


# Values from the ODBC headers, as pyodbc exports them.
ODBC_TYPE_CONSTANTS = {
    "SQL_INTEGER": 4,
    "SQL_BIGINT": -5,
    "SQL_WVARCHAR": -9,
    "SQL_TYPE_TIMESTAMP": 93,
    "SQL_DOUBLE": 8,
    "SQL_DECIMAL": 3,
    "SQL_GUID": -11,
    "SQL_VARBINARY": -3,
}
