"""
Shared pytest fixtures for querykit tests.

This module provides:
- File-backed SQLite executors (an in-memory database would vanish each
  time the session closes its connection)
- Fake ``mysql.connector`` and ``pyodbc`` driver modules injected through
  ``sys.modules`` so the MySQL and SQL Server adapters run without servers
- Settings cache isolation
"""

from __future__ import annotations

import sys
import types
from collections.abc import Generator
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
import structlog

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from querykit.adapters.sqlite import SQLiteAdapter
from querykit.executor import QueryExecutor
from querykit.settings import clear_settings_cache
from tests._support import ODBC_TYPE_CONSTANTS, FakeDriverError


PEOPLE_DDL = """
CREATE TABLE people (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT,
    age INTEGER,
    team TEXT,
    score REAL,
    balance TEXT,
    born TEXT,
    token TEXT,
    active INTEGER,
    photo BLOB
)
"""


# =============================================================================
# SQLite
# =============================================================================


@pytest.fixture
def db_path(tmp_path: Path) -> str:
    return str(tmp_path / "querykit.db")


@pytest.fixture
def executor(db_path: str) -> QueryExecutor:
    """Executor over a file database holding an empty ``people`` table."""
    executor = QueryExecutor(SQLiteAdapter(db_path))
    executor.execute(PEOPLE_DDL)
    return executor


@pytest.fixture
def seeded(executor: QueryExecutor) -> QueryExecutor:
    """Executor whose ``people`` table holds four rows (one with a NULL team)."""
    rows = [
        ("alice", 30, "red", 1.5),
        ("bob", 25, "blue", 2.5),
        ("carol", 35, "red", 3.5),
    ]
    for name, age, team, score in rows:
        executor.execute(
            "INSERT INTO people (name, age, team, score) VALUES (@0, @1, @2, @3)",
            name,
            age,
            team,
            score,
        )
    executor.execute("INSERT INTO people (name, age) VALUES (@0, @1)", "dave", 40)
    return executor


# =============================================================================
# Fake drivers
# =============================================================================


@pytest.fixture
def fake_mysql() -> Generator[types.ModuleType, None, None]:
    """A ``mysql.connector`` module whose ``connect`` returns a MagicMock."""
    package = types.ModuleType("mysql")
    connector = types.ModuleType("mysql.connector")
    connector.Error = FakeDriverError
    connector.connect = MagicMock(name="mysql.connector.connect")
    package.connector = connector
    with patch.dict(sys.modules, {"mysql": package, "mysql.connector": connector}):
        yield connector


@pytest.fixture
def fake_pyodbc() -> Generator[types.ModuleType, None, None]:
    """A ``pyodbc`` module whose ``connect`` returns a MagicMock."""
    module = types.ModuleType("pyodbc")
    module.Error = FakeDriverError
    module.connect = MagicMock(name="pyodbc.connect")
    for constant, value in ODBC_TYPE_CONSTANTS.items():
        setattr(module, constant, value)
    with patch.dict(sys.modules, {"pyodbc": module}):
        yield module


# =============================================================================
# Settings isolation
# =============================================================================


@pytest.fixture(autouse=True)
def _isolate_settings(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    for key in (
        "QUERYKIT_ENGINE",
        "QUERYKIT_CONNECTION_STRING",
        "QUERYKIT_COMMAND_TIMEOUT",
        "QUERYKIT_PARAMETERS_PREFIX",
        "QUERYKIT_PARAMETERS_STARTING_INDEX",
        "QUERYKIT_LOG_LEVEL",
        "QUERYKIT_LOG_FORMAT",
    ):
        monkeypatch.delenv(key, raising=False)
    clear_settings_cache()
    yield
    clear_settings_cache()
    structlog.reset_defaults()
