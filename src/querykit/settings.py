"""Environment-driven settings for QueryKit.

Every field can be set with a ``QUERYKIT_``-prefixed environment variable or
in a ``.env`` file; unknown variables are ignored.

Examples:
    >>> import os
    >>> os.environ["QUERYKIT_CONNECTION_STRING"] = "app.db"
    >>> settings = get_settings(_force_reload=True)
    >>> executor = create_executor(settings)

Tags:
    settings, configuration, pydantic, environment

Doc-Types:
    - API Reference
    - Configuration Guide
"""

from __future__ import annotations

from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from querykit.adapters.registry import adapter_registry
from querykit.executor import QueryExecutor


class QueryKitSettings(BaseSettings):
    """Connection and executor defaults.

    Fields
    ──────
    engine                     : Registered adapter name (sqlite, mysql, mssql, ...)
    connection_string          : Engine connection string or SQLite path
    command_timeout            : Seconds per command; negative keeps the engine default
    parameters_prefix          : Placeholder prefix
    parameters_starting_index  : Index of the first placeholder
    log_level                  : structlog level
    log_format                 : ``json`` or ``console``
    """

    model_config = SettingsConfigDict(
        env_prefix="QUERYKIT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Connection ───────────────────────────────────────────────
    engine: str = "sqlite"
    connection_string: str = ":memory:"

    # ── Commands ─────────────────────────────────────────────────
    command_timeout: int = -1
    parameters_prefix: str = Field(default="@", min_length=1)
    parameters_starting_index: int = Field(default=0, ge=0)

    # ── Observability ────────────────────────────────────────────
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    log_format: Literal["json", "console"] = "console"

    @field_validator("engine", mode="before")
    @classmethod
    def _normalize_engine(cls, value: str) -> str:
        return str(value).strip().lower()

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_level(cls, value: str) -> str:
        return str(value).strip().upper()


_settings_cache: QueryKitSettings | None = None


def get_settings(*, _force_reload: bool = False) -> QueryKitSettings:
    """Load, validate, and cache a :class:`QueryKitSettings` instance."""
    global _settings_cache
    if _settings_cache is None or _force_reload:
        _settings_cache = QueryKitSettings()
    return _settings_cache


def clear_settings_cache() -> None:
    global _settings_cache
    _settings_cache = None


def create_executor(settings: QueryKitSettings | None = None) -> QueryExecutor:
    """Build a :class:`QueryExecutor` for the configured engine.

    Raises:
        ConfigError: The engine name is not registered.
    """
    settings = settings or get_settings()
    adapter = adapter_registry.create(settings.engine, settings.connection_string)
    return QueryExecutor(
        adapter,
        command_timeout=settings.command_timeout,
        parameters_prefix=settings.parameters_prefix,
        parameters_starting_index=settings.parameters_starting_index,
    )


__all__ = [
    "QueryKitSettings",
    "get_settings",
    "clear_settings_cache",
    "create_executor",
]
