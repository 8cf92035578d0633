"""
Structured error types for querykit.

Every failure raised by querykit is a :class:`QueryKitError` carrying a
category, a retry hint, structured context and the chained driver exception.

Manifesto:
    - **Typed hierarchy:** Connection, configuration and query failures are
      distinct types so callers can catch exactly what they can handle
    - **No retries:** ``retryable`` is metadata for callers; querykit itself
      never retries anything
    - **Error chaining:** The underlying driver exception is kept as ``cause``

Architecture:
    ::

        ┌──────────────────────────────────────────────────────────────┐
        │                       QueryKitError                           │
        │        (category, retryable, context, cause)                  │
        ├──────────────────────────────────────────────────────────────┤
        │  DatabaseConnectionError   ConfigError        DatabaseError   │
        │  (DATABASE, retryable)     (CONFIG)           (DATABASE)      │
        │                               │                   │           │
        │              UnsupportedParameterTypeError     QueryError     │
        │                                       UnsupportedNullTarget   │
        └──────────────────────────────────────────────────────────────┘

Examples:
    >>> error = ConfigError("Unknown database adapter: oracle")
    >>> error.category
    <ErrorCategory.CONFIG: 'CONFIG'>
    >>> error.retryable
    False

Tags:
    error-handling, exception-hierarchy, querykit

Doc-Types:
    api-reference
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Coarse classification of a failure."""

    DATABASE = "DATABASE"
    CONFIG = "CONFIG"
    VALIDATION = "VALIDATION"
    INTERNAL = "INTERNAL"


@dataclass
class ErrorContext:
    """Where the failure happened.

    ``engine`` is the adapter name, ``query`` the SQL text as written by the
    caller (before placeholder rewriting) and ``parameter`` the placeholder
    name being bound.  Anything else lands in ``metadata``.
    """

    engine: str | None = None
    query: str | None = None
    parameter: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        known = {"engine": self.engine, "query": self.query, "parameter": self.parameter}
        return {**{k: v for k, v in known.items() if v is not None}, **self.metadata}


_CONTEXT_FIELDS = frozenset(f.name for f in fields(ErrorContext)) - {"metadata"}


class QueryKitError(Exception):
    """
    Root of every querykit exception.

    ``default_category`` and ``default_retryable`` are class-level defaults;
    both can be overridden per instance.  ``cause`` is also set as
    ``__cause__`` so tracebacks show the driver exception.
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = self.default_retryable if retryable is None else retryable
        self.context = context or ErrorContext()
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> QueryKitError:
        """Attach context and return ``self`` so it can be raised inline.

        Usage:
            raise QueryError("Execution failed").with_context(engine="mysql", query=sql)
        """
        for key, value in kwargs.items():
            if key in _CONTEXT_FIELDS:
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Flatten for structured logging."""
        data: dict[str, Any] = {
            "error_type": type(self).__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        if context := self.context.to_dict():
            data["context"] = context
        if self.cause is not None:
            data["cause"] = str(self.cause)
        return data

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r}, category={self.category.value})"


class DatabaseConnectionError(QueryKitError):
    """The engine refused or failed a connection attempt."""

    default_category = ErrorCategory.DATABASE
    default_retryable = True


class ConfigError(QueryKitError):
    """Bad settings, an unknown engine name, or a missing driver package."""

    default_category = ErrorCategory.CONFIG


class UnsupportedParameterTypeError(ConfigError):
    """
    A query argument has a type that cannot be bound.

    This is a programming error at the call site: either the value's runtime
    type is outside the parameter taxonomy, or a bare ``None`` was passed
    without a :class:`~querykit.binding.TypeValuePair` declaring its type.
    """

    def __init__(self, declared: Any, **kwargs: Any):
        super().__init__(f"Parameter type {_type_name(declared)} not handled", **kwargs)
        self.declared = declared


class DatabaseError(QueryKitError):
    """A statement or result could not be processed."""

    default_category = ErrorCategory.DATABASE


class QueryError(DatabaseError):
    """The driver rejected or failed a statement."""


class UnsupportedNullTargetError(DatabaseError):
    """A database NULL was read into a type that has no zero value (``bool``, custom types)."""

    def __init__(self, target: Any, **kwargs: Any):
        super().__init__(f"Null cannot be hidden for {_type_name(target)}", **kwargs)
        self.target = target


def _type_name(value: Any) -> str:
    return getattr(value, "__name__", None) or repr(value)


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "QueryKitError",
    "DatabaseConnectionError",
    "ConfigError",
    "UnsupportedParameterTypeError",
    "DatabaseError",
    "QueryError",
    "UnsupportedNullTargetError",
]
