"""Parameter binding: declared types, bound parameters and argument expansion.

Manifesto:
    Every query argument becomes a named, typed parameter before it reaches a
    driver.  The declared type decides the engine type tag, not the driver's
    own guess, and the transforms the engines rely on (zero dates become
    NULL, booleans become 1/2) happen in exactly one place.

Architecture:
    ::

        QueryExecutor.build_command(query, *args)
              │
              ▼
        ParameterBinder.bind_all(args)
              │   list / tuple / set  → one parameter per element
              │   TypeValuePair        → declared type wins
              │   bare value           → runtime type inferred
              ▼
        ParameterBinder.bind(name, declared, value)
              │   1. resolve ParamType (unknown → UnsupportedParameterTypeError)
              │   2. datetime.min → NULL, bool → 1 / 2
              │   3. adapter.type_tag() → engine tag + blob size tier
              │   4. None → NULL
              ▼
        BoundParameter(name, param_type, type_tag, value, size)

Tags:
    querykit, parameters, binding, type-mapping

Doc-Types:
    api-reference
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Any

from querykit.errors import UnsupportedParameterTypeError

if TYPE_CHECKING:
    from querykit.adapters.base import DatabaseAdapter

INT32_MIN = -(2**31)
INT32_MAX = 2**31 - 1

# Integer encoding of booleans on the wire; 0 is never sent for a flag.
BOOL_TRUE = 1
BOOL_FALSE = 2


class ParamType(str, Enum):
    """Closed taxonomy of parameter types every adapter maps to its own tags."""

    INT32 = "int32"
    INT64 = "int64"
    STRING = "string"
    DATETIME = "datetime"
    FLOAT64 = "float64"
    DECIMAL = "decimal"
    GUID = "guid"
    BOOL = "bool"
    BLOB = "blob"


_PYTHON_TYPES: dict[type, ParamType] = {
    bool: ParamType.BOOL,
    int: ParamType.INT64,
    str: ParamType.STRING,
    datetime: ParamType.DATETIME,
    float: ParamType.FLOAT64,
    Decimal: ParamType.DECIMAL,
    uuid.UUID: ParamType.GUID,
    bytes: ParamType.BLOB,
    bytearray: ParamType.BLOB,
    memoryview: ParamType.BLOB,
}

_BLOB_TYPES = (bytes, bytearray, memoryview)
_EXPANDED_TYPES = (list, tuple, set, frozenset)


@dataclass(frozen=True)
class TypeValuePair:
    """
    An argument with an explicit declared type.

    Use it when the value is ``None`` (its type cannot be inferred) or when a
    value must be bound under a different type than its own::

        executor.execute("UPDATE t SET note = @0", TypeValuePair(str, None))
        executor.execute("UPDATE t SET flag = @0", TypeValuePair(ParamType.INT32, 1))
    """

    declared: ParamType | type
    value: Any


@dataclass
class BoundParameter:
    """A named, typed parameter ready to be handed to a driver.

    ``value`` is ``None`` for NULL.  ``type_tag`` is the engine-specific tag
    chosen by the adapter and may be ``None`` when the engine gets no type
    hint (large SQLite blobs).  ``size`` is set only when a blob tier is.
    """

    name: str
    param_type: ParamType
    type_tag: Any
    value: Any
    size: int | None = None

    @property
    def is_null(self) -> bool:
        return self.value is None


def resolve_param_type(declared: Any) -> ParamType:
    """Resolve a declared type (``ParamType`` or Python type) to a ``ParamType``."""
    if isinstance(declared, ParamType):
        return declared
    if isinstance(declared, type) and declared in _PYTHON_TYPES:
        return _PYTHON_TYPES[declared]
    raise UnsupportedParameterTypeError(declared)


def infer_param_type(value: Any) -> ParamType:
    """Infer the ``ParamType`` of a bare value from its runtime type."""
    if isinstance(value, bool):
        return ParamType.BOOL
    if isinstance(value, int):
        if INT32_MIN <= value <= INT32_MAX:
            return ParamType.INT32
        return ParamType.INT64
    for python_type, param_type in _PYTHON_TYPES.items():
        if isinstance(value, python_type):
            return param_type
    raise UnsupportedParameterTypeError(type(value))


def is_expandable(arg: Any) -> bool:
    """True for collections whose elements are bound as separate parameters."""
    return isinstance(arg, _EXPANDED_TYPES) and not isinstance(arg, _BLOB_TYPES)


def make_in_placeholders(prefix: str, start: int, count: int, separator: str = ", ") -> str:
    """Build ``@0, @1, @2`` style placeholders for an ``IN (...)`` clause."""
    return separator.join(f"{prefix}{i}" for i in range(start, start + count))


class ParameterBinder:
    """
    Binds query arguments into :class:`BoundParameter` objects.

    Names are ``prefix`` followed by a running index that starts at
    ``starting_index`` and increases once per bound parameter, including each
    element of an expanded collection.
    """

    def __init__(self, adapter: DatabaseAdapter, prefix: str = "@", starting_index: int = 0):
        self.adapter = adapter
        self.prefix = prefix
        self.starting_index = starting_index

    def bind(self, name: str, declared: Any, value: Any) -> BoundParameter:
        """Bind one value under ``declared`` type."""
        param_type = resolve_param_type(declared)

        if param_type is ParamType.DATETIME and value == datetime.min:
            value = None
        elif param_type is ParamType.BOOL and value is not None:
            value = BOOL_TRUE if value else BOOL_FALSE

        type_tag, size = self.adapter.type_tag(param_type, value)

        return BoundParameter(
            name=name,
            param_type=param_type,
            type_tag=type_tag,
            value=value,
            size=size,
        )

    def bind_value(self, name: str, arg: Any) -> BoundParameter:
        """Bind a bare value or a :class:`TypeValuePair`."""
        if isinstance(arg, TypeValuePair):
            return self.bind(name, arg.declared, arg.value)
        if arg is None:
            raise UnsupportedParameterTypeError(
                type(None)
            ).with_context(parameter=name, hint="pass TypeValuePair(<type>, None)")
        return self.bind(name, infer_param_type(arg), arg)

    def bind_all(self, args: Sequence[Any]) -> list[BoundParameter]:
        """Bind call-site arguments, expanding collections element by element."""
        parameters: list[BoundParameter] = []
        index = self.starting_index
        for arg in args:
            values: Iterable[Any] = arg if is_expandable(arg) else (arg,)
            for value in values:
                parameters.append(self.bind_value(f"{self.prefix}{index}", value))
                index += 1
        return parameters


__all__ = [
    "ParamType",
    "TypeValuePair",
    "BoundParameter",
    "ParameterBinder",
    "resolve_param_type",
    "infer_param_type",
    "is_expandable",
    "make_in_placeholders",
    "BOOL_TRUE",
    "BOOL_FALSE",
]
