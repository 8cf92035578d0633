"""Null-hiding projection of column values into Python target types.

A database NULL read into a non-nullable target becomes that type's zero
value; array-like targets stay ``None``.  Targets without a zero value raise
:class:`~querykit.errors.UnsupportedNullTargetError`.

====================  ==================================
Target                NULL becomes
====================  ==================================
``int``               ``0``
``float``             ``0.0``
``Decimal``           ``Decimal(0)``
``str``               ``""``
``datetime``          ``datetime.min``
``uuid.UUID``         ``UUID(int=0)``
``bytes`` / ``list``  ``None``
====================  ==================================
"""

from __future__ import annotations

import uuid
from collections.abc import Callable
from datetime import datetime
from decimal import Decimal
from typing import Any

from querykit.errors import DatabaseError, UnsupportedNullTargetError

EMPTY_GUID = uuid.UUID(int=0)

_ZERO_VALUES: dict[type, Callable[[], Any]] = {
    int: lambda: 0,
    float: lambda: 0.0,
    Decimal: lambda: Decimal(0),
    str: lambda: "",
    datetime: lambda: datetime.min,
    uuid.UUID: lambda: EMPTY_GUID,
}

_ARRAY_TYPES = (bytes, bytearray, memoryview, list, tuple)


def is_null(value: Any) -> bool:
    return value is None


def to_bytes(value: Any) -> bytes | None:
    """Copy a binary column value into ``bytes``; NULL stays ``None``.

    Raises:
        DatabaseError: The column holds a non-binary value.
    """
    if is_null(value):
        return None
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)
    raise DatabaseError(f"Column value of type {type(value).__name__} is not binary")


def hide_null(target: type, value: Any) -> Any:
    """Return ``value``, or the zero value of ``target`` when it is NULL."""
    if value is not None:
        return value
    if isinstance(target, type) and issubclass(target, _ARRAY_TYPES):
        return None
    # bool is an int subclass but has no zero value of its own
    if target is not bool and target in _ZERO_VALUES:
        return _ZERO_VALUES[target]()
    raise UnsupportedNullTargetError(target)


def _to_uuid(value: Any) -> uuid.UUID:
    if isinstance(value, (bytes, bytearray)) and len(value) == 16:
        return uuid.UUID(bytes=bytes(value))
    return uuid.UUID(str(value))


def _to_datetime(value: Any) -> datetime:
    if isinstance(value, (bytes, bytearray)):
        value = value.decode()
    return datetime.fromisoformat(value)


_CONVERTERS: dict[type, tuple[tuple[type, ...], Callable[[Any], Any]]] = {
    datetime: ((str, bytes, bytearray), _to_datetime),
    uuid.UUID: ((str, bytes, bytearray), _to_uuid),
    Decimal: ((str, int, float), lambda v: Decimal(str(v))),
    float: ((int, Decimal), float),
    bytes: ((bytearray, memoryview), bytes),
}


def project(target: type, value: Any) -> Any:
    """
    Project a column value into ``target``.

    NULL is hidden per :func:`hide_null`.  Values drivers return in a storage
    form (ISO text for datetimes, text or 16 bytes for GUIDs, text for
    decimals) are converted; anything else is returned unchanged.
    """
    if is_null(value):
        return hide_null(target, value)
    converter = _CONVERTERS.get(target)
    if converter is not None:
        source_types, convert = converter
        if isinstance(value, source_types) and not isinstance(value, bool):
            return convert(value)
    return value


__all__ = [
    "EMPTY_GUID",
    "is_null",
    "hide_null",
    "project",
    "to_bytes",
]
