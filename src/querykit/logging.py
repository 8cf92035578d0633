"""
Structured logging for querykit.

Manifesto:
    A data-access layer sits underneath everything else, so its logs must be
    cheap, structured and free of user data.  querykit logs connection and
    transaction lifecycle events and command execution timings; bound
    parameter values are never logged.

Architecture:
    ::

        configure_logging(level="INFO", json_format=None, service="querykit")
            ↓
        structlog processor chain:
          1. TimeStamper(iso)
          2. merge_contextvars
          3. add_log_level / add_logger_name
          4. StackInfoRenderer / set_exc_info
          5. service field, then redaction of value-like keys
          6. JSONRenderer (stderr not a tty) or ConsoleRenderer
        stdlib root logger → stderr

Examples:
    >>> from querykit.logging import configure_logging, get_logger
    >>> configure_logging(level="DEBUG", json_format=False)
    >>> logger = get_logger(__name__)
    >>> logger.debug("command_executed", engine="sqlite", parameters=2)

Tags:
    logging, structlog, observability, querykit

Doc-Types:
    api-reference
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

from querykit.errors import ConfigError


_service = "querykit"

# Keys that could carry bound parameter values.
_REDACTED_KEYS = frozenset({"value", "values", "args", "params"})


def _add_service(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    event_dict.setdefault("service", _service)
    return event_dict


def _redact_values(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Replace anything that looks like a parameter value with a marker."""
    for key in _REDACTED_KEYS.intersection(event_dict):
        event_dict[key] = "<redacted>"
    return event_dict


def _processors(json_format: bool, add_timestamp: bool) -> list[Processor]:
    chain: list[Processor] = []
    if add_timestamp:
        chain.append(structlog.processors.TimeStamper(fmt="iso"))
    chain += [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        _add_service,
        _redact_values,
    ]
    if json_format:
        chain += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        chain.append(structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()))
    return chain


def configure_logging(
    level: str = "INFO",
    json_format: bool | None = None,
    service: str = "querykit",
    add_timestamp: bool = True,
) -> None:
    """Configure structlog (and the stdlib root logger it writes through).

    Args:
        level: DEBUG shows every executed command; INFO shows connection
            and transaction lifecycle; WARNING shows discarded transactions
        json_format: True for JSON lines, False for console, None to pick
            JSON when stderr is not a terminal
        service: Value of the ``service`` field on every event
        add_timestamp: Prefix events with an ISO timestamp
    """
    global _service
    _service = service
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        raise ConfigError(f"Unknown log level: {level}")

    if json_format is None:
        json_format = not sys.stderr.isatty()

    structlog.configure(
        processors=_processors(json_format, add_timestamp),
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )
    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=numeric_level)


def get_logger(name: str | None = None) -> Any:
    """Return a structlog logger, normally ``get_logger(__name__)``."""
    return structlog.get_logger(name)


def bind_context(**kwargs: Any) -> None:
    """Attach fields (e.g. ``job="nightly-import"``) to every later event in this context."""
    structlog.contextvars.bind_contextvars(**kwargs)


def unbind_context(*keys: str) -> None:
    structlog.contextvars.unbind_contextvars(*keys)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()


class LogContext:
    """Bind fields for the duration of a ``with`` block.

    Example:
        with LogContext(job="nightly-import"):
            executor.execute("DELETE FROM staging")
    """

    def __init__(self, **fields: Any):
        self.fields = fields

    def __enter__(self) -> LogContext:
        bind_context(**self.fields)
        return self

    def __exit__(self, *exc_info: Any) -> None:
        unbind_context(*self.fields)


__all__ = [
    "configure_logging",
    "get_logger",
    "bind_context",
    "unbind_context",
    "clear_context",
    "LogContext",
]
