"""Command: one query text with its bound parameters."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from querykit.binding import BoundParameter


@dataclass
class Command:
    """
    An ephemeral command built per call and never reused.

    ``timeout`` is in seconds; a negative value leaves the engine default in
    place.  ``transaction`` is the native transaction the command runs in, or
    ``None`` outside a transaction scope.
    """

    text: str
    parameters: list[BoundParameter] = field(default_factory=list)
    timeout: int = -1
    transaction: Any = None

    @property
    def parameter_names(self) -> list[str]:
        return [p.name for p in self.parameters]


__all__ = ["Command"]
