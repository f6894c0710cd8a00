"""Core data models for log-event dispatch."""

from __future__ import annotations

import re
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum

# Zero-argument action; may return an awaitable that the dispatcher awaits.
Handler = Callable[[], Awaitable[None] | None]


@dataclass(frozen=True, slots=True)
class Rule:
    """Named pattern bound to a handler."""

    name: str
    pattern: re.Pattern[str]
    handler: Handler = field(compare=False)


@dataclass(frozen=True, slots=True)
class DispatchOutcome:
    """Result of dispatching one line: the matched rule name, or None."""

    rule_name: str | None = None

    @property
    def matched(self) -> bool:
        return self.rule_name is not None

    @classmethod
    def unmatched(cls) -> DispatchOutcome:
        return cls(rule_name=None)


class EngineState(str, Enum):
    """Lifecycle states of the engine loop."""

    STARTING = "starting"
    READING = "reading"
    DISPATCHING = "dispatching"
    FAULTED = "faulted"
    STOPPED = "stopped"


@dataclass(slots=True)
class EngineStats:
    """Counters updated by the engine loop."""

    lines_read: int = 0
    matched: int = 0
    unmatched: int = 0
    handler_faults: int = 0
