"""Log-event dispatch core: line source, rule registry, dispatcher and engine loop."""

from __future__ import annotations

from .config import EngineConfig
from .dispatcher import dispatch, match_rule
from .engine import CueEngine
from .errors import DuplicateRuleName, HandlerFault, SourceClosed, SourceUnavailable
from .models import DispatchOutcome, EngineState, EngineStats, Handler, Rule
from .registry import RuleRegistry
from .source import LineSource, open_line_source

__all__ = [
    "CueEngine",
    "DispatchOutcome",
    "DuplicateRuleName",
    "EngineConfig",
    "EngineState",
    "EngineStats",
    "Handler",
    "HandlerFault",
    "LineSource",
    "Rule",
    "RuleRegistry",
    "SourceClosed",
    "SourceUnavailable",
    "dispatch",
    "match_rule",
    "open_line_source",
]
