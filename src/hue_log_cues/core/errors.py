"""Exception types raised by the dispatch core."""

from __future__ import annotations


class SourceUnavailable(OSError):
    """The log file could not be opened for tailing."""


class SourceClosed(OSError):
    """The tailed log stopped yielding data and will never yield more."""


class DuplicateRuleName(ValueError):
    """A rule with the same name is already registered."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Rule already registered: {name!r}")
        self.name = name


class HandlerFault(RuntimeError):
    """A rule handler raised while handling one line.

    The original exception is available as ``__cause__``.
    """

    def __init__(self, rule_name: str, line: str) -> None:
        super().__init__(f"Handler for rule {rule_name!r} failed on line {line!r}")
        self.rule_name = rule_name
        self.line = line
