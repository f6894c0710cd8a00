"""Ordered rule registry."""

from __future__ import annotations

import re
from collections.abc import Callable, Iterator

from .errors import DuplicateRuleName
from .models import Handler, Rule

# Patterns given as strings match case-insensitively and let "." span newlines.
DEFAULT_FLAGS = re.IGNORECASE | re.DOTALL


def compile_pattern(pattern: str | re.Pattern[str]) -> re.Pattern[str]:
    if isinstance(pattern, re.Pattern):
        return pattern
    return re.compile(pattern, DEFAULT_FLAGS)


class RuleRegistry:
    """Rules keyed by name, evaluated in registration order.

    Earlier registrations take priority: the dispatcher tries rules first
    inserted, first tried.
    """

    def __init__(self) -> None:
        self._rules: dict[str, Rule] = {}

    def register(
        self,
        name: str,
        pattern: str | re.Pattern[str],
        handler: Handler,
    ) -> Rule:
        """Append a rule to the evaluation order."""
        if name in self._rules:
            raise DuplicateRuleName(name)
        if not callable(handler):
            raise TypeError(f"Handler for rule {name!r} is not callable")
        rule = Rule(name=name, pattern=compile_pattern(pattern), handler=handler)
        self._rules[name] = rule
        return rule

    def on(self, name: str, pattern: str | re.Pattern[str]) -> Callable[[Handler], Handler]:
        """Decorator form of :meth:`register`."""

        def decorator(handler: Handler) -> Handler:
            self.register(name, pattern, handler)
            return handler

        return decorator

    def unregister(self, name: str) -> Rule:
        # dict deletion keeps the relative order of the remaining rules
        return self._rules.pop(name)

    def rule(self, name: str) -> Rule:
        return self._rules[name]

    def rules(self) -> tuple[Rule, ...]:
        """Snapshot of the rules in evaluation order."""
        return tuple(self._rules.values())

    def names(self) -> tuple[str, ...]:
        return tuple(self._rules)

    def __len__(self) -> int:
        return len(self._rules)

    def __contains__(self, name: object) -> bool:
        return name in self._rules

    def __iter__(self) -> Iterator[Rule]:
        return iter(self.rules())
