"""First-match-wins dispatch of one log line."""

from __future__ import annotations

import inspect
import logging
from collections.abc import Iterable

from .errors import HandlerFault
from .models import DispatchOutcome, Rule

logger = logging.getLogger(__name__)


def match_rule(line: str, rules: Iterable[Rule]) -> Rule | None:
    """Return the first rule whose pattern matches the line, if any."""
    line = line.rstrip("\r\n")
    for rule in rules:
        if rule.pattern.search(line):
            return rule
    return None


async def dispatch(line: str, rules: Iterable[Rule]) -> DispatchOutcome:
    """Run the handler of the first matching rule and stop.

    Rules after the first match are never evaluated, even if they would match
    too. A failing handler is reported as :class:`HandlerFault` carrying the rule
    name; the caller decides whether to keep going.
    """
    rule = match_rule(line, rules)
    if rule is None:
        logger.debug("No rule matched: %r", line)
        return DispatchOutcome.unmatched()

    logger.info("Dispatching: %s", rule.name)
    try:
        result = rule.handler()
        if inspect.isawaitable(result):
            await result
    except Exception as exc:
        raise HandlerFault(rule.name, line.rstrip("\r\n")) from exc

    return DispatchOutcome(rule.name)
