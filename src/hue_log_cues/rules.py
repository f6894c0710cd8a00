"""Built-in rules for Call of Duty server logs (games_mp.log)."""

from __future__ import annotations

import re
from dataclasses import dataclass

from .actuator import LightCues
from .core import Handler, RuleRegistry
from .core.registry import DEFAULT_FLAGS

# Lines look like "  12:34 K;...": minutes:seconds since map start, then the event.
_PREFIX = r"^\s*\d+:\d+ "


@dataclass(frozen=True, slots=True)
class GamePatterns:
    game_started: re.Pattern[str] = re.compile(_PREFIX + r"InitGame:", DEFAULT_FLAGS)
    game_ended: re.Pattern[str] = re.compile(_PREFIX + r"ShutdownGame:", DEFAULT_FLAGS)
    player_death: re.Pattern[str] = re.compile(_PREFIX + r"K;", DEFAULT_FLAGS)
    fall_damage: re.Pattern[str] = re.compile(_PREFIX + r"D;(.*?);MOD_FALLING;", DEFAULT_FLAGS)
    damage: re.Pattern[str] = re.compile(_PREFIX + r"D;", DEFAULT_FLAGS)


def standard_rules(cues: LightCues) -> list[tuple[str, re.Pattern[str], Handler]]:
    """Standard rules in priority order (fall damage before generic damage)."""
    p = GamePatterns()
    return [
        ("game.started", p.game_started, cues.alert_green_light),
        ("game.ended", p.game_ended, cues.fade_out_green_light),
        ("player.death", p.player_death, cues.show_red_light),
        ("player.damaged.fall", p.fall_damage, lambda: cues.blink_yellow_light(128)),
        ("player.damaged.standard", p.damage, cues.blink_yellow_light),
    ]


def register_standard_rules(registry: RuleRegistry, cues: LightCues) -> None:
    for name, pattern, handler in standard_rules(cues):
        registry.register(name, pattern, handler)
