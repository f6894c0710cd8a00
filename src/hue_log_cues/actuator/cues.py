"""Light cue sequences played in response to game events."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass

from .base import LightActuator, LightState

ALL_LIGHTS_GROUP = 0

_FULL_ON = LightState(on=True, brightness=254, transition_time=0)
_OFF = LightState(on=False, brightness=0, transition_time=0)


@dataclass(frozen=True, slots=True)
class LightIds:
    """Bridge light ids assigned to each cue colour."""

    red: int = 1
    yellow: int = 2
    green: int = 3

    def all(self) -> tuple[int, ...]:
        return (self.red, self.yellow, self.green)


class LightCues:
    def __init__(self, actuator: LightActuator, lights: LightIds | None = None) -> None:
        self.actuator = actuator
        self.lights = lights or LightIds()

    async def show_red_light(self) -> None:
        """Flash red, then fade out."""
        await self.actuator.set_light(self.lights.red, _FULL_ON)
        await self.actuator.set_light(
            self.lights.red, LightState(on=False, brightness=0, transition_time=3)
        )

    async def blink_yellow_light(self, brightness: int = 254) -> None:
        await self.actuator.set_light(
            self.lights.yellow, LightState(on=True, brightness=brightness, transition_time=0)
        )
        await asyncio.sleep(0.01)
        await self.actuator.set_light(self.lights.yellow, _OFF)

    async def alert_green_light(self) -> None:
        await self.actuator.set_light(
            self.lights.green,
            LightState(on=True, alert="lselect", brightness=128, transition_time=1),
        )

    async def fade_out_green_light(self) -> None:
        await self.actuator.set_light(
            self.lights.green, LightState(on=False, brightness=0, transition_time=1)
        )

    async def turn_off_all_lights(self) -> None:
        await self.actuator.set_group(ALL_LIGHTS_GROUP, LightState(on=False))

    async def test_each_light(self, pause: float = 0.02) -> None:
        """Switch every cue light on and off once, in order."""
        for light_id in self.lights.all():
            await self.actuator.set_light(light_id, _FULL_ON)
            await asyncio.sleep(pause)
            await self.actuator.set_light(light_id, _OFF)
            await asyncio.sleep(pause)
