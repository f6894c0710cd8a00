"""Light state model and the actuator interface handlers call into."""

from __future__ import annotations

from typing import Any, Literal, Protocol

from pydantic import BaseModel, ConfigDict, Field


class LightState(BaseModel):
    """Desired state of one light (or group), in Hue API units."""

    model_config = ConfigDict(frozen=True)

    on: bool
    brightness: int | None = Field(
        default=None, ge=0, le=254, serialization_alias="bri", description="0..254"
    )
    transition_time: int | None = Field(
        default=None,
        ge=0,
        serialization_alias="transitiontime",
        description="Fade duration in 100 ms ticks.",
    )
    alert: Literal["none", "select", "lselect"] | None = None

    def to_payload(self) -> dict[str, Any]:
        """Return the JSON body for a Hue state/action request."""
        return self.model_dump(by_alias=True, exclude_none=True)


class LightActuator(Protocol):
    """Anything that can apply a LightState to a light or a group."""

    async def set_light(self, light_id: int, state: LightState) -> None:
        ...

    async def set_group(self, group_id: int, state: LightState) -> None:
        ...
