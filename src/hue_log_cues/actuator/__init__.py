"""Hue lighting collaborator driven by rule handlers."""

from __future__ import annotations

from .base import LightActuator, LightState
from .cues import ALL_LIGHTS_GROUP, LightCues, LightIds
from .hue import HueBridgeClient, HueBridgeError

__all__ = [
    "ALL_LIGHTS_GROUP",
    "HueBridgeClient",
    "HueBridgeError",
    "LightActuator",
    "LightCues",
    "LightIds",
    "LightState",
]
