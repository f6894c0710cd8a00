"""Drive Philips Hue light cues from a live game server log."""

from __future__ import annotations

__version__ = "0.1.0"
