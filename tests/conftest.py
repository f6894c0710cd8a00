from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable
from pathlib import Path

import pytest

from hue_log_cues.actuator import LightState


@pytest.fixture
def write_game_log() -> Callable[[Path], None]:
    def _write(path: Path) -> None:
        path.write_text(
            "\n".join(
                [
                    "  0:00 InitGame: \\g_gametype\\dm\\mapname\\mp_crash",
                    "  0:12 K;0;0;allies;Alpha;1;1;axis;Bravo;ak47_mp;100;MOD_RIFLE_BULLET;torso_upper",
                    "  0:15 D;0;0;allies;Alpha;1;1;axis;Bravo;none;10;MOD_FALLING;none",
                ]
            )
            + "\n",
            encoding="utf-8",
        )

    return _write


@pytest.fixture
def append_lines() -> Callable[[Path, list[str]], None]:
    def _append(path: Path, lines: list[str]) -> None:
        with path.open("a", encoding="utf-8") as f:
            f.write("".join(line + "\n" for line in lines))
            f.flush()

    return _append


@pytest.fixture
def wait_until() -> Callable[[Callable[[], bool]], Awaitable[None]]:
    async def _wait(predicate: Callable[[], bool], timeout: float = 3.0) -> None:
        deadline = time.monotonic() + timeout
        while not predicate():
            if time.monotonic() > deadline:
                raise AssertionError("condition not reached in time")
            await asyncio.sleep(0.01)

    return _wait


class FakeActuator:
    """Records light commands instead of talking to a bridge."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, int, LightState]] = []

    async def set_light(self, light_id: int, state: LightState) -> None:
        self.calls.append(("light", light_id, state))

    async def set_group(self, group_id: int, state: LightState) -> None:
        self.calls.append(("group", group_id, state))


@pytest.fixture
def actuator() -> FakeActuator:
    return FakeActuator()
