from __future__ import annotations

import asyncio
import json
import os
import signal
import sys
from pathlib import Path

import httpx
import pytest

from hue_log_cues import cli
from hue_log_cues.actuator import HueBridgeError, LightCues, LightState
from hue_log_cues.core import EngineState, SourceClosed, SourceUnavailable
from hue_log_cues.settings import Settings


def _settings(log_path: Path) -> Settings:
    return Settings.model_validate(
        {
            "philips_hue": {"host": "bridge.local", "user": "abc"},
            "call_of_duty": {"log_path": str(log_path), "poll_interval": 0.02},
        }
    )


def _bridge(requests: list[httpx.Request]) -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        if request.url.path.endswith("/config"):
            return httpx.Response(200, json={"name": "Philips hue"})
        return httpx.Response(200, json=[])

    return httpx.MockTransport(handler)


@pytest.mark.asyncio
async def test_engine_drives_lights_from_appended_lines(
    tmp_path: Path, write_game_log, append_lines, wait_until, actuator
) -> None:
    path = tmp_path / "games_mp.log"
    write_game_log(path)
    engine = cli.build_engine(_settings(path), LightCues(actuator))

    task = asyncio.create_task(engine.run())
    await wait_until(lambda: engine.state is EngineState.READING)
    append_lines(path, ["  4:00 D;0;0;allies;Alpha;;-1;world;;none;12;MOD_FALLING;none"])
    await wait_until(lambda: engine.stats.matched == 1)
    engine.stop()
    await asyncio.wait_for(task, timeout=2)

    assert actuator.calls[0] == ("light", 2, LightState(on=True, brightness=128, transition_time=0))


@pytest.mark.asyncio
async def test_serve_runs_self_test_then_fails_on_missing_log(tmp_path: Path, capsys) -> None:
    requests: list[httpx.Request] = []

    with pytest.raises(SourceUnavailable):
        await cli.serve(_settings(tmp_path / "missing.log"), transport=_bridge(requests))

    assert "Success!" in capsys.readouterr().out
    assert requests[0].url.path == "/api/abc/config"
    assert requests[1].url.path == "/api/abc/groups/0/action"
    assert json.loads(requests[1].content) == {"on": False}
    # three lights, on and off each
    assert len(requests) == 2 + 6


@pytest.mark.asyncio
async def test_serve_skips_self_test(tmp_path: Path) -> None:
    requests: list[httpx.Request] = []

    with pytest.raises(SourceUnavailable):
        await cli.serve(
            _settings(tmp_path / "missing.log"), self_test=False, transport=_bridge(requests)
        )

    assert [r.url.path for r in requests] == ["/api/abc/config"]


@pytest.mark.asyncio
async def test_serve_reports_unreachable_bridge(tmp_path: Path, capsys) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=[{"error": {"description": "unauthorized user"}}])

    with pytest.raises(HueBridgeError):
        await cli.serve(_settings(tmp_path / "games_mp.log"), transport=httpx.MockTransport(handler))

    out = capsys.readouterr().out
    assert "Testing connection to Philips Hue: Failed!" in out
    # main reports the cause once, on stderr
    assert "unauthorized user" not in out


def test_main_exits_2_on_bad_settings(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys
) -> None:
    monkeypatch.chdir(tmp_path)
    for name in ("HUE_LOG_CUES_HOST", "HUE_LOG_CUES_USER", "HUE_LOG_CUES_LOG_PATH"):
        monkeypatch.delenv(name, raising=False)

    with pytest.raises(SystemExit) as excinfo:
        cli.main([])

    assert excinfo.value.code == cli.EXIT_STARTUP_FAILED
    captured = capsys.readouterr()
    assert "Philips Hue controller" in captured.out
    assert "could not start" in captured.err


def test_main_exits_1_when_log_disappears(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys
) -> None:
    monkeypatch.chdir(tmp_path)
    async def fake_serve(settings: Settings, *, self_test: bool = True) -> None:
        raise SourceClosed("Log file was removed")

    monkeypatch.setattr(cli, "serve", fake_serve)
    monkeypatch.setenv("HUE_LOG_CUES_HOST", "bridge.local")
    monkeypatch.setenv("HUE_LOG_CUES_USER", "abc")

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["--log-path", str(tmp_path / "g.log")])

    assert excinfo.value.code == cli.EXIT_SOURCE_CLOSED
    assert "log source disappeared" in capsys.readouterr().err


def test_main_reports_missing_settings_file(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys
) -> None:
    monkeypatch.setenv("HUE_LOG_CUES_HOST", "bridge.local")
    monkeypatch.setenv("HUE_LOG_CUES_USER", "abc")

    with pytest.raises(SystemExit) as excinfo:
        cli.main(
            ["--settings", str(tmp_path / "settigns.ini"), "--log-path", str(tmp_path / "g.log")]
        )

    assert excinfo.value.code == cli.EXIT_STARTUP_FAILED
    assert "Settings file not found" in capsys.readouterr().err


def test_main_exits_0_after_clean_shutdown(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    seen: list[Settings] = []

    async def fake_serve(settings: Settings, *, self_test: bool = True) -> None:
        seen.append(settings)

    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(cli, "serve", fake_serve)
    monkeypatch.setenv("HUE_LOG_CUES_HOST", "bridge.local")
    monkeypatch.setenv("HUE_LOG_CUES_USER", "abc")

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["--log-path", str(tmp_path / "g.log"), "--skip-self-test"])

    assert excinfo.value.code == cli.EXIT_OK
    assert seen[0].call_of_duty.log_path == tmp_path / "g.log"


def test_main_exits_0_on_keyboard_interrupt(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys
) -> None:
    async def fake_serve(settings: Settings, *, self_test: bool = True) -> None:
        raise KeyboardInterrupt

    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(cli, "serve", fake_serve)
    monkeypatch.setenv("HUE_LOG_CUES_HOST", "bridge.local")
    monkeypatch.setenv("HUE_LOG_CUES_USER", "abc")

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["--log-path", str(tmp_path / "g.log")])

    assert excinfo.value.code == cli.EXIT_OK
    assert "Traceback" not in capsys.readouterr().err


@pytest.mark.skipif(sys.platform == "win32", reason="needs loop signal handlers")
@pytest.mark.asyncio
async def test_sigterm_stops_serve(tmp_path: Path, write_game_log) -> None:
    path = tmp_path / "games_mp.log"
    write_game_log(path)
    requests: list[httpx.Request] = []

    loop = asyncio.get_running_loop()
    loop.call_later(0.2, os.kill, os.getpid(), signal.SIGTERM)
    await asyncio.wait_for(
        cli.serve(_settings(path), self_test=False, transport=_bridge(requests)), timeout=3
    )

    assert [r.url.path for r in requests] == ["/api/abc/config"]


@pytest.mark.skipif(sys.platform == "win32", reason="needs loop signal handlers")
@pytest.mark.asyncio
async def test_sigint_during_self_test_skips_the_engine(tmp_path: Path) -> None:
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        if request.url.path.endswith("/groups/0/action"):
            os.kill(os.getpid(), signal.SIGINT)
        if request.url.path.endswith("/config"):
            return httpx.Response(200, json={"name": "Philips hue"})
        return httpx.Response(200, json=[])

    # the log does not exist, so reaching the engine would raise SourceUnavailable
    await asyncio.wait_for(
        cli.serve(_settings(tmp_path / "missing.log"), transport=httpx.MockTransport(handler)),
        timeout=3,
    )

    assert requests[1].url.path == "/api/abc/groups/0/action"
