"""Command line entrypoint: self-test the lights, then follow the game log.

Run:
    hue-log-cues --settings settings.ini
    python -m hue_log_cues
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import signal
import sys
from collections.abc import Sequence

import httpx

from .actuator import HueBridgeClient, HueBridgeError, LightCues
from .core import CueEngine, DuplicateRuleName, RuleRegistry, SourceClosed, SourceUnavailable
from .core.config import ROTATION_POLICIES
from .rules import register_standard_rules
from .settings import DEFAULT_SETTINGS_FILE, Settings, SettingsError, load_settings

LOGGER = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_SOURCE_CLOSED = 1
EXIT_STARTUP_FAILED = 2

INTRO = "Philips Hue controller for CoD: Modern Warfare\n" + "-" * 39


def _configure_logging() -> None:
    level_name = os.getenv("HUE_LOG_CUES_LOG_LEVEL", "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def build_engine(settings: Settings, cues: LightCues) -> CueEngine:
    """Register the standard rules and wire them into an engine."""
    registry = RuleRegistry()
    register_standard_rules(registry, cues)
    return CueEngine(settings.engine_config(), registry)


def _install_signal_handlers(engine: CueEngine) -> list[signal.Signals]:
    loop = asyncio.get_running_loop()
    installed: list[signal.Signals] = []
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, engine.stop)
        except (NotImplementedError, RuntimeError):
            # Not supported on this platform; Ctrl+C falls back to KeyboardInterrupt.
            continue
        installed.append(sig)
    return installed


async def serve(
    settings: Settings,
    *,
    self_test: bool = True,
    transport: httpx.AsyncBaseTransport | None = None,
) -> None:
    """Connect to the bridge, run the light self-test and follow the log.

    SIGINT/SIGTERM stop the engine from the moment the bridge client is open,
    so an interrupted ping or self-test returns normally as well.
    """
    hue_cfg = settings.philips_hue
    async with HueBridgeClient(hue_cfg.host, hue_cfg.user, transport=transport) as hue:
        cues = LightCues(hue, hue_cfg.light_ids())
        engine = build_engine(settings, cues)
        installed = _install_signal_handlers(engine)
        try:
            print("Testing connection to Philips Hue: ", end="", flush=True)
            try:
                await hue.ping()
            except HueBridgeError:
                print("Failed!")
                raise
            print("Success!")

            if self_test and not engine.stop_requested:
                await cues.turn_off_all_lights()
                await cues.test_each_light()
            if engine.stop_requested:
                LOGGER.info("Stopped before watching the log")
                return

            await engine.run()
        finally:
            loop = asyncio.get_running_loop()
            for sig in installed:
                loop.remove_signal_handler(sig)
        LOGGER.info(
            "Processed %d line(s): %d matched, %d handler error(s)",
            engine.stats.lines_read,
            engine.stats.matched,
            engine.stats.handler_faults,
        )


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Drive Philips Hue lights from a live game server log.")
    p.add_argument(
        "--settings",
        default=None,
        help=f"INI settings file (default: {DEFAULT_SETTINGS_FILE} if present)",
    )
    p.add_argument("--log-path", default=None, help="Game log to follow (overrides settings)")
    p.add_argument("--poll-interval", default=None, help="Seconds between log polls, at most 1.0")
    p.add_argument("--rotation-policy", choices=ROTATION_POLICIES, default=None)
    p.add_argument("--skip-self-test", action="store_true", help="Skip the light self-test")
    return p


def main(argv: Sequence[str] | None = None) -> None:
    args = _build_parser().parse_args(argv)
    _configure_logging()
    print(INTRO)

    try:
        settings = load_settings(
            args.settings,
            overrides={
                "LOG_PATH": args.log_path,
                "POLL_INTERVAL": args.poll_interval,
                "ROTATION_POLICY": args.rotation_policy,
            },
        )
        asyncio.run(serve(settings, self_test=not args.skip_self_test))
    except SourceClosed as e:
        print(f"Error: log source disappeared: {e}", file=sys.stderr)
        raise SystemExit(EXIT_SOURCE_CLOSED)
    except (SettingsError, HueBridgeError, SourceUnavailable, DuplicateRuleName) as e:
        print(f"Error: could not start: {e}", file=sys.stderr)
        raise SystemExit(EXIT_STARTUP_FAILED)
    except KeyboardInterrupt:
        # signal handlers are not available on every platform
        print("Interrupted", file=sys.stderr)

    raise SystemExit(EXIT_OK)


if __name__ == "__main__":
    main()
