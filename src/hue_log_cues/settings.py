"""Settings file loading.

The settings file is an INI file with two sections::

    [philips_hue]
    host = 192.168.1.20
    user = <bridge username>

    [call_of_duty]
    log_path = /srv/cod/main/games_mp.log

Any value can be overridden with a ``HUE_LOG_CUES_*`` environment variable.
"""

from __future__ import annotations

import configparser
import os
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, ValidationError

from .actuator import LightIds
from .core import EngineConfig

ENV_PREFIX = "HUE_LOG_CUES_"
DEFAULT_SETTINGS_FILE = "settings.ini"


class SettingsError(ValueError):
    """The settings file is missing, unreadable or has invalid values."""


class HueSettings(BaseModel):
    host: str = Field(min_length=1)
    user: str = Field(min_length=1)
    red_light: int = Field(default=1, ge=1)
    yellow_light: int = Field(default=2, ge=1)
    green_light: int = Field(default=3, ge=1)

    def light_ids(self) -> LightIds:
        return LightIds(red=self.red_light, yellow=self.yellow_light, green=self.green_light)


class GameLogSettings(BaseModel):
    log_path: Path
    poll_interval: float = Field(default=0.25, gt=0.0, le=1.0)
    rotation_policy: Literal["fatal", "reopen"] = "fatal"


class Settings(BaseModel):
    philips_hue: HueSettings
    call_of_duty: GameLogSettings

    def engine_config(self) -> EngineConfig:
        return EngineConfig(
            log_path=self.call_of_duty.log_path,
            poll_interval=self.call_of_duty.poll_interval,
            rotation_policy=self.call_of_duty.rotation_policy,
        )


# env var suffix -> (section, key)
_ENV_OVERRIDES: dict[str, tuple[str, str]] = {
    "HOST": ("philips_hue", "host"),
    "USER": ("philips_hue", "user"),
    "LOG_PATH": ("call_of_duty", "log_path"),
    "POLL_INTERVAL": ("call_of_duty", "poll_interval"),
    "ROTATION_POLICY": ("call_of_duty", "rotation_policy"),
}


def _read_ini(path: Path) -> dict[str, dict[str, str]]:
    parser = configparser.ConfigParser(interpolation=None)
    try:
        with path.open(encoding="utf-8") as f:
            parser.read_file(f)
    except OSError as exc:
        raise SettingsError(f"Cannot read settings file {path}: {exc}") from exc
    except configparser.Error as exc:
        raise SettingsError(f"Malformed settings file {path}: {exc}") from exc
    return {section: dict(parser.items(section)) for section in parser.sections()}


def load_settings(
    path: str | Path | None = None,
    *,
    overrides: dict[str, str | None] | None = None,
) -> Settings:
    """Load settings from an INI file, then apply env and explicit overrides.

    ``overrides`` uses the same keys as the env suffixes (``"LOG_PATH"`` etc.)
    and wins over the environment. Without ``path`` the default settings file is
    read if present, so every required value may come from overrides instead; an
    explicit ``path`` that does not exist raises :class:`SettingsError`.
    """
    if path is None:
        path = Path(DEFAULT_SETTINGS_FILE)
    else:
        path = Path(path)
        if not path.exists():
            raise SettingsError(f"Settings file not found: {path}")
    raw: dict[str, dict[str, str]] = {"philips_hue": {}, "call_of_duty": {}}
    if path.exists():
        for section, values in _read_ini(path).items():
            raw.setdefault(section, {}).update(values)

    for suffix, (section, key) in _ENV_OVERRIDES.items():
        value = os.getenv(ENV_PREFIX + suffix)
        if value:
            raw[section][key] = value
    for suffix, value in (overrides or {}).items():
        if suffix not in _ENV_OVERRIDES:
            raise SettingsError(f"Unknown setting override: {suffix}")
        if value is not None:
            section, key = _ENV_OVERRIDES[suffix]
            raw[section][key] = value

    try:
        return Settings.model_validate(
            {"philips_hue": raw["philips_hue"], "call_of_duty": raw["call_of_duty"]}
        )
    except ValidationError as exc:
        problems = ", ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()
        )
        raise SettingsError(f"Invalid settings ({path}): {problems}") from exc
