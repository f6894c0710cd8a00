"""Engine configuration."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Literal

RotationPolicy = Literal["fatal", "reopen"]
ROTATION_POLICIES: tuple[str, ...] = ("fatal", "reopen")

# Upper bound on the poll interval so a stop request or a new line is never
# observed more than a second late.
MAX_POLL_INTERVAL = 1.0


@dataclass(frozen=True, slots=True)
class EngineConfig:
    log_path: Path
    poll_interval: float = 0.25
    rotation_policy: RotationPolicy = "fatal"
    encoding: str = "utf-8"
    decode_errors: str = "replace"
    chunk_size: int = 64 * 1024
    max_line_bytes: int = 1024 * 1024

    def __post_init__(self) -> None:
        if not isinstance(self.log_path, Path):
            object.__setattr__(self, "log_path", Path(self.log_path))
        if not 0 < self.poll_interval <= MAX_POLL_INTERVAL:
            raise ValueError(f"poll_interval must be in (0, {MAX_POLL_INTERVAL}]")
        if self.rotation_policy not in ROTATION_POLICIES:
            raise ValueError("rotation_policy must be 'fatal' or 'reopen'")
        if self.chunk_size < 1:
            raise ValueError("chunk_size must be >= 1")
        if self.max_line_bytes < 1:
            raise ValueError("max_line_bytes must be >= 1")
