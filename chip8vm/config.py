"""Host-side emulator configuration."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, Union


@dataclass
class EmulatorConfig:
    scale: int = 10              # window pixels per CHIP-8 pixel
    cpu_hz: int = 500            # instructions per second
    timer_hz: int = 60           # delay/sound timer rate, also the frame rate
    beep_frequency: int = 440
    beep_duration: float = 0.2
    pitch_variation: int = 15
    vsync: bool = False
    caption: str = "CHIP-8 Emulator"

    def __post_init__(self):
        for name in ("scale", "cpu_hz", "timer_hz", "pitch_variation"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"{name} must be an integer, got {value!r}")
        for name in ("beep_frequency", "beep_duration"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ValueError(f"{name} must be a number, got {value!r}")
        for name in ("scale", "cpu_hz", "timer_hz"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive, got {getattr(self, name)!r}")
        if self.beep_duration <= 0:
            raise ValueError(f"beep_duration must be positive, got {self.beep_duration!r}")

    @property
    def steps_per_tick(self) -> int:
        """Instructions to run between two timer ticks (at least one)."""
        return max(1, self.cpu_hz // self.timer_hz)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EmulatorConfig":
        if not isinstance(data, dict):
            raise ValueError(f"Config must be a JSON object, got {type(data).__name__}")
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown config keys: {', '.join(sorted(unknown))}")
        return cls(**data)

    @classmethod
    def load(cls, path: Union[str, Path]) -> "EmulatorConfig":
        with open(path, "r", encoding="utf-8") as f:
            return cls.from_dict(json.load(f))

    def save(self, path: Union[str, Path]) -> None:
        with open(path, "w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, indent=2)
