from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, fields
from typing import Any, Mapping


logger = logging.getLogger(__name__)

SETTINGS_KEY = "settings"


@dataclass(frozen=True)
class EngineConfig:
    work_duration_minutes: int = 25
    break_duration_minutes: int = 5
    total_cycles: int = 4
    auto_break_enabled: bool = False
    notifications_enabled: bool = True
    adaptive_sessions: bool = False

    @property
    def work_seconds(self) -> int:
        return self.work_duration_minutes * 60

    @property
    def break_seconds(self) -> int:
        return self.break_duration_minutes * 60

    def validate(self) -> EngineConfig:
        if self.work_duration_minutes <= 0 or self.break_duration_minutes <= 0:
            raise ValueError("Durations must be positive")
        if self.total_cycles <= 0:
            raise ValueError("Cycle count must be positive")
        return self

    def to_settings(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_settings(cls, raw: Mapping[str, Any] | None) -> EngineConfig:
        """Reads the stored settings dict, keeping defaults for bad values."""
        if not isinstance(raw, Mapping):
            return cls()
        values: dict[str, Any] = {}
        for field in fields(cls):
            if field.name not in raw:
                continue
            value = raw[field.name]
            expected = bool if field.type in ("bool", bool) else int
            if expected is int and (isinstance(value, bool) or not isinstance(value, int) or value <= 0):
                logger.warning("Ignoring invalid setting %s=%r", field.name, value)
                continue
            if expected is bool and not isinstance(value, bool):
                logger.warning("Ignoring invalid setting %s=%r", field.name, value)
                continue
            values[field.name] = value
        return cls(**values)
