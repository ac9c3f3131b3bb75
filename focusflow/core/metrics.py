from __future__ import annotations

"""Flow metrics record persisted between runs."""

from dataclasses import asdict, dataclass, replace
from datetime import date, datetime
from enum import Enum
from typing import Any, Mapping


BASELINE_SESSION_MINUTES = 25.0


class FlowIntensity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass
class FlowMetrics:
    consecutive_sessions: int = 0
    current_streak: int = 0
    longest_streak: int = 0
    flow_intensity: FlowIntensity = FlowIntensity.MEDIUM
    distraction_count: int = 0
    session_start_timestamp: datetime | None = None
    total_focus_minutes: int = 0
    average_session_length: float = BASELINE_SESSION_MINUTES
    best_flow_duration: float = 0.0
    last_session_date: date | None = None

    def copy(self) -> FlowMetrics:
        return replace(self)

    def to_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["flow_intensity"] = self.flow_intensity.value
        payload["session_start_timestamp"] = (
            self.session_start_timestamp.isoformat() if self.session_start_timestamp else None
        )
        payload["last_session_date"] = self.last_session_date.isoformat() if self.last_session_date else None
        return payload

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> FlowMetrics:
        """Builds metrics from a stored mapping.

        Missing keys take their defaults. Wrong types or negative counters
        raise ValueError. The stored intensity is not trusted; callers
        recompute it from the source fields.
        """
        if not isinstance(raw, Mapping):
            raise ValueError(f"Flow metrics must be a mapping, got {type(raw).__name__}")
        defaults = cls()
        return cls(
            consecutive_sessions=_count(raw, "consecutive_sessions", defaults.consecutive_sessions),
            current_streak=_count(raw, "current_streak", defaults.current_streak),
            longest_streak=_count(raw, "longest_streak", defaults.longest_streak),
            distraction_count=_count(raw, "distraction_count", defaults.distraction_count),
            session_start_timestamp=_parse_timestamp(raw.get("session_start_timestamp")),
            total_focus_minutes=_count(raw, "total_focus_minutes", defaults.total_focus_minutes),
            average_session_length=_minutes(raw, "average_session_length", defaults.average_session_length),
            best_flow_duration=_minutes(raw, "best_flow_duration", defaults.best_flow_duration),
            last_session_date=_parse_date(raw.get("last_session_date")),
        )


def _count(raw: Mapping[str, Any], key: str, default: int) -> int:
    value = raw.get(key, default)
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{key} must be an integer, got {value!r}")
    if value < 0:
        raise ValueError(f"{key} must be >= 0, got {value}")
    return value


def _minutes(raw: Mapping[str, Any], key: str, default: float) -> float:
    value = raw.get(key, default)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{key} must be a number, got {value!r}")
    if value < 0:
        raise ValueError(f"{key} must be >= 0, got {value}")
    return float(value)


def _parse_timestamp(value: Any) -> datetime | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValueError(f"Timestamp must be an ISO string, got {value!r}")
    return datetime.fromisoformat(value)


def _parse_date(value: Any) -> date | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValueError(f"Date must be an ISO string, got {value!r}")
    # Older payloads stored a full ISO timestamp for the last session.
    if "T" in value:
        return datetime.fromisoformat(value).date()
    return date.fromisoformat(value)
