from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class TimerPhase(str, Enum):
    FOCUS = "focus"
    BREAK = "break"


class TimerStatus(str, Enum):
    IDLE = "idle"
    FOCUS_RUNNING = "focus_running"
    FOCUS_PAUSED = "focus_paused"
    BREAK_RUNNING = "break_running"
    BREAK_PAUSED = "break_paused"


@dataclass(frozen=True)
class TimerSnapshot:
    phase: TimerPhase
    status: TimerStatus
    running: bool
    paused: bool
    total_seconds: int
    remaining_seconds: int
    elapsed_seconds: int
    progress: float
    current_cycle: int
    total_cycles: int
    adapted_minutes: int | None


@dataclass
class TimerState:
    """Countdown state owned by SessionEngine."""

    total_seconds: int
    remaining_seconds: int
    total_cycles: int
    phase: TimerPhase = TimerPhase.FOCUS
    running: bool = False
    paused: bool = False
    current_cycle: int = 1
    adapted_minutes: int | None = None

    @classmethod
    def ready(cls, focus_seconds: int, total_cycles: int) -> TimerState:
        return cls(total_seconds=focus_seconds, remaining_seconds=focus_seconds, total_cycles=total_cycles)

    @property
    def is_idle(self) -> bool:
        return not self.running and not self.paused

    @property
    def status(self) -> TimerStatus:
        if self.is_idle:
            return TimerStatus.IDLE
        if self.phase == TimerPhase.FOCUS:
            return TimerStatus.FOCUS_RUNNING if self.running else TimerStatus.FOCUS_PAUSED
        return TimerStatus.BREAK_RUNNING if self.running else TimerStatus.BREAK_PAUSED

    def prepare(self, phase: TimerPhase, total_seconds: int) -> None:
        self.phase = phase
        self.total_seconds = total_seconds
        self.remaining_seconds = total_seconds
        self.running = False
        self.paused = False

    def snapshot(self) -> TimerSnapshot:
        elapsed = max(0, self.total_seconds - self.remaining_seconds)
        progress = (elapsed / self.total_seconds) if self.total_seconds > 0 else 0.0
        return TimerSnapshot(
            phase=self.phase,
            status=self.status,
            running=self.running,
            paused=self.paused,
            total_seconds=self.total_seconds,
            remaining_seconds=self.remaining_seconds,
            elapsed_seconds=elapsed,
            progress=max(0.0, min(1.0, progress)),
            current_cycle=self.current_cycle,
            total_cycles=self.total_cycles,
            adapted_minutes=self.adapted_minutes,
        )
