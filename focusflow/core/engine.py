from __future__ import annotations

"""Focus session engine: Pomodoro state machine plus flow metrics upkeep.

Transitions
-----------
IDLE -> FOCUS_RUNNING                    (start)
FOCUS_RUNNING <-> FOCUS_PAUSED           (toggle, counted as a distraction)
BREAK_RUNNING <-> BREAK_PAUSED           (toggle, counted as a distraction)
FOCUS_RUNNING -> BREAK_RUNNING           (countdown reaches 0, not last cycle)
FOCUS_RUNNING -> IDLE, cycle 1           (countdown reaches 0, last cycle)
BREAK_RUNNING -> IDLE or FOCUS_RUNNING   (countdown reaches 0, auto-break decides)
any -> IDLE                              (stop / reset)

Operations that do not apply to the current state return False and change
nothing. Storage problems never surface here; the in-memory metrics are
authoritative and are written behind a debounce window.
"""

import functools
import json
import logging
from typing import Any, Callable, TypeVar

from PyQt6.QtCore import QObject, pyqtSignal

from focusflow.core.clock import Clock
from focusflow.core.config import EngineConfig
from focusflow.core.metrics import FlowMetrics
from focusflow.core.notifications import break_complete_message, focus_complete_message
from focusflow.core.persistence import DEFAULT_QUIET_MS, DebouncedWriter
from focusflow.core.scheduler import (
    compute_adaptive_session_length,
    needs_daily_reset,
    record_completed_focus_session,
    record_distraction,
    reset_daily_counters,
)
from focusflow.core.timer import TimerPhase, TimerSnapshot, TimerState, TimerStatus
from focusflow.data.repository import FlowMetricsRepository


logger = logging.getLogger(__name__)

EXPORT_VERSION = "1.0.0"

_F = TypeVar("_F", bound=Callable[..., Any])


def _exclusive(method: _F) -> _F:
    """Drops calls that arrive while another engine operation is running."""

    @functools.wraps(method)
    def wrapper(self: SessionEngine, *args: Any, **kwargs: Any) -> Any:
        if self._busy:
            logger.debug("Ignoring %s(): another operation is in progress", method.__name__)
            return False
        self._busy = True
        try:
            return method(self, *args, **kwargs)
        finally:
            self._busy = False

    return wrapper  # type: ignore[return-value]


class SessionEngine(QObject):
    flow_session_started = pyqtSignal()
    flow_session_completed = pyqtSignal(int)
    break_started = pyqtSignal()
    break_completed = pyqtSignal(int)
    interruption = pyqtSignal()
    notification_requested = pyqtSignal(str, str)
    timer_state_changed = pyqtSignal(object)
    metrics_changed = pyqtSignal(object)

    def __init__(
        self,
        repository: FlowMetricsRepository,
        config: EngineConfig | None = None,
        clock: Clock | None = None,
        quiet_ms: int = DEFAULT_QUIET_MS,
        parent: QObject | None = None,
    ) -> None:
        super().__init__(parent)
        self._config = (config or EngineConfig()).validate()
        self._clock = clock or Clock()
        self._repository = repository
        self._metrics = FlowMetrics()
        self._timer = TimerState.ready(self._config.work_seconds, self._config.total_cycles)
        self._writer = DebouncedWriter(repository, lambda: self._metrics, quiet_ms, self)
        self._busy = False

    @property
    def config(self) -> EngineConfig:
        return self._config

    @property
    def metrics(self) -> FlowMetrics:
        return self._metrics.copy()

    @property
    def status(self) -> TimerStatus:
        return self._timer.status

    @property
    def writer(self) -> DebouncedWriter:
        return self._writer

    def snapshot(self) -> TimerSnapshot:
        return self._timer.snapshot()

    @_exclusive
    def load(self) -> bool:
        """Restores persisted metrics and leaves the timer idle."""
        self._metrics = self._repository.load_flow_metrics()
        self._timer = TimerState.ready(self._config.work_seconds, self._config.total_cycles)
        changed = self._metrics.session_start_timestamp is not None
        # A session cannot survive a restart.
        self._metrics.session_start_timestamp = None
        if not self._check_daily_reset() and changed:
            self._metrics_mutated()
        logger.info(
            "Flow metrics loaded: streak=%d intensity=%s",
            self._metrics.current_streak,
            self._metrics.flow_intensity.value,
        )
        self.metrics_changed.emit(self.metrics)
        self._emit_state()
        return True

    @_exclusive
    def configure(self, config: EngineConfig) -> bool:
        self._config = config.validate()
        if self._timer.is_idle:
            self._timer = TimerState.ready(config.work_seconds, config.total_cycles)
        else:
            # The running phase keeps its length; the cycle plan follows the new count.
            self._timer.total_cycles = config.total_cycles
            self._timer.current_cycle = min(self._timer.current_cycle, config.total_cycles)
        self._emit_state()
        return True

    @_exclusive
    def start(self) -> bool:
        if not self._timer.is_idle:
            return False
        self._check_daily_reset()
        self._begin_phase()
        return True

    @_exclusive
    def toggle(self) -> bool:
        if self._timer.is_idle:
            return False
        self._check_daily_reset()
        if self._timer.running:
            self._timer.running = False
            self._timer.paused = True
        else:
            self._timer.paused = False
            self._timer.running = True
        # Both pausing and resuming count as a distraction.
        record_distraction(self._metrics)
        logger.debug("Distraction recorded (%d), now %s", self._metrics.distraction_count, self._timer.status.value)
        self.interruption.emit()
        self._metrics_mutated()
        self._emit_state()
        return True

    @_exclusive
    def stop(self) -> bool:
        if self._timer.is_idle:
            return False
        self._timer.prepare(TimerPhase.FOCUS, self._focus_seconds())
        self._clear_session_start()
        logger.debug("Timer stopped in cycle %d", self._timer.current_cycle)
        self._emit_state()
        return True

    @_exclusive
    def reset(self) -> bool:
        self._timer = TimerState.ready(self._config.work_seconds, self._config.total_cycles)
        self._clear_session_start()
        self._emit_state()
        return True

    @_exclusive
    def tick(self) -> bool:
        if not self._timer.running:
            return False
        self._timer.remaining_seconds = max(0, self._timer.remaining_seconds - 1)
        if self._timer.remaining_seconds == 0:
            self._complete_phase()
        else:
            self._emit_state()
        return True

    @_exclusive
    def complete_phase(self) -> bool:
        if not self._timer.running:
            return False
        self._complete_phase()
        return True

    @_exclusive
    def reset_metrics(self) -> bool:
        logger.info("Flow metrics reset by user")
        self._metrics = FlowMetrics()
        self._metrics_mutated()
        return True

    def next_session_minutes(self) -> int:
        return compute_adaptive_session_length(
            self._config.work_duration_minutes,
            self._metrics.flow_intensity,
            self._metrics.consecutive_sessions,
        )

    def export_flow_data(self) -> str:
        payload = {
            "flowMetrics": self._metrics.to_dict(),
            "timerSettings": {
                "workDuration": self._config.work_duration_minutes,
                "breakDuration": self._config.break_duration_minutes,
            },
            "exportDate": self._clock.now().isoformat(),
            "version": EXPORT_VERSION,
        }
        return json.dumps(payload, indent=2, ensure_ascii=False)

    def flush(self, timeout_ms: int = -1) -> bool:
        return self._writer.flush(timeout_ms)

    def _begin_phase(self) -> None:
        self._timer.remaining_seconds = self._timer.total_seconds
        self._timer.paused = False
        self._timer.running = True
        if self._timer.phase == TimerPhase.FOCUS:
            self._metrics.session_start_timestamp = self._clock.now()
            logger.debug("Focus session %d/%d started", self._timer.current_cycle, self._timer.total_cycles)
            self.flow_session_started.emit()
            self._metrics_mutated()
        else:
            self.break_started.emit()
        self._emit_state()

    def _complete_phase(self) -> None:
        self._timer.remaining_seconds = 0
        if self._timer.phase == TimerPhase.FOCUS:
            self._finish_focus()
        else:
            self._finish_break()

    def _finish_focus(self) -> None:
        minutes = self._timer.total_seconds // 60
        started_at = self._metrics.session_start_timestamp
        if started_at is not None:
            elapsed_wall = max(0.0, (self._clock.now() - started_at).total_seconds() / 60)
        else:
            elapsed_wall = float(minutes)
        record_completed_focus_session(self._metrics, minutes, elapsed_wall, self._clock.today())
        logger.info(
            "Focus session complete: %d min, intensity=%s, streak=%d",
            minutes,
            self._metrics.flow_intensity.value,
            self._metrics.current_streak,
        )
        self.flow_session_completed.emit(minutes)
        self._notify(*focus_complete_message(self._metrics))
        self._metrics_mutated()

        if self._timer.current_cycle >= self._timer.total_cycles:
            self._timer.current_cycle = 1
            self._timer.prepare(TimerPhase.FOCUS, self._prepare_next_focus())
            self._emit_state()
            return
        self._timer.prepare(TimerPhase.BREAK, self._config.break_seconds)
        self._begin_phase()

    def _finish_break(self) -> None:
        minutes = self._timer.total_seconds // 60
        self.break_completed.emit(minutes)
        self._notify(*break_complete_message())
        if self._timer.current_cycle < self._timer.total_cycles:
            self._timer.current_cycle += 1
        else:
            self._timer.current_cycle = 1
        self._timer.prepare(TimerPhase.FOCUS, self._prepare_next_focus())
        if self._config.auto_break_enabled:
            self._begin_phase()
        else:
            self._emit_state()

    def _prepare_next_focus(self) -> int:
        if self._config.adaptive_sessions:
            self._timer.adapted_minutes = self.next_session_minutes()
            logger.debug("Next focus block adapted to %d min", self._timer.adapted_minutes)
        else:
            self._timer.adapted_minutes = None
        return self._focus_seconds()

    def _focus_seconds(self) -> int:
        if self._timer.adapted_minutes is not None:
            return self._timer.adapted_minutes * 60
        return self._config.work_seconds

    def _check_daily_reset(self) -> bool:
        today = self._clock.today()
        if not needs_daily_reset(self._metrics, today):
            return False
        logger.info("New day detected, resetting daily flow counters")
        reset_daily_counters(self._metrics, today)
        self._metrics_mutated()
        return True

    def _clear_session_start(self) -> None:
        if self._metrics.session_start_timestamp is None:
            return
        self._metrics.session_start_timestamp = None
        self._metrics_mutated()

    def _notify(self, title: str, body: str) -> None:
        if self._config.notifications_enabled:
            self.notification_requested.emit(title, body)

    def _metrics_mutated(self) -> None:
        self.metrics_changed.emit(self.metrics)
        self._writer.schedule()

    def _emit_state(self) -> None:
        self.timer_state_changed.emit(self._timer.snapshot())
