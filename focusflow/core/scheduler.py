from __future__ import annotations

"""Adaptive scheduling rules over FlowMetrics.

Everything here is pure apart from the metrics object the caller passes in.
"""

from datetime import date

from focusflow.core.metrics import BASELINE_SESSION_MINUTES, FlowIntensity, FlowMetrics


HIGH_FLOW_SCORE = 1.5
MEDIUM_FLOW_SCORE = 0.8
MAX_LENGTH_SCORE = 2.0

HIGH_STEP_MINUTES = 5
HIGH_CAP_MINUTES = 90
MEDIUM_STEP_MINUTES = 2
MEDIUM_CAP_MINUTES = 60
LOW_CUT_MINUTES = 5
LOW_FLOOR_MINUTES = 15


def compute_flow_intensity(
    consecutive_sessions: int,
    distraction_count: int,
    average_session_length: float,
) -> FlowIntensity:
    distraction_ratio = distraction_count / max(consecutive_sessions, 1)
    session_length_score = min(average_session_length / BASELINE_SESSION_MINUTES, MAX_LENGTH_SCORE)
    flow_score = (1 - distraction_ratio) * session_length_score
    if flow_score > HIGH_FLOW_SCORE:
        return FlowIntensity.HIGH
    if flow_score > MEDIUM_FLOW_SCORE:
        return FlowIntensity.MEDIUM
    return FlowIntensity.LOW


def compute_adaptive_session_length(
    base_minutes: int,
    intensity: FlowIntensity,
    consecutive_sessions: int,
) -> int:
    if intensity == FlowIntensity.HIGH:
        return min(base_minutes + consecutive_sessions * HIGH_STEP_MINUTES, HIGH_CAP_MINUTES)
    if intensity == FlowIntensity.LOW:
        return max(base_minutes - LOW_CUT_MINUTES, LOW_FLOOR_MINUTES)
    return min(base_minutes + consecutive_sessions * MEDIUM_STEP_MINUTES, MEDIUM_CAP_MINUTES)


def recompute_intensity(metrics: FlowMetrics) -> FlowIntensity:
    metrics.flow_intensity = compute_flow_intensity(
        metrics.consecutive_sessions,
        metrics.distraction_count,
        metrics.average_session_length,
    )
    return metrics.flow_intensity


def record_distraction(metrics: FlowMetrics) -> None:
    metrics.distraction_count += 1
    recompute_intensity(metrics)


def record_completed_focus_session(
    metrics: FlowMetrics,
    session_duration_minutes: int,
    elapsed_wall_minutes: float,
    today: date,
) -> None:
    """Folds one finished focus block into the metrics.

    The streak grows on every completed session, not once per calendar day,
    and the average is a two-sample moving average.
    """
    metrics.consecutive_sessions += 1
    metrics.current_streak += 1
    metrics.longest_streak = max(metrics.longest_streak, metrics.current_streak)
    metrics.total_focus_minutes += session_duration_minutes
    metrics.average_session_length = (metrics.average_session_length + session_duration_minutes) / 2
    metrics.best_flow_duration = max(metrics.best_flow_duration, elapsed_wall_minutes)
    metrics.session_start_timestamp = None
    metrics.distraction_count = 0
    metrics.last_session_date = today
    recompute_intensity(metrics)


def needs_daily_reset(metrics: FlowMetrics, today: date) -> bool:
    return metrics.last_session_date != today


def reset_daily_counters(metrics: FlowMetrics, today: date) -> None:
    # Streaks and lifetime totals survive the day boundary.
    metrics.consecutive_sessions = 0
    metrics.distraction_count = 0
    metrics.session_start_timestamp = None
    metrics.last_session_date = today
    recompute_intensity(metrics)
