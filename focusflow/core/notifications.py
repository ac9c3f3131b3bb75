from __future__ import annotations

from focusflow.core.metrics import FlowIntensity, FlowMetrics


def focus_complete_message(metrics: FlowMetrics) -> tuple[str, str]:
    sessions = metrics.consecutive_sessions
    if metrics.flow_intensity == FlowIntensity.HIGH and sessions >= 3:
        return "Amazing Deep Flow! 🔥", f"{sessions} consecutive sessions! You're unstoppable!"
    if metrics.flow_intensity == FlowIntensity.HIGH:
        return "Deep Flow Achieved! 🔥", "You're in the zone! Take a well-deserved break."
    if sessions >= 5:
        return "Consistency Champion! 🏆", f"{sessions} sessions completed! Keep it up!"
    return "Flow Session Complete! 🎉", "Time for a break!"


def break_complete_message() -> tuple[str, str]:
    return "Break Complete!", "Ready for your next flow session?"
