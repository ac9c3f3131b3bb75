from __future__ import annotations

from datetime import date, datetime


class Clock:
    """Wall-clock source shared by the engine and the scheduler."""

    def now(self) -> datetime:
        return datetime.now()

    def today(self) -> date:
        return self.now().date()
