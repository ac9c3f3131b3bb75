from __future__ import annotations

from datetime import date, datetime, timedelta

import pytest
from PyQt6.QtCore import QCoreApplication

from focusflow.core.clock import Clock
from focusflow.core.config import EngineConfig
from focusflow.core.engine import SessionEngine
from focusflow.data.repository import FlowMetricsRepository
from focusflow.data.stores import MemoryStore


class FakeClock(Clock):
    def __init__(self, start: datetime) -> None:
        self.current = start

    def now(self) -> datetime:
        return self.current

    def advance(self, **delta: float) -> None:
        self.current += timedelta(**delta)


@pytest.fixture(scope="session")
def qapp() -> QCoreApplication:
    app = QCoreApplication.instance()
    if app is None:
        app = QCoreApplication([])
    return app


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2026, 3, 10, 9, 0, 0))


@pytest.fixture
def today(clock: FakeClock) -> date:
    return clock.today()


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def repository(store: MemoryStore) -> FlowMetricsRepository:
    return FlowMetricsRepository(store)


@pytest.fixture
def make_engine(qapp, repository, clock):
    engines: list[SessionEngine] = []

    def factory(config: EngineConfig | None = None, quiet_ms: int = 20) -> SessionEngine:
        engine = SessionEngine(repository, config or EngineConfig(), clock=clock, quiet_ms=quiet_ms)
        engines.append(engine)
        return engine

    yield factory
    for engine in engines:
        engine.writer.cancel()
        engine.writer.wait()