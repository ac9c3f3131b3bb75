import logging

from PyQt6.QtTest import QTest

from focusflow.core.metrics import FlowMetrics
from focusflow.core.persistence import DebouncedWriter
from focusflow.data.repository import FLOW_METRICS_KEY, FlowMetricsRepository
from focusflow.data.stores import MemoryStore


class RecordingStore(MemoryStore):
    def __init__(self, failures: int = 0) -> None:
        super().__init__()
        self.failures = failures
        self.writes: list[dict] = []

    def put(self, key, value) -> None:
        if self.failures:
            self.failures -= 1
            raise OSError("backend unavailable")
        self.writes.append(value)
        super().put(key, value)


def make_writer(store: RecordingStore, metrics: FlowMetrics, quiet_ms: int = 200) -> DebouncedWriter:
    return DebouncedWriter(FlowMetricsRepository(store), lambda: metrics, quiet_ms)


def test_burst_is_coalesced_into_last_state(qapp) -> None:
    store = RecordingStore()
    metrics = FlowMetrics()
    writer = make_writer(store, metrics)

    for count in range(1, 6):
        metrics.distraction_count = count
        writer.schedule()
        QTest.qWait(5)
    assert writer.pending

    QTest.qWait(600)
    writer.wait()

    assert not writer.pending
    assert len(store.writes) == 1
    assert store.writes[0]["distraction_count"] == 5


def test_separate_bursts_write_separately(qapp) -> None:
    store = RecordingStore()
    metrics = FlowMetrics()
    writer = make_writer(store, metrics, quiet_ms=10)

    writer.schedule()
    QTest.qWait(100)
    writer.wait()
    metrics.total_focus_minutes = 25
    writer.schedule()
    QTest.qWait(100)
    writer.wait()

    assert [w["total_focus_minutes"] for w in store.writes] == [0, 25]


def test_cancel_drops_pending_write(qapp) -> None:
    store = RecordingStore()
    writer = make_writer(store, FlowMetrics(), quiet_ms=30)
    writer.schedule()
    writer.cancel()
    QTest.qWait(120)
    writer.wait()
    assert store.writes == []


def test_failed_write_is_logged_and_retried_on_next_change(qapp, caplog) -> None:
    store = RecordingStore(failures=1)
    metrics = FlowMetrics()
    writer = make_writer(store, metrics, quiet_ms=10)

    with caplog.at_level(logging.WARNING):
        writer.schedule()
        QTest.qWait(100)
        writer.wait()
    assert store.writes == []
    assert "Could not save flow metrics" in caplog.text

    metrics.consecutive_sessions = 1
    writer.schedule()
    QTest.qWait(100)
    writer.wait()
    assert store.get(FLOW_METRICS_KEY)["consecutive_sessions"] == 1


def test_write_uses_snapshot_taken_when_window_closes(qapp) -> None:
    store = RecordingStore()
    metrics = FlowMetrics()
    writer = make_writer(store, metrics, quiet_ms=60_000)

    metrics.distraction_count = 1
    writer.schedule()
    assert writer.flush() is True
    metrics.distraction_count = 9

    assert store.writes[0]["distraction_count"] == 1


def test_flush_without_pending_write_does_nothing(qapp) -> None:
    store = RecordingStore()
    writer = make_writer(store, FlowMetrics())
    assert writer.flush() is True
    assert store.writes == []


class FlakyBackend(MemoryStore):
    def __init__(self) -> None:
        super().__init__()
        self.healthy = False

    def put(self, key, value) -> None:
        if not self.healthy:
            raise RuntimeError("remote backend hiccup")
        super().put(key, value)


def test_unexpected_backend_error_does_not_stop_writes(qapp, caplog) -> None:
    store = FlakyBackend()
    metrics = FlowMetrics()
    writer = make_writer(store, metrics, quiet_ms=10)

    with caplog.at_level(logging.WARNING):
        writer.schedule()
        QTest.qWait(100)
        writer.wait()
    assert "remote backend hiccup" in caplog.text
    assert store.get(FLOW_METRICS_KEY) is None

    store.healthy = True
    metrics.total_focus_minutes = 50
    writer.schedule()
    QTest.qWait(100)
    writer.wait()
    assert store.get(FLOW_METRICS_KEY)["total_focus_minutes"] == 50


class RaisingRepository(FlowMetricsRepository):
    def save_flow_metrics(self, metrics: FlowMetrics) -> bool:
        raise RuntimeError("repository exploded")


def test_write_task_logs_repository_errors(qapp, caplog) -> None:
    writer = DebouncedWriter(RaisingRepository(MemoryStore()), FlowMetrics, 10)

    with caplog.at_level(logging.ERROR):
        writer.schedule()
        QTest.qWait(100)
        assert writer.wait() is True

    assert "Flow metrics write failed" in caplog.text
