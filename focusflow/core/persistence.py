from __future__ import annotations

import logging
from typing import Callable

from PyQt6.QtCore import QObject, QRunnable, QThreadPool, QTimer

from focusflow.core.metrics import FlowMetrics
from focusflow.data.repository import FlowMetricsRepository


logger = logging.getLogger(__name__)

DEFAULT_QUIET_MS = 1000


class _WriteTask(QRunnable):
    def __init__(self, repository: FlowMetricsRepository, metrics: FlowMetrics) -> None:
        super().__init__()
        self._repository = repository
        self._metrics = metrics

    def run(self) -> None:
        # An exception escaping a QRunnable aborts the process.
        try:
            saved = self._repository.save_flow_metrics(self._metrics)
        except Exception:
            logger.exception("Flow metrics write failed")
            return
        if saved:
            logger.debug("Flow metrics saved")


class DebouncedWriter(QObject):
    """Coalesces bursts of metric changes into one background write.

    Each schedule() restarts a single-shot timer, so only the state after
    the last change in a burst is written. Writes run one at a time on a
    private thread pool and never block the caller.
    """

    def __init__(
        self,
        repository: FlowMetricsRepository,
        source: Callable[[], FlowMetrics],
        quiet_ms: int = DEFAULT_QUIET_MS,
        parent: QObject | None = None,
    ) -> None:
        super().__init__(parent)
        self._repository = repository
        self._source = source
        self._timer = QTimer(self)
        self._timer.setSingleShot(True)
        self._timer.setInterval(quiet_ms)
        self._timer.timeout.connect(self._submit)
        self._pool = QThreadPool(self)
        self._pool.setMaxThreadCount(1)

    @property
    def pending(self) -> bool:
        return self._timer.isActive()

    @property
    def quiet_ms(self) -> int:
        return self._timer.interval()

    def schedule(self) -> None:
        self._timer.start()

    def cancel(self) -> None:
        self._timer.stop()

    def flush(self, timeout_ms: int = -1) -> bool:
        if self._timer.isActive():
            self._timer.stop()
            self._submit()
        return self.wait(timeout_ms)

    def wait(self, timeout_ms: int = -1) -> bool:
        return self._pool.waitForDone(timeout_ms)

    def _submit(self) -> None:
        snapshot = self._source().copy()
        self._pool.start(_WriteTask(self._repository, snapshot))
