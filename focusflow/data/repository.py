from __future__ import annotations

import logging

from focusflow.core.metrics import FlowMetrics
from focusflow.core.scheduler import recompute_intensity
from focusflow.data.storage import KeyValueStore


logger = logging.getLogger(__name__)

FLOW_METRICS_KEY = "flow_metrics"


class FlowMetricsRepository:
    """Loads and saves the single FlowMetrics record of a store."""

    def __init__(self, store: KeyValueStore, key: str = FLOW_METRICS_KEY) -> None:
        self.store = store
        self.key = key

    def load_flow_metrics(self) -> FlowMetrics:
        try:
            raw = self.store.get(self.key, None)
        except Exception as exc:
            logger.warning("Could not read flow metrics, using defaults: %s", exc)
            return FlowMetrics()
        if raw is None:
            return FlowMetrics()
        try:
            metrics = FlowMetrics.from_dict(raw)
        except ValueError as exc:
            logger.warning("Stored flow metrics are corrupt, using defaults: %s", exc)
            return FlowMetrics()
        recompute_intensity(metrics)
        return metrics

    def save_flow_metrics(self, metrics: FlowMetrics) -> bool:
        try:
            self.store.put(self.key, metrics.to_dict())
        except Exception as exc:
            logger.warning("Could not save flow metrics: %s", exc)
            return False
        return True
