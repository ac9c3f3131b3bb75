from __future__ import annotations

import copy
import json
import logging
from typing import Any

from focusflow.data.storage import KeyValueStore


logger = logging.getLogger(__name__)


class MemoryStore:
    """Process-local store; values are deep-copied in and out."""

    def __init__(self) -> None:
        self._values: dict[str, Any] = {}

    def get(self, key: str, default: Any = None) -> Any:
        if key not in self._values:
            return default
        return copy.deepcopy(self._values[key])

    def put(self, key: str, value: Any) -> None:
        # Reject anything the SQLite store could not encode either.
        json.dumps(value)
        self._values[key] = copy.deepcopy(value)


class MirroredStore:
    """Local store of record with best-effort copies pushed to a remote one."""

    def __init__(self, local: KeyValueStore, remote: KeyValueStore) -> None:
        self.local = local
        self.remote = remote

    def get(self, key: str, default: Any = None) -> Any:
        value = self.local.get(key, None)
        if value is not None:
            return value
        try:
            return self.remote.get(key, default)
        except Exception as exc:
            logger.warning("Remote read of %s failed: %s", key, exc)
            return default

    def put(self, key: str, value: Any) -> None:
        self.local.put(key, value)
        try:
            self.remote.put(key, value)
        except Exception as exc:
            logger.warning("Remote mirror of %s failed: %s", key, exc)
