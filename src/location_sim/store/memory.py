from __future__ import annotations

import threading
from typing import Dict, Mapping, Optional

from location_sim.store.base import KeyValueStore


class MemoryStore(KeyValueStore):
    """Process-local store; state is lost on exit. Used by tests and dry runs."""

    def __init__(self, initial: Optional[Mapping[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._data.get(key)

    def set_many(self, values: Mapping[str, str]) -> None:
        with self._lock:
            self._data.update(values)

    def delete(self, *keys: str) -> None:
        with self._lock:
            for k in keys:
                self._data.pop(k, None)
