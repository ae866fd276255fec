"""Single-document JSON key-value store.

Every write rewrites the whole document into a temp file and renames it over
the original, so a concurrent reader sees either the old or the new file.
I/O failures are logged, never raised.
"""
from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Dict, Mapping, Optional

from location_sim.store.base import KeyValueStore

log = logging.getLogger(__name__)


class FileStore(KeyValueStore):
    def __init__(self, path: Path):
        self.path = Path(path)
        self._lock = threading.Lock()

    def _read(self) -> Dict[str, str]:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except OSError as exc:
            log.warning("State file %s unreadable (%s), treating as empty", self.path, exc)
            return {}
        try:
            data = json.loads(raw)
        except ValueError as exc:
            log.warning("State file %s is not valid JSON (%s), treating as empty", self.path, exc)
            return {}
        if not isinstance(data, dict):
            log.warning("State file %s has unexpected shape, treating as empty", self.path)
            return {}
        return {str(k): str(v) for k, v in data.items()}

    def _write(self, data: Dict[str, str]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(prefix=f".{self.path.name}.", dir=str(self.path.parent))
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    json.dump(data, handle, indent=2, sort_keys=True)
                os.replace(tmp, self.path)
            except BaseException:
                if os.path.exists(tmp):
                    os.unlink(tmp)
                raise
        except OSError as exc:
            log.warning("Failed to write state file %s: %s", self.path, exc)

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._read().get(key)

    def set_many(self, values: Mapping[str, str]) -> None:
        with self._lock:
            data = self._read()
            data.update(values)
            self._write(data)

    def delete(self, *keys: str) -> None:
        with self._lock:
            data = self._read()
            if not any(k in data for k in keys):
                return
            for k in keys:
                data.pop(k, None)
            self._write(data)
