"""Fixed-period tick loop for route simulation.

One daemon thread per run. The next tick is scheduled a full nominal
interval after the previous callback returns, so ticks never overlap and a
slow tick delays (never doubles up) the next one.
"""
from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

log = logging.getLogger(__name__)


class TickDriver:
    def __init__(self, interval_s: float = 1.0, name: str = "route-simulation"):
        if interval_s <= 0:
            raise ValueError(f"interval_s must be > 0, got {interval_s}")
        self.interval_s = interval_s
        self.name = name
        self._worker: Optional[threading.Thread] = None
        self._stop_event: Optional[threading.Event] = None
        self._lock = threading.Lock()

    def _run(self, callback: Callable[[], None], stop_event: threading.Event) -> None:
        while not stop_event.wait(self.interval_s):
            try:
                callback()
            except Exception as exc:
                log.exception("Tick failed: %s", exc)

    def start(self, callback: Callable[[], None]) -> None:
        """
        Start ticking *callback*; any loop already running is stopped first.

        The previous worker is signalled but not joined: its pending callback
        may be waiting on a lock held by our caller.
        """
        self.stop(wait=False)
        stop_event = threading.Event()
        worker = threading.Thread(
            target=self._run, args=(callback, stop_event), name=self.name, daemon=True
        )
        with self._lock:
            self._worker = worker
            self._stop_event = stop_event
        worker.start()
        log.debug("Tick driver started (interval=%.3fs)", self.interval_s)

    def stop(self, wait: bool = True) -> None:
        """Stop the loop and, if *wait*, join the worker. Safe to call repeatedly."""
        with self._lock:
            worker, stop_event = self._worker, self._stop_event
            self._worker = None
            self._stop_event = None
        if stop_event is not None:
            stop_event.set()
        # A tick callback may stop its own driver; it exits once the callback returns
        if wait and worker is not None and worker is not threading.current_thread():
            worker.join()
            log.debug("Tick driver stopped")

    @property
    def is_running(self) -> bool:
        worker = self._worker
        return worker is not None and worker.is_alive()
