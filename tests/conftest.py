from typing import Callable, Optional

import pytest

from location_sim.core.models import Coordinate
from location_sim.store.memory import MemoryStore
from location_sim.store.repository import SimulationRepository


class ManualDriver:
    """Stands in for TickDriver; ticks only when the test calls fire()."""

    interval_s = 1.0

    def __init__(self):
        self.callback: Optional[Callable[[], None]] = None
        self.starts = 0
        self.stops = 0

    def start(self, callback):
        self.callback = callback
        self.starts += 1

    def stop(self, wait=True):
        self.callback = None
        self.stops += 1

    @property
    def is_running(self):
        return self.callback is not None

    def fire(self, times: int = 1):
        for _ in range(times):
            if self.callback is not None:
                self.callback()


class Recorder:
    def __init__(self):
        self.positions = []

    def __call__(self, position: Optional[Coordinate]):
        self.positions.append(position)


@pytest.fixture
def repo() -> SimulationRepository:
    return SimulationRepository(MemoryStore())


@pytest.fixture
def driver() -> ManualDriver:
    return ManualDriver()


@pytest.fixture
def recorder() -> Recorder:
    return Recorder()
