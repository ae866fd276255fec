"""Persistence adapter: maps simulator state onto a key-value store.

Loaders never fail the caller. Missing or malformed data falls back to the
documented defaults (inactive walking route with no waypoints, no fixed point).
"""
from __future__ import annotations

import logging
from typing import Optional

from pydantic import ValidationError

from location_sim.config import Settings
from location_sim.core.models import Coordinate, RouteSimulation
from location_sim.store import keys
from location_sim.store.base import KeyValueStore

log = logging.getLogger(__name__)


def usable_fixed_point(coord: Optional[Coordinate]) -> Optional[Coordinate]:
    """
    *coord*, unless it is the "unset" sentinel.

    A zero latitude or longitude means unset: (0, 0) is what a key-value store
    reports for missing numeric keys, not a usable position.
    """
    if coord is None or coord.lat == 0.0 or coord.lon == 0.0:
        return None
    return coord


class SimulationRepository:
    def __init__(self, store: KeyValueStore, key_prefix: str = "ls"):
        self.store = store
        self.key_prefix = key_prefix

    # ── Route simulation ─────────────────────────────────────────────────

    def load_route_simulation(self) -> RouteSimulation:
        raw = self.store.get(keys.route_simulation(self.key_prefix))
        if raw is None:
            return RouteSimulation()
        try:
            return RouteSimulation.model_validate_json(raw)
        except (ValidationError, ValueError) as exc:
            log.warning("Stored route simulation is malformed, using defaults: %s", exc)
            return RouteSimulation()

    def save_route_simulation(self, simulation: RouteSimulation) -> None:
        self.store.set_many({keys.route_simulation(self.key_prefix): simulation.model_dump_json()})

    # ── Fixed-point override ─────────────────────────────────────────────

    def load_fixed_point(self) -> Optional[Coordinate]:
        """Stored fixed point, or None when unset or unreadable."""
        lat_raw = self.store.get(keys.fixed_latitude(self.key_prefix))
        lon_raw = self.store.get(keys.fixed_longitude(self.key_prefix))
        if lat_raw is None or lon_raw is None:
            return None
        try:
            coord = Coordinate(lat=float(lat_raw), lon=float(lon_raw))
        except (ValidationError, ValueError) as exc:
            log.warning("Stored fixed point is malformed, ignoring it: %s", exc)
            return None
        return usable_fixed_point(coord)

    def save_fixed_point(self, coord: Optional[Coordinate]) -> None:
        lat_key = keys.fixed_latitude(self.key_prefix)
        lon_key = keys.fixed_longitude(self.key_prefix)
        if coord is None:
            self.store.delete(lat_key, lon_key)
            return
        self.store.set_many({lat_key: repr(coord.lat), lon_key: repr(coord.lon)})


def build_store(cfg: Settings) -> KeyValueStore:
    """Pick the key-value backend named by ``cfg.store_backend``."""
    # Local imports so the redis client is only loaded when asked for
    backend = cfg.store_backend
    if backend == "memory":
        from location_sim.store.memory import MemoryStore

        return MemoryStore()
    if backend == "file":
        from location_sim.store.file import FileStore

        return FileStore(cfg.state_file)
    if backend == "redis":
        from location_sim.store.redis_store import RedisStore

        return RedisStore(cfg.redis_url)
    raise ValueError(f"Unknown store backend: '{backend}' (supported: memory, file, redis)")


def build_repository(cfg: Settings) -> SimulationRepository:
    return SimulationRepository(build_store(cfg), key_prefix=cfg.key_prefix)
