"""Route simulation engine.

Owns the simulated position: either a persisted fixed point, or a position
walked along a cyclic waypoint route once per tick.

Movement is great-circle stepping: the reported point is ``destination()``
from the leg's start along the leg's initial bearing, at the accumulated
progress distance. Reaching the leg's end snaps to that waypoint and carries
the leftover distance (capped at the next leg's length) into the next leg,
so no tick ever passes more than one waypoint.

All mutation and subscriber fan-out happen under one re-entrant lock; readers
take the current ``EngineSnapshot`` reference without locking.

The leg being walked lives only in the transient interpolation. Ticks never
write to the store; the persisted route changes only through explicit writes.
"""
from __future__ import annotations

import logging
import threading
from dataclasses import replace
from enum import Enum
from typing import Callable, List, Optional

from location_sim.contracts.simulation_contract import EngineSnapshot, Interpolation
from location_sim.core.driver import TickDriver
from location_sim.core.geodesy import bearing_deg, destination, distance_m
from location_sim.core.models import Coordinate, RouteSimulation
from location_sim.core import presets
from location_sim.store.repository import SimulationRepository, usable_fixed_point

log = logging.getLogger(__name__)

PositionCallback = Callable[[Optional[Coordinate]], None]


class EngineState(str, Enum):
    IDLE = "idle"
    SIMULATING = "simulating"


# ---------------------------------------------------------------------------
# Interpolation steps (pure)
# ---------------------------------------------------------------------------

def begin_segment(route: RouteSimulation, index: int) -> Interpolation:
    """Fresh interpolation state sitting at the start of leg *index*."""
    start, end = route.segment_endpoints(index)
    return Interpolation(
        position=start,
        segment_index=index % len(route.waypoints),
        segment_start=start,
        segment_end=end,
        segment_length_m=distance_m(start, end),
        bearing_deg_true=bearing_deg(start, end),
        progress_m=0.0,
    )


def advance(route: RouteSimulation, interp: Interpolation, step_m: float) -> Interpolation:
    """Move *step_m* metres along the current leg, rolling onto the next leg at its end."""
    if step_m <= 0:
        return interp

    progress = interp.progress_m + step_m
    if progress < interp.segment_length_m:
        pos = destination(interp.segment_start, interp.bearing_deg_true, progress)
        return replace(interp, position=pos, progress_m=progress)

    nxt = begin_segment(route, interp.segment_index + 1)
    carry = min(progress - interp.segment_length_m, nxt.segment_length_m)
    return replace(nxt, position=interp.segment_end, progress_m=carry)


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------

class RouteSimulationEngine:
    """
    Explicitly owned simulated-position source.

    Typical lifecycle:
        engine = RouteSimulationEngine(build_repository(settings))
        engine.subscribe(on_position)
        engine.resume()
        ...
        engine.close()
    """

    def __init__(
        self,
        repository: SimulationRepository,
        driver: Optional[TickDriver] = None,
        tick_interval_s: Optional[float] = None,
    ):
        from location_sim.config import settings

        if tick_interval_s is None:
            tick_interval_s = getattr(driver, "interval_s", None) or settings.tick_interval_s
        self.repository = repository
        self.tick_interval_s = float(tick_interval_s)
        self._driver = driver if driver is not None else TickDriver(self.tick_interval_s)

        self._lock = threading.RLock()
        self._subscribers: List[PositionCallback] = []
        # Bumped on every start/stop; ticks from an older run are ignored
        self._generation = 0
        self._snapshot = EngineSnapshot(
            route=repository.load_route_simulation(),
            fixed_point=repository.load_fixed_point(),
        )

    # ---- Read side ----------------------------------------------------------

    @property
    def snapshot(self) -> EngineSnapshot:
        return self._snapshot

    @property
    def state(self) -> EngineState:
        if self._snapshot.interpolation is not None:
            return EngineState.SIMULATING
        return EngineState.IDLE

    @property
    def route_simulation(self) -> RouteSimulation:
        return self._snapshot.route

    @property
    def fixed_point(self) -> Optional[Coordinate]:
        return self._snapshot.fixed_point

    @property
    def interpolation(self) -> Optional[Interpolation]:
        return self._snapshot.interpolation

    def current_simulated_position(self) -> Optional[Coordinate]:
        """Interpolated point while simulating, else the fixed point (or None)."""
        snap = self._snapshot
        if snap.interpolation is not None:
            return snap.interpolation.position
        return snap.fixed_point

    def preset_index(self) -> Optional[int]:
        return presets.preset_index(self.current_simulated_position())

    # ---- Notifications ------------------------------------------------------

    def subscribe(self, callback: PositionCallback) -> Callable[[], None]:
        """Register *callback* for position changes; returns an unsubscribe function."""
        with self._lock:
            self._subscribers.append(callback)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    def _notify(self) -> None:
        position = self.current_simulated_position()
        for cb in list(self._subscribers):
            try:
                cb(position)
            except Exception as exc:
                log.exception("Position subscriber %r failed: %s", cb, exc)

    # ---- Write side ---------------------------------------------------------

    def set_fixed_point(self, coord: Optional[Coordinate]) -> None:
        """Persist a fixed-point override (None clears it) and notify immediately."""
        with self._lock:
            self.repository.save_fixed_point(coord)
            self._snapshot = replace(self._snapshot, fixed_point=usable_fixed_point(coord))
            log.info("Fixed point set to %s", coord)
            self._notify()

    def set_route_simulation(self, simulation: RouteSimulation) -> None:
        """
        Persist *simulation* and start or stop ticking to match it.

        Going from idle to simulating always begins at ``waypoints[0]``. An
        active route with fewer than two waypoints is stored but leaves the
        engine idle.
        """
        with self._lock:
            if simulation.is_active and self.state is EngineState.IDLE:
                simulation = simulation.model_copy(update={"current_segment_index": 0})
            self.repository.save_route_simulation(simulation)
            self._apply_route(simulation)
            self._notify()

    def _apply_route(self, simulation: RouteSimulation) -> None:
        was_simulating = self._snapshot.interpolation is not None
        self._generation += 1
        generation = self._generation

        if simulation.is_active and simulation.is_runnable:
            interp = begin_segment(simulation, simulation.segment_index())
            self._snapshot = replace(self._snapshot, route=simulation, interpolation=interp)
            self._driver.start(lambda: self._scheduled_tick(generation))
            log.info(
                "Route simulation started: %d waypoints, %s at %.2f m/s, leg %d",
                len(simulation.waypoints), simulation.speed_mode.value,
                simulation.effective_speed_mps, interp.segment_index,
            )
            return

        self._snapshot = replace(self._snapshot, route=simulation, interpolation=None)
        self._driver.stop(wait=False)
        if was_simulating:
            log.info("Route simulation stopped")
        if simulation.is_active and not simulation.is_runnable:
            log.info("Route has %d waypoint(s); need at least 2 to simulate", len(simulation.waypoints))

    def resume(self) -> EngineState:
        """Reload persisted state and start an active route on its stored leg."""
        with self._lock:
            fixed = self.repository.load_fixed_point()
            route = self.repository.load_route_simulation()
            self._snapshot = replace(self._snapshot, fixed_point=fixed)
            self._apply_route(route)
            self._notify()
            return self.state

    def reset(self) -> None:
        """Clear the fixed point and stop any route simulation."""
        with self._lock:
            route = self._snapshot.route.stopped()
            self.repository.save_fixed_point(None)
            self.repository.save_route_simulation(route)
            self._snapshot = replace(self._snapshot, fixed_point=None)
            self._apply_route(route)
            self._notify()

    def close(self) -> None:
        """Stop ticking. Persisted state is left as-is so ``resume()`` can continue."""
        with self._lock:
            self._generation += 1
            self._snapshot = replace(self._snapshot, interpolation=None)
        self._driver.stop()

    # ---- Ticks --------------------------------------------------------------

    def _scheduled_tick(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation:
                return
            self._tick_locked()

    def tick(self) -> Optional[Coordinate]:
        """Advance one nominal tick now; returns the resulting position."""
        with self._lock:
            self._tick_locked()
            return self.current_simulated_position()

    def _tick_locked(self) -> None:
        snap = self._snapshot
        interp = snap.interpolation
        if interp is None:
            return

        step_m = snap.route.effective_speed_mps * self.tick_interval_s
        nxt = advance(snap.route, interp, step_m)
        if nxt.segment_index != interp.segment_index:
            log.debug(
                "Reached waypoint %s; next leg %d (%.1f m)",
                interp.segment_end, nxt.segment_index, nxt.segment_length_m,
            )

        self._snapshot = replace(snap, interpolation=nxt)
        self._notify()
