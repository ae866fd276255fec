from __future__ import annotations

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class Coordinate(BaseModel):
    """Immutable WGS-84 point in decimal degrees."""

    model_config = ConfigDict(frozen=True)

    lat: float = Field(ge=-90.0, le=90.0)
    lon: float = Field(ge=-180.0, le=180.0)

    def __str__(self) -> str:
        return f"({self.lat:.6f}, {self.lon:.6f})"


class SpeedMode(str, Enum):
    WALK = "Walking"
    RUN = "Running"
    DRIVE = "Driving"
    FLIGHT = "Flying"
    CUSTOM = "Custom"

    @property
    def meters_per_second(self) -> float:
        # Custom defers to RouteSimulation.custom_speed_mps
        return _SPEED_MPS[self]


_SPEED_MPS = {
    SpeedMode.WALK: 1.4,      # ~5 km/h
    SpeedMode.RUN: 3.0,       # ~11 km/h
    SpeedMode.DRIVE: 13.9,    # ~50 km/h
    SpeedMode.FLIGHT: 250.0,  # ~900 km/h
    SpeedMode.CUSTOM: 0.0,
}


class RouteSimulation(BaseModel):
    """
    Persisted route-simulation configuration.

    Waypoint order is traversal order; the route is cyclic, so the leg after
    the last waypoint leads back to the first. Instances are immutable: the
    editing helpers return updated copies.
    """

    model_config = ConfigDict(frozen=True)

    waypoints: List[Coordinate] = Field(default_factory=list)
    speed_mode: SpeedMode = SpeedMode.WALK
    # Negative values are accepted and behave like 0 (stationary)
    custom_speed_mps: float = 0.0
    is_active: bool = False
    current_segment_index: int = Field(default=0, ge=0)

    @property
    def effective_speed_mps(self) -> float:
        if self.speed_mode is SpeedMode.CUSTOM:
            return max(0.0, self.custom_speed_mps)
        return self.speed_mode.meters_per_second

    @property
    def is_runnable(self) -> bool:
        return len(self.waypoints) >= 2

    def segment_index(self) -> int:
        """Current segment index wrapped into the waypoint list (0 when empty)."""
        if not self.waypoints:
            return 0
        return self.current_segment_index % len(self.waypoints)

    def segment_endpoints(self, index: Optional[int] = None) -> tuple[Coordinate, Coordinate]:
        """(start, end) waypoints of the leg starting at *index*, wrapping at the end."""
        n = len(self.waypoints)
        i = self.segment_index() if index is None else index % n
        return self.waypoints[i], self.waypoints[(i + 1) % n]

    # ---- Editing helpers -------------------------------------------------

    def with_waypoint(self, coord: Coordinate) -> "RouteSimulation":
        return self.model_copy(update={"waypoints": [*self.waypoints, coord]})

    def without_waypoint(self, index: int) -> "RouteSimulation":
        if not 0 <= index < len(self.waypoints):
            raise IndexError(f"waypoint index {index} out of range (0..{len(self.waypoints) - 1})")
        remaining = self.waypoints[:index] + self.waypoints[index + 1:]
        seg = self.current_segment_index % len(remaining) if len(remaining) >= 2 else 0
        return self.model_copy(update={"waypoints": remaining, "current_segment_index": seg})

    def with_speed(self, mode: SpeedMode, custom_speed_mps: Optional[float] = None) -> "RouteSimulation":
        update = {"speed_mode": mode}
        if custom_speed_mps is not None:
            update["custom_speed_mps"] = float(custom_speed_mps)
        return self.model_copy(update=update)

    def started(self) -> "RouteSimulation":
        """Active copy; a route that was stopped starts over at the first waypoint."""
        if self.is_active:
            return self
        return self.model_copy(update={"is_active": True, "current_segment_index": 0})

    def stopped(self) -> "RouteSimulation":
        return self.model_copy(update={"is_active": False})
