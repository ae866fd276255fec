from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from location_sim.core.models import Coordinate, RouteSimulation


@dataclass(frozen=True)
class Interpolation:
    """Transient, never-persisted progress along the current leg."""
    position: Coordinate
    segment_index: int
    segment_start: Coordinate
    segment_end: Coordinate
    segment_length_m: float
    bearing_deg_true: float
    progress_m: float = 0.0


@dataclass(frozen=True)
class EngineSnapshot:
    """
    Everything a reader needs, swapped in as one reference.

    ``interpolation`` is None while idle; readers never see a half-applied tick.
    """
    route: RouteSimulation
    fixed_point: Optional[Coordinate] = None
    interpolation: Optional[Interpolation] = None
