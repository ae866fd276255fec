"""Key naming conventions for persisted simulator state."""
from __future__ import annotations

_PREFIX = "ls"


# ── Fixed-point override ─────────────────────────────────────────────────

def fixed_latitude(prefix: str = _PREFIX) -> str:
    return f"{prefix}:fixed:lat"


def fixed_longitude(prefix: str = _PREFIX) -> str:
    return f"{prefix}:fixed:lon"


# ── Route simulation ─────────────────────────────────────────────────────

def route_simulation(prefix: str = _PREFIX) -> str:
    """Key for the JSON blob: waypoints, speed mode, custom speed, active flag, segment index."""
    return f"{prefix}:route:simulation"
