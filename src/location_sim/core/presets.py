"""Named cities offered as one-tap fixed-point overrides."""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from location_sim.core.models import Coordinate


@dataclass(frozen=True)
class PresetLocation:
    title: str
    latitude: float
    longitude: float

    @property
    def coordinate(self) -> Coordinate:
        return Coordinate(lat=self.latitude, lon=self.longitude)


PRESET_LOCATIONS: List[PresetLocation] = [
    PresetLocation("London, England", 51.509980, -0.133700),
    PresetLocation("Johannesburg, South Africa", -26.204103, 28.047305),
    PresetLocation("Moscow, Russia", 55.755786, 37.617633),
    PresetLocation("Mumbai, India", 19.017615, 72.856164),
    PresetLocation("Tokyo, Japan", 35.702069, 139.775327),
    PresetLocation("Sydney, Australia", -33.863400, 151.211000),
    PresetLocation("Hong Kong, China", 22.284681, 114.158177),
    PresetLocation("Honolulu, HI, USA", 21.282778, -157.829444),
    PresetLocation("San Francisco, CA, USA", 37.787359, -122.408227),
    PresetLocation("Mexico City, Mexico", 19.435478, -99.136479),
    PresetLocation("New York, NY, USA", 40.759211, -73.984638),
    PresetLocation("Rio de Janeiro, Brazil", -22.903539, -43.209587),
]


def find_preset(name: str) -> Optional[PresetLocation]:
    """Case-insensitive lookup; exact title wins, else the first substring match."""
    needle = name.strip().lower()
    if not needle:
        return None
    for p in PRESET_LOCATIONS:
        if p.title.lower() == needle:
            return p
    for p in PRESET_LOCATIONS:
        if needle in p.title.lower():
            return p
    return None


def preset_index(coord: Optional[Coordinate]) -> Optional[int]:
    """Index into PRESET_LOCATIONS of the preset sitting exactly at *coord*."""
    if coord is None:
        return None
    for i, p in enumerate(PRESET_LOCATIONS):
        if p.latitude == coord.lat and p.longitude == coord.lon:
            return i
    return None
