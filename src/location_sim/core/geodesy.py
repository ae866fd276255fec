"""Great-circle helpers: distance, initial bearing and destination projection."""
from __future__ import annotations

from math import asin, atan2, cos, degrees, radians, sin, sqrt

from location_sim.core.models import Coordinate


# Spherical earth; persisted routes were laid out against this radius
EARTH_RADIUS_M = 6_372_797.6


def distance_m(a: Coordinate, b: Coordinate) -> float:
    """Great-circle distance in metres between two points (haversine)."""
    lat1r, lon1r, lat2r, lon2r = map(radians, [a.lat, a.lon, b.lat, b.lon])
    dlat = lat2r - lat1r
    dlon = lon2r - lon1r
    h = sin(dlat / 2) ** 2 + cos(lat1r) * cos(lat2r) * sin(dlon / 2) ** 2
    return EARTH_RADIUS_M * 2 * atan2(sqrt(h), sqrt(max(0.0, 1 - h)))


def bearing_deg(start: Coordinate, end: Coordinate) -> float:
    """Initial bearing (degrees clockwise from true north) in [0, 360)."""
    lat1r, lon1r, lat2r, lon2r = map(radians, [start.lat, start.lon, end.lat, end.lon])
    dlon = lon2r - lon1r
    y = sin(dlon) * cos(lat2r)
    x = cos(lat1r) * sin(lat2r) - sin(lat1r) * cos(lat2r) * cos(dlon)
    brg = (degrees(atan2(y, x)) + 360.0) % 360.0
    # (-tiny + 360) % 360 can round to exactly 360.0
    return 0.0 if brg >= 360.0 else brg


def destination(start: Coordinate, bearing: float, distance: float) -> Coordinate:
    """
    Project a point *distance* metres from *start* along initial *bearing*.

    Longitude is wrapped back into [-180, 180]; latitude stays in range by
    construction of the spherical formula.
    """
    ang = distance / EARTH_RADIUS_M
    brg = radians(bearing)
    lat1 = radians(start.lat)
    lon1 = radians(start.lon)

    sin_lat2 = sin(lat1) * cos(ang) + cos(lat1) * sin(ang) * cos(brg)
    lat2 = asin(max(-1.0, min(1.0, sin_lat2)))
    lon2 = lon1 + atan2(sin(brg) * sin(ang) * cos(lat1), cos(ang) - sin(lat1) * sin(lat2))

    lon_deg = (degrees(lon2) + 540.0) % 360.0 - 180.0
    return Coordinate(lat=degrees(lat2), lon=lon_deg)
