"""Geographic utility functions."""
import math
from typing import Any, Sequence

from app.models.walk import Coordinate

EARTH_RADIUS_M = 6371000


def haversine(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Calculate distance between two points in meters using the haversine formula."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlam = math.radians(lon2 - lon1)

    a = (
        math.sin(dphi / 2) ** 2 +
        math.cos(phi1) * math.cos(phi2) * math.sin(dlam / 2) ** 2
    )
    # Rounding can push a a hair past 1 for antipodal points
    a = min(1.0, max(0.0, a))

    return EARTH_RADIUS_M * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def distance_m(a: Coordinate, b: Coordinate) -> float:
    """Distance in meters between two coordinates."""
    return haversine(a.lat, a.lon, b.lat, b.lon)


def path_length_m(points: Sequence[Coordinate]) -> float:
    """Sum of consecutive straight-line legs."""
    return sum(distance_m(a, b) for a, b in zip(points, points[1:]))


def straight_line_polyline(waypoints: Sequence[Coordinate]) -> list[Coordinate]:
    """Polyline made of straight segments through the waypoints, in order."""
    return list(waypoints)


def parse_coordinate(lat: Any, lon: Any) -> Coordinate | None:
    """Build a Coordinate from loosely typed input, or None if unusable."""
    try:
        lat_f, lon_f = float(lat), float(lon)
    except (TypeError, ValueError):
        return None
    if math.isnan(lat_f) or math.isnan(lon_f):
        return None
    try:
        return Coordinate(lat=lat_f, lon=lon_f)
    except ValueError:
        return None
