"""
Distances between coordinates and route point sampling.
"""
import math
from typing import List, Sequence

from services.geo.coordinates import Coordinate

EARTH_RADIUS_M = 6_371_000


def haversine_m(p1: Coordinate, p2: Coordinate) -> float:
    """Great-circle distance in meters between two WGS84 points."""
    phi1, phi2 = math.radians(p1.latitude), math.radians(p2.latitude)
    dphi = math.radians(p2.latitude - p1.latitude)
    dlam = math.radians(p2.longitude - p1.longitude)
    a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlam / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_M * c


def planar_distance_deg(p1: Coordinate, p2: Coordinate) -> float:
    """Euclidean distance in raw degrees; only meaningful for small separations."""
    return math.hypot(p1.latitude - p2.latitude, p1.longitude - p2.longitude)


def sample_route_points(points: Sequence[Coordinate], num_samples: int) -> List[Coordinate]:
    """
    Every (len // num_samples)-th point starting at index 0, or all points if there are
    no more than num_samples. The last point is only included when the stride lands on it.
    """
    if num_samples <= 0:
        return []
    if len(points) <= num_samples:
        return list(points)
    stride = len(points) // num_samples
    return list(points[::stride])
