"""
Local stand-in routes when the routing backend is unavailable: direct, northern and southern detours.
"""
from typing import List, Tuple

from services.geo.coordinates import BoundingBox, Coordinate
from services.geo.distance import haversine_m
from services.routing.models import CalculatedRoute, RouteSegment

DETOUR_OFFSET_DEG = 0.005

# (id, summary, midpoint offset sign, duration s, distance factor, steps)
MOCK_ROUTE_DEFS: List[Tuple[str, str, int, int, float, Tuple[str, ...]]] = [
    ("route_1", "Direct Route", 0, 720, 1.0,
     ("Head towards destination", "Continue straight", "Arrive at destination")),
    ("route_2", "Northern Route", 1, 900, 1.2,
     ("Head north", "Turn right", "Continue to destination")),
    ("route_3", "Southern Route", -1, 840, 1.15,
     ("Head south", "Turn left", "Continue to destination")),
]


def build_mock_routes(origin: Coordinate, destination: Coordinate) -> List[CalculatedRoute]:
    """Three deterministic routes; geometry depends on origin/destination, durations never do."""
    direct_m = haversine_m(origin, destination)
    mid_lat = (origin.latitude + destination.latitude) / 2
    mid_lng = (origin.longitude + destination.longitude) / 2
    routes: List[CalculatedRoute] = []
    for route_id, summary, sign, duration, factor, steps in MOCK_ROUTE_DEFS:
        if sign == 0:
            points: Tuple[Coordinate, ...] = (origin, destination)
        else:
            detour = Coordinate(mid_lat + sign * DETOUR_OFFSET_DEG, mid_lng + sign * DETOUR_OFFSET_DEG)
            points = (origin, detour, destination)
        distance = direct_m * factor
        routes.append(CalculatedRoute(
            id=route_id,
            segments=(RouteSegment(coordinates=points, distance=distance, duration=duration, steps=steps),),
            total_distance=distance,
            total_duration=duration,
            bounds=BoundingBox.from_points(points),
            polyline_coordinates=points,
            summary=summary,
        ))
    return routes
