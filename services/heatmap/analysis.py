"""
Derived views over a heatmap grid: AQI range filter, hotspots, region average, route exposure.
"""
from typing import List, Sequence

import numpy as np

from services.aqi.estimator import round_half_up
from services.geo.coordinates import Coordinate
from services.heatmap.models import AQIHeatmapPoint

DEFAULT_HOTSPOT_THRESHOLD = 100
DEFAULT_PROXIMITY_DEG = 0.001  # ~100 m at the equator
# Route exposure when no route point is near any grid point
NEUTRAL_EXPOSURE = 50


def filter_by_range(grid: Sequence[AQIHeatmapPoint], min_aqi: float, max_aqi: float) -> List[AQIHeatmapPoint]:
    """Points with min_aqi <= aqi <= max_aqi, grid order kept."""
    return [p for p in grid if min_aqi <= p.aqi <= max_aqi]


def find_hotspots(
    grid: Sequence[AQIHeatmapPoint],
    threshold: float = DEFAULT_HOTSPOT_THRESHOLD,
) -> List[AQIHeatmapPoint]:
    """Points with aqi >= threshold, highest AQI first (grid order among equal AQI)."""
    return sorted((p for p in grid if p.aqi >= threshold), key=lambda p: p.aqi, reverse=True)


def region_average(grid: Sequence[AQIHeatmapPoint]) -> int:
    """Rounded mean AQI; 0 for an empty grid."""
    if not grid:
        return 0
    return round_half_up(float(np.mean([p.aqi for p in grid])))


def route_exposure_from_grid(
    route_points: Sequence[Coordinate],
    grid: Sequence[AQIHeatmapPoint],
    proximity_threshold: float = DEFAULT_PROXIMITY_DEG,
) -> int:
    """
    For each route point, average the AQI of grid points within proximity_threshold degrees
    (planar lat/lng distance); return the rounded mean of those averages, or NEUTRAL_EXPOSURE
    if no route point has a grid point nearby.
    """
    if not route_points or not grid:
        return NEUTRAL_EXPOSURE
    grid_lat = np.array([p.coordinate.latitude for p in grid], dtype=float)
    grid_lng = np.array([p.coordinate.longitude for p in grid], dtype=float)
    grid_aqi = np.array([p.aqi for p in grid], dtype=float)
    per_point: List[float] = []
    for rp in route_points:
        dist = np.hypot(grid_lat - rp.latitude, grid_lng - rp.longitude)
        near = dist <= proximity_threshold
        if near.any():
            per_point.append(float(grid_aqi[near].mean()))
    if not per_point:
        return NEUTRAL_EXPOSURE
    return round_half_up(sum(per_point) / len(per_point))
