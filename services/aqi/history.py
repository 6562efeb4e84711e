"""
Hourly historical AQI series for one location (synthetic: base estimate + diurnal and seasonal waves).
"""
import math
from datetime import datetime, timedelta
from typing import Any, Dict, List

from config import AQI_MAX, AQI_MIN
from services.aqi.estimator import AQIEstimator, clamp, round_half_up
from services.geo.coordinates import Coordinate


def temporal_variation(when: datetime) -> float:
    """Diurnal (+/-10) plus seasonal (+/-5) offset for an instant."""
    diurnal = math.sin((when.hour / 24) * math.pi * 2) * 10
    seasonal = math.cos(((when.month - 1) / 12) * math.pi * 2) * 5
    return diurnal + seasonal


async def historical_series(
    estimator: AQIEstimator,
    coord: Coordinate,
    start: datetime,
    end: datetime,
) -> List[Dict[str, Any]]:
    """One {timestamp, aqi} entry per hour from start to end inclusive; empty if end < start."""
    series: List[Dict[str, Any]] = []
    current = start
    while current <= end:
        base = await estimator.estimate(coord)
        aqi = round_half_up(clamp(base + temporal_variation(current), AQI_MIN, AQI_MAX))
        series.append({"timestamp": current, "aqi": aqi})
        current = current + timedelta(hours=1)
    return series
