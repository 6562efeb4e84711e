"""
Synthetic AQI estimator: geographic harmonics + time-of-day/week/season modulation + bounded noise.
Stands in for a real AQI feed; callers depend on the AQIEstimator interface only.
"""
import math
import random
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Protocol

from config import AQI_MAX, AQI_MIN
from services.geo.coordinates import Coordinate

BASE_AQI = 50.0
NOISE_AMPLITUDE = 5.0

RUSH_HOURS = frozenset((7, 8, 9, 17, 18, 19))
WEEKEND_DAYS = frozenset((0, 6))  # Sunday, Saturday


def round_half_up(value: float) -> int:
    """Round halves toward +inf (2.5 -> 3, -2.5 -> -2)."""
    return int(math.floor(value + 0.5))


def clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


@dataclass(frozen=True)
class TimeFilter:
    """hour 0-23, day 0-6 (0 = Sunday), month 1-12."""

    hour: int
    day: int
    month: int

    def __post_init__(self) -> None:
        if not 0 <= self.hour <= 23:
            raise ValueError(f"hour must be in [0, 23], got {self.hour}")
        if not 0 <= self.day <= 6:
            raise ValueError(f"day must be in [0, 6], got {self.day}")
        if not 1 <= self.month <= 12:
            raise ValueError(f"month must be in [1, 12], got {self.month}")

    @classmethod
    def from_datetime(cls, when: datetime) -> "TimeFilter":
        # datetime.weekday(): Monday = 0; TimeFilter counts from Sunday
        return cls(hour=when.hour, day=(when.weekday() + 1) % 7, month=when.month)

    @property
    def is_rush_hour(self) -> bool:
        return self.hour in RUSH_HOURS

    @property
    def is_weekend(self) -> bool:
        return self.day in WEEKEND_DAYS

    @property
    def is_winter(self) -> bool:
        return self.month >= 11 or self.month <= 2


class RandomSource(Protocol):
    def next(self, lo: float, hi: float) -> float:
        ...


class UniformRandomSource:
    """Uniform draws in [lo, hi]; pass a seed for reproducible sequences."""

    def __init__(self, seed: Optional[int] = None):
        self._rng = random.Random(seed)

    def next(self, lo: float, hi: float) -> float:
        return self._rng.uniform(lo, hi)


class FixedRandomSource:
    """Always returns value, clamped to the requested range."""

    def __init__(self, value: float = 0.0):
        self.value = value

    def next(self, lo: float, hi: float) -> float:
        return clamp(self.value, lo, hi)


def estimate_aqi(
    coord: Coordinate,
    time_filter: Optional[TimeFilter] = None,
    random_source: Optional[RandomSource] = None,
) -> int:
    """
    AQI in [AQI_MIN, AQI_MAX] for a coordinate. Angles are the raw lat/lng values in radians.
    Terms are added in a fixed order; noise comes from random_source (uniform if None).
    """
    rng = random_source if random_source is not None else UniformRandomSource()
    lat, lng = coord.latitude, coord.longitude
    base = BASE_AQI

    urban = math.sin(lat * 50) * math.cos(lng * 50)
    base += urban * 20

    industrial = math.sin(lat * 100) * math.sin(lng * 100)
    if industrial > 0.7:
        base += 30

    traffic = abs(math.sin(lat * 200)) * abs(math.cos(lng * 200))
    base += traffic * 15

    if time_filter is not None:
        if time_filter.is_rush_hour:
            base += 15
        if time_filter.is_weekend:
            base -= 10
        if time_filter.is_winter:
            base += 10

    base += rng.next(-NOISE_AMPLITUDE, NOISE_AMPLITUDE)
    return round_half_up(clamp(base, AQI_MIN, AQI_MAX))


class AQIEstimator(Protocol):
    async def estimate(self, coord: Coordinate, time_filter: Optional[TimeFilter] = None) -> int:
        ...


class SyntheticAQIEstimator:
    """AQIEstimator backed by estimate_aqi; non-blocking."""

    def __init__(self, random_source: Optional[RandomSource] = None):
        self.random_source = random_source if random_source is not None else UniformRandomSource()

    async def estimate(self, coord: Coordinate, time_filter: Optional[TimeFilter] = None) -> int:
        return estimate_aqi(coord, time_filter, self.random_source)
