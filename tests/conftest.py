"""
Pytest configuration and shared fixtures for route exposure and heatmap tests.
"""
import os
import sys
from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest

# Ensure project root is on path
PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

# Pytest-asyncio mode
pytest_plugins = ["pytest_asyncio"]

from services.aqi.estimator import FixedRandomSource, SyntheticAQIEstimator  # noqa: E402
from services.geo.coordinates import Coordinate  # noqa: E402

FIXED_NOW = datetime(2025, 1, 6, 8, 0, tzinfo=timezone.utc)  # Monday, rush hour, winter


def pytest_configure(config):
    config.addinivalue_line("markers", "asyncio: mark test as async (pytest-asyncio).")
    config.addinivalue_line("markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')")


@pytest.fixture
def zero_noise() -> FixedRandomSource:
    """Random source pinned to 0: estimator noise vanishes, fallback scores pin to the range floor."""
    return FixedRandomSource(0.0)


@pytest.fixture
def estimator(zero_noise) -> SyntheticAQIEstimator:
    return SyntheticAQIEstimator(zero_noise)


@pytest.fixture
def fixed_clock():
    return lambda: FIXED_NOW


@pytest.fixture
def origin() -> Coordinate:
    return Coordinate(34.0522, -118.2437)


@pytest.fixture
def destination() -> Coordinate:
    return Coordinate(34.0736, -118.2400)


@pytest.fixture
def mock_redis() -> AsyncMock:
    """Fake async Redis for cache tests (get/setex return OK)."""
    redis = AsyncMock()
    redis.get = AsyncMock(return_value=None)
    redis.setex = AsyncMock(return_value=True)
    redis.ping = AsyncMock(return_value=True)
    return redis


class ConstantEstimator:
    """Estimator returning a fixed AQI per call, in call order (cycles)."""

    def __init__(self, *values: int):
        self.values = list(values) or [50]
        self.calls = []

    async def estimate(self, coord, time_filter=None):
        value = self.values[len(self.calls) % len(self.values)]
        self.calls.append((coord, time_filter))
        return value


class FailingEstimator:
    async def estimate(self, coord, time_filter=None):
        raise RuntimeError("sensor feed down")


class SlowEstimator:
    """Sleeps `delay` seconds before answering; records cancellations."""

    def __init__(self, delay: float, value: int = 50):
        self.delay = delay
        self.value = value
        self.cancelled = 0

    async def estimate(self, coord, time_filter=None):
        import asyncio
        try:
            await asyncio.sleep(self.delay)
        except asyncio.CancelledError:
            self.cancelled += 1
            raise
        return self.value


@pytest.fixture
def constant_estimator():
    """Factory: constant_estimator(40, 60) answers 40, 60, 40, ..."""
    return ConstantEstimator


@pytest.fixture
def failing_estimator() -> FailingEstimator:
    return FailingEstimator()


@pytest.fixture
def slow_estimator():
    """Factory: slow_estimator(delay, value)."""
    return SlowEstimator
