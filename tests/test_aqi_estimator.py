"""
Tests for the synthetic AQI estimator, time filters, random sources and AQI categories.
"""
import math
import random
from datetime import datetime

import pytest

from services.aqi.categories import category_for, color_for
from services.aqi.estimator import (
    FixedRandomSource,
    SyntheticAQIEstimator,
    TimeFilter,
    UniformRandomSource,
    estimate_aqi,
    round_half_up,
)
from services.geo.coordinates import Coordinate

ORIGIN = Coordinate(0.0, 0.0)


def _reference_base(lat, lng):
    base = 50 + math.sin(lat * 50) * math.cos(lng * 50) * 20
    if math.sin(lat * 100) * math.sin(lng * 100) > 0.7:
        base += 30
    return base + abs(math.sin(lat * 200)) * abs(math.cos(lng * 200)) * 15


class TestEstimateAqi:
    def test_origin_without_time_is_base(self, zero_noise):
        # every harmonic term vanishes at (0, 0)
        assert estimate_aqi(ORIGIN, None, zero_noise) == 50

    def test_rush_hour_weekday_winter(self, zero_noise):
        tf = TimeFilter(hour=8, day=1, month=1)
        assert estimate_aqi(ORIGIN, tf, zero_noise) == 75

    def test_weekend_summer_off_peak(self, zero_noise):
        tf = TimeFilter(hour=13, day=6, month=7)
        assert estimate_aqi(ORIGIN, tf, zero_noise) == 40

    def test_rush_hour_bounds(self, zero_noise):
        for hour in (7, 9, 17, 19):
            assert estimate_aqi(ORIGIN, TimeFilter(hour, 3, 6), zero_noise) == 65
        for hour in (6, 10, 16, 20):
            assert estimate_aqi(ORIGIN, TimeFilter(hour, 3, 6), zero_noise) == 50

    def test_winter_months(self, zero_noise):
        for month in (11, 12, 1, 2):
            assert estimate_aqi(ORIGIN, TimeFilter(12, 3, month), zero_noise) == 60
        for month in (3, 10):
            assert estimate_aqi(ORIGIN, TimeFilter(12, 3, month), zero_noise) == 50

    def test_noise_added_from_source(self):
        assert estimate_aqi(ORIGIN, None, FixedRandomSource(4.0)) == 54
        assert estimate_aqi(ORIGIN, None, FixedRandomSource(-4.0)) == 46

    def test_noise_clamped_to_amplitude(self):
        assert estimate_aqi(ORIGIN, None, FixedRandomSource(100.0)) == 55

    def test_matches_reference_formula(self, zero_noise):
        rng = random.Random(3)
        for _ in range(200):
            lat, lng = rng.uniform(-90, 90), rng.uniform(-180, 180)
            expected = round_half_up(max(10, min(150, _reference_base(lat, lng))))
            assert estimate_aqi(Coordinate(lat, lng), None, zero_noise) == expected

    @pytest.mark.slow
    def test_bounds_over_random_samples(self):
        rng = random.Random(42)
        noise = UniformRandomSource(seed=42)
        for _ in range(10_000):
            coord = Coordinate(rng.uniform(-90, 90), rng.uniform(-180, 180))
            tf = None
            if rng.random() < 0.5:
                tf = TimeFilter(rng.randint(0, 23), rng.randint(0, 6), rng.randint(1, 12))
            aqi = estimate_aqi(coord, tf, noise)
            assert isinstance(aqi, int)
            assert 10 <= aqi <= 150

    def test_default_random_source_stays_in_bounds(self):
        for _ in range(100):
            assert 10 <= estimate_aqi(Coordinate(12.34, 56.78)) <= 150


class TestSyntheticAQIEstimator:
    @pytest.mark.asyncio
    async def test_estimate_uses_injected_source(self, estimator):
        assert await estimator.estimate(ORIGIN) == 50
        assert await estimator.estimate(ORIGIN, TimeFilter(8, 1, 1)) == 75

    @pytest.mark.asyncio
    async def test_default_source_is_uniform(self):
        est = SyntheticAQIEstimator()
        assert isinstance(est.random_source, UniformRandomSource)
        assert 45 <= await est.estimate(ORIGIN) <= 55


class TestRandomSources:
    def test_seeded_uniform_reproducible(self):
        a, b = UniformRandomSource(seed=1), UniformRandomSource(seed=1)
        assert [a.next(-5, 5) for _ in range(5)] == [b.next(-5, 5) for _ in range(5)]

    def test_uniform_in_range(self):
        src = UniformRandomSource(seed=9)
        for _ in range(1000):
            assert 20 <= src.next(20, 80) <= 80

    def test_fixed_clamps(self):
        src = FixedRandomSource(0.0)
        assert src.next(-5, 5) == 0.0
        assert src.next(20, 80) == 20


class TestRoundHalfUp:
    def test_halves_round_up(self):
        assert round_half_up(2.5) == 3
        assert round_half_up(49.5) == 50
        assert round_half_up(-0.5) == 0

    def test_non_halves(self):
        assert round_half_up(43.33) == 43
        assert round_half_up(43.67) == 44


class TestTimeFilter:
    def test_from_datetime_sunday_is_zero(self):
        assert TimeFilter.from_datetime(datetime(2025, 1, 5, 18)) == TimeFilter(18, 0, 1)

    def test_from_datetime_saturday_is_six(self):
        assert TimeFilter.from_datetime(datetime(2025, 1, 11, 0)) == TimeFilter(0, 6, 1)

    def test_from_datetime_monday(self):
        assert TimeFilter.from_datetime(datetime(2025, 7, 7, 23)) == TimeFilter(23, 1, 7)

    @pytest.mark.parametrize("hour,day,month", [(24, 0, 1), (-1, 0, 1), (0, 7, 1), (0, 0, 0), (0, 0, 13)])
    def test_out_of_range_raises(self, hour, day, month):
        with pytest.raises(ValueError):
            TimeFilter(hour, day, month)


class TestCategories:
    @pytest.mark.parametrize("aqi,label,color", [
        (0, "Good", "#00E400"),
        (50, "Good", "#00E400"),
        (51, "Moderate", "#FFFF00"),
        (100, "Moderate", "#FFFF00"),
        (101, "Unhealthy for Sensitive Groups", "#FF7E00"),
        (150, "Unhealthy for Sensitive Groups", "#FF7E00"),
        (151, "Unhealthy", "#FF0000"),
        (200, "Unhealthy", "#FF0000"),
        (201, "Very Unhealthy", "#8F3F97"),
        (300, "Very Unhealthy", "#8F3F97"),
        (301, "Hazardous", "#7E0023"),
    ])
    def test_breakpoints(self, aqi, label, color):
        assert category_for(aqi) == label
        assert color_for(aqi) == color
