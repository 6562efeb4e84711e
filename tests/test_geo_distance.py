"""
Tests for Haversine/planar distance and route point sampling.
"""
import random

import pytest

from services.geo.coordinates import BoundingBox, Coordinate, InvalidBoundingBoxError
from services.geo.distance import haversine_m, planar_distance_deg, sample_route_points

LONDON = Coordinate(51.5074, -0.1278)
PARIS = Coordinate(48.8566, 2.3522)


class TestHaversine:
    def test_london_paris(self):
        assert haversine_m(LONDON, PARIS) == pytest.approx(343_500, rel=0.01)

    def test_identity_is_zero(self):
        assert haversine_m(LONDON, LONDON) == 0.0

    def test_symmetric(self):
        rng = random.Random(7)
        for _ in range(500):
            a = Coordinate(rng.uniform(-90, 90), rng.uniform(-180, 180))
            b = Coordinate(rng.uniform(-90, 90), rng.uniform(-180, 180))
            assert haversine_m(a, b) == haversine_m(b, a)
            assert haversine_m(a, b) >= 0

    def test_one_degree_latitude(self):
        assert haversine_m(Coordinate(0, 0), Coordinate(1, 0)) == pytest.approx(111_195, rel=0.001)


class TestPlanarDistance:
    def test_pythagorean(self):
        assert planar_distance_deg(Coordinate(0, 0), Coordinate(3, 4)) == pytest.approx(5.0)

    def test_symmetric(self):
        assert planar_distance_deg(LONDON, PARIS) == planar_distance_deg(PARIS, LONDON)


class TestSampleRoutePoints:
    @staticmethod
    def _line(n):
        return [Coordinate(0.0, i * 0.001) for i in range(n)]

    def test_short_route_unchanged(self):
        pts = self._line(5)
        assert sample_route_points(pts, 10) == pts

    def test_exact_length_unchanged(self):
        pts = self._line(10)
        assert sample_route_points(pts, 10) == pts

    def test_stride_from_index_zero(self):
        pts = self._line(21)
        out = sample_route_points(pts, 10)
        # stride 2 -> indices 0, 2, ..., 20
        assert out == pts[::2]
        assert out[0] == pts[0]
        assert out[-1] == pts[-1]

    def test_last_point_can_be_omitted(self):
        pts = self._line(22)
        out = sample_route_points(pts, 10)
        # stride 2 -> indices 0..20; index 21 is never reached
        assert out[-1] == pts[20]
        assert pts[-1] not in out

    def test_order_preserved(self):
        pts = self._line(100)
        out = sample_route_points(pts, 20)
        lngs = [p.longitude for p in out]
        assert lngs == sorted(lngs)
        assert len(out) == 20

    def test_empty_and_zero_samples(self):
        assert sample_route_points([], 10) == []
        assert sample_route_points(self._line(5), 0) == []


class TestBoundingBox:
    def test_from_points_envelope(self):
        bb = BoundingBox.from_points([Coordinate(1, 5), Coordinate(-2, 3), Coordinate(0, 7)])
        assert bb.northeast == Coordinate(1, 7)
        assert bb.southwest == Coordinate(-2, 3)

    def test_from_points_empty_raises(self):
        with pytest.raises(ValueError):
            BoundingBox.from_points([])

    def test_validate_ok_returns_self(self):
        bb = BoundingBox(Coordinate(1, 1), Coordinate(0, 0))
        assert bb.validate() is bb

    def test_validate_degenerate_box_ok(self):
        bb = BoundingBox(Coordinate(1, 1), Coordinate(1, 1))
        assert bb.validate() is bb

    def test_inverted_latitude_raises(self):
        with pytest.raises(InvalidBoundingBoxError, match="latitude"):
            BoundingBox(Coordinate(0, 1), Coordinate(1, 0)).validate()

    def test_inverted_longitude_raises(self):
        with pytest.raises(InvalidBoundingBoxError, match="longitude"):
            BoundingBox(Coordinate(1, 0), Coordinate(0, 1)).validate()

    def test_coordinate_validity(self):
        assert Coordinate(90, 180).is_valid
        assert not Coordinate(90.1, 0).is_valid
        assert not Coordinate(0, -180.5).is_valid
