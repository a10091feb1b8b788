"""
Unit tests for the local metric <-> geographic transforms.
"""
import math
import pytest
from fieldlines.editor.geometry import (
    METERS_PER_DEGREE_LAT,
    LatLng,
    geo_to_local,
    local_corners,
    local_to_geo,
    meters_per_degree_lng,
    normalize_longitude,
    normalize_rotation,
    outline_corners,
)

SYDNEY = LatLng(-33.8688, 151.2093)


class TestConversionFactors:
    """Tests for degree/meter scale factors."""

    def test_meters_per_degree_lng_at_equator(self):
        assert meters_per_degree_lng(0.0) == pytest.approx(METERS_PER_DEGREE_LAT)

    def test_meters_per_degree_lng_shrinks_with_latitude(self):
        assert meters_per_degree_lng(60.0) == pytest.approx(METERS_PER_DEGREE_LAT / 2)
        assert meters_per_degree_lng(-60.0) == pytest.approx(METERS_PER_DEGREE_LAT / 2)

    def test_pole_is_rejected(self):
        with pytest.raises(ValueError):
            meters_per_degree_lng(90.0)
        with pytest.raises(ValueError):
            local_to_geo(LatLng(-89.95, 0.0), 10.0, 10.0, 0.0)


class TestNormalization:
    """Tests for rotation and longitude wrapping."""

    @pytest.mark.parametrize(
        "degrees,expected",
        [(0, 0), (360, 0), (370, 10), (-10, 350), (-360, 0), (720.5, 0.5)],
    )
    def test_normalize_rotation(self, degrees, expected):
        assert normalize_rotation(degrees) == pytest.approx(expected)

    def test_normalize_rotation_never_returns_360(self):
        assert normalize_rotation(-1e-17) < 360.0

    @pytest.mark.parametrize(
        "lng,expected",
        [(0, 0), (180, -180), (181, -179), (-181, 179), (540, -180)],
    )
    def test_normalize_longitude(self, lng, expected):
        assert normalize_longitude(lng) == pytest.approx(expected)


class TestForwardTransform:
    """Tests for local_to_geo."""

    def test_unrotated_corners_match_formula(self):
        """A 100x64 field at rotation 0 has corners at (+-32, +-50) meters."""
        assert local_corners(100, 64) == [(-32, 50), (32, 50), (32, -50), (-32, -50)]

        corners = outline_corners(SYDNEY, 100, 64, 0)
        d_lat = 50 / METERS_PER_DEGREE_LAT
        d_lng = 32 / (METERS_PER_DEGREE_LAT * math.cos(SYDNEY.lat * math.pi / 180))

        assert corners[0].lat == pytest.approx(SYDNEY.lat + d_lat, abs=1e-12)
        assert corners[0].lng == pytest.approx(SYDNEY.lng - d_lng, abs=1e-12)
        assert corners[1].lat == pytest.approx(SYDNEY.lat + d_lat, abs=1e-12)
        assert corners[1].lng == pytest.approx(SYDNEY.lng + d_lng, abs=1e-12)
        assert corners[2].lat == pytest.approx(SYDNEY.lat - d_lat, abs=1e-12)
        assert corners[2].lng == pytest.approx(SYDNEY.lng + d_lng, abs=1e-12)
        assert corners[3].lat == pytest.approx(SYDNEY.lat - d_lat, abs=1e-12)
        assert corners[3].lng == pytest.approx(SYDNEY.lng - d_lng, abs=1e-12)

    def test_zero_offset_is_center(self):
        point = local_to_geo(SYDNEY, 0.0, 0.0, 123.0)
        assert point.lat == pytest.approx(SYDNEY.lat)
        assert point.lng == pytest.approx(SYDNEY.lng)

    def test_half_turn_mirrors_offset(self):
        ahead = local_to_geo(SYDNEY, 0.0, 50.0, 0.0)
        behind = local_to_geo(SYDNEY, 0.0, 50.0, 180.0)
        assert behind.lat - SYDNEY.lat == pytest.approx(-(ahead.lat - SYDNEY.lat))

    def test_crossing_antimeridian_wraps(self):
        center = LatLng(0.0, 179.9999)
        point = local_to_geo(center, 100.0, 0.0, 0.0)
        assert -180.0 <= point.lng < 180.0
        assert point.lng < 0


class TestRoundTrip:
    """geo_to_local undoes local_to_geo for the same anchor and rotation."""

    @pytest.mark.parametrize("rotation", [0, 15, 45, 90, 137.5, 180, 270, 359.9])
    @pytest.mark.parametrize("x,y", [(0, 0), (32, 50), (-32, 50), (500, -500), (-417.3, 12.9)])
    def test_round_trip(self, rotation, x, y):
        point = local_to_geo(SYDNEY, x, y, rotation)
        local = geo_to_local(SYDNEY, point, rotation)
        assert local.x == pytest.approx(x, abs=1e-6)
        assert local.y == pytest.approx(y, abs=1e-6)

    def test_round_trip_across_antimeridian(self):
        center = LatLng(-16.5, 179.999)
        point = local_to_geo(center, 250.0, -40.0, 30.0)
        local = geo_to_local(center, point, 30.0)
        assert local.x == pytest.approx(250.0, abs=1e-6)
        assert local.y == pytest.approx(-40.0, abs=1e-6)


class TestRotationInvariance:
    """Rotating changes orientation only, not shape."""

    @staticmethod
    def _edge_lengths(center, corners, rotation):
        local = [geo_to_local(center, c, rotation) for c in corners]
        return [
            math.hypot(local[i].x - local[(i + 1) % 4].x, local[i].y - local[(i + 1) % 4].y)
            for i in range(4)
        ]

    @pytest.mark.parametrize("rotation", [0, 30, 90, 200, 333])
    def test_edge_lengths_constant(self, rotation):
        corners = outline_corners(SYDNEY, 100, 64, rotation)
        edges = self._edge_lengths(SYDNEY, corners, rotation)
        assert edges == pytest.approx([64, 100, 64, 100], abs=1e-6)

    def test_redraw_is_identical(self):
        first = outline_corners(SYDNEY, 105, 68, 42.0)
        second = outline_corners(SYDNEY, 105, 68, 42.0)
        assert first == second
