"""Unit tests for geographic calculations.

Pure function tests - no mocks needed, fast execution.
"""

import math

import pytest

from strike_alerts.core.errors import InvalidCoordinate
from strike_alerts.core.geo import (
    CONTINENTAL_US_BOUNDS,
    BoundingBox,
    calculate_distance,
    is_valid_coordinate,
    is_within_continental_us,
    is_within_radius,
)


CHICAGO = (41.8781, -87.6298)
DENVER = (39.7392, -104.9903)


class TestCalculateDistance:
    """Tests for calculate_distance() spherical law of cosines."""

    def test_same_point_returns_zero(self):
        """Distance from point to itself should be zero."""
        distance = calculate_distance(*CHICAGO, *CHICAGO)
        assert distance == pytest.approx(0.0, abs=1e-3)

    @pytest.mark.parametrize("point", [
        (0.0, 0.0),
        (90.0, 0.0),
        (-90.0, 180.0),
        (37.7749, -122.4194),
        (24.396308, -66.93457),
    ])
    def test_identical_points_never_nan(self, point):
        """Clamping keeps identical points from producing NaN."""
        distance = calculate_distance(*point, *point)
        assert not math.isnan(distance)
        assert distance == pytest.approx(0.0, abs=1e-3)

    def test_antipodal_points_are_half_circumference(self):
        """Antipodal points are pi * R apart, not NaN."""
        distance = calculate_distance(10.0, 20.0, -10.0, -160.0)
        assert distance == pytest.approx(math.pi * 3959, rel=1e-6)

    def test_known_distance_sf_to_la(self):
        """SF to LA should be approximately 347 miles."""
        distance = calculate_distance(37.7749, -122.4194, 34.0522, -118.2437)
        assert distance == pytest.approx(347, rel=0.02)

    def test_known_distance_chicago_to_denver(self):
        """Chicago to Denver should be approximately 920 miles."""
        distance = calculate_distance(*CHICAGO, *DENVER)
        assert distance == pytest.approx(920, rel=0.02)

    def test_short_distance_downtown_chicago(self):
        """Points a few blocks apart are under a mile apart."""
        distance = calculate_distance(*CHICAGO, 41.8825, -87.6231)
        assert 0 < distance < 1

    def test_symmetric(self):
        """Distance should be the same in both directions."""
        d1 = calculate_distance(*CHICAGO, *DENVER)
        d2 = calculate_distance(*DENVER, *CHICAGO)
        assert d1 == pytest.approx(d2, abs=1e-6)

    def test_non_negative(self):
        """Distance is never negative."""
        assert calculate_distance(-33.86, 151.21, 51.5, -0.12) >= 0

    @pytest.mark.parametrize("coords", [
        (float("nan"), 0.0, 0.0, 0.0),
        (0.0, float("inf"), 0.0, 0.0),
        (91.0, 0.0, 0.0, 0.0),
        (0.0, 0.0, 0.0, -180.5),
        ("41.0", 0.0, 0.0, 0.0),
    ])
    def test_invalid_input_raises(self, coords):
        """Non-finite or out-of-range input raises InvalidCoordinate."""
        with pytest.raises(InvalidCoordinate):
            calculate_distance(*coords)


class TestIsValidCoordinate:
    """Tests for is_valid_coordinate() function."""

    def test_valid(self):
        """In-range finite values are valid."""
        assert is_valid_coordinate(41.8781, -87.6298) is True

    def test_boundaries_are_valid(self):
        """The range limits themselves are valid."""
        assert is_valid_coordinate(-90, 180) is True

    def test_nan_is_invalid(self):
        """NaN is invalid."""
        assert is_valid_coordinate(float("nan"), 0) is False

    def test_none_is_invalid(self):
        """None is invalid."""
        assert is_valid_coordinate(None, 0) is False


class TestIsWithinRadius:
    """Tests for is_within_radius() function."""

    def test_inside(self):
        """Nearby point is within radius."""
        assert is_within_radius(*CHICAGO, 41.8825, -87.6231, 20) is True

    def test_outside(self):
        """Distant point is outside radius."""
        assert is_within_radius(*CHICAGO, *DENVER, 20) is False

    def test_zero_radius_same_point(self):
        """Boundary is inclusive: same point with zero radius matches."""
        assert is_within_radius(*CHICAGO, *CHICAGO, 0.001) is True


class TestBoundingBox:
    """Tests for BoundingBox and the continental US bounds."""

    def test_contains_point_inside(self):
        """Should return True for point inside box."""
        box = BoundingBox(
            min_latitude=35.0,
            max_latitude=40.0,
            min_longitude=-125.0,
            max_longitude=-120.0,
        )
        assert box.contains(37.7749, -122.4194) is True

    def test_contains_point_on_boundary(self):
        """Should return True for point on boundary."""
        assert CONTINENTAL_US_BOUNDS.contains(49.384358, -66.93457) is True

    def test_chicago_is_continental(self):
        """Chicago is inside the continental US."""
        assert is_within_continental_us(*CHICAGO) is True

    def test_latitude_above_bound(self):
        """Latitude 60 is north of the continental US."""
        assert is_within_continental_us(60.0, -87.6298) is False

    def test_honolulu_is_outside(self):
        """Hawaii is outside the continental bounds."""
        assert is_within_continental_us(21.3069, -157.8583) is False
