"""
Tests for slope color mapping.
"""

import pytest
from numpy.testing import assert_allclose

from trailsurvey.models.trail import QuantityKind
from trailsurvey.services.gradient import (
    COLOR_STOPS,
    DARK_BLUE,
    GREEN,
    PINK,
    RED,
    YELLOW,
    Color,
    color_for,
    interpolate,
    severity_for,
)


class TestColorFor:
    """Tests for the continuous gradient."""

    def test_slope_endpoints(self):
        assert color_for(QuantityKind.SLOPE, 0.0) == GREEN
        assert color_for(QuantityKind.SLOPE, 5.0) == RED

    def test_slope_clamped(self):
        """Values past the domain clamp to the end colors."""
        assert color_for(QuantityKind.SLOPE, 10.0) == RED
        assert color_for(QuantityKind.SLOPE, -3.0) == GREEN

    def test_slope_midpoint(self):
        """2.5% is the exact midpoint of green and red."""
        assert color_for(QuantityKind.SLOPE, 2.5) == Color(0.5, 0.5, 0.0, 1.0)

    def test_cross_slope_endpoints(self):
        assert color_for(QuantityKind.CROSS_SLOPE, 0.0) == DARK_BLUE
        assert_allclose(
            color_for(QuantityKind.CROSS_SLOPE, 2.0).to_rgba_tuple(),
            PINK.to_rgba_tuple(),
        )
        assert_allclose(
            color_for(QuantityKind.CROSS_SLOPE, 7.0).to_rgba_tuple(),
            PINK.to_rgba_tuple(),
        )

    def test_cross_slope_midpoint(self):
        result = color_for(QuantityKind.CROSS_SLOPE, 1.0)
        assert_allclose(
            result.to_rgba_tuple(),
            (0.5, 45 / 255 / 2, (0.5 + 85 / 255) / 2, 1.0),
        )

    def test_domains(self):
        assert COLOR_STOPS[QuantityKind.SLOPE].domain_max == 5.0
        assert COLOR_STOPS[QuantityKind.CROSS_SLOPE].domain_max == 2.0


class TestInterpolate:
    """Tests for per-channel interpolation."""

    def test_alpha_channel(self):
        start = Color(0.0, 0.0, 0.0, 0.0)
        end = Color(1.0, 1.0, 1.0, 1.0)
        assert interpolate(start, end, 0.25) == Color(0.25, 0.25, 0.25, 0.25)

    def test_factor_bounds(self):
        assert interpolate(GREEN, RED, 0.0) == GREEN
        assert interpolate(GREEN, RED, 1.0) == RED


class TestColor:
    """Tests for color serialization."""

    def test_to_hex(self):
        assert GREEN.to_hex() == "#00ff00ff"
        assert DARK_BLUE.to_hex() == "#000080ff"
        assert PINK.to_hex() == "#ff2d55ff"


class TestSeverity:
    """Tests for categorical pin colors."""

    @pytest.mark.parametrize("grade,expected", [
        (0.0, GREEN),
        (5.0, GREEN),
        (-4.0, GREEN),
        (5.5, YELLOW),
        (-12.0, YELLOW),
        (15.0, YELLOW),
        (15.1, RED),
        (-40.0, RED),
    ])
    def test_bands(self, grade, expected):
        assert severity_for(grade) == expected
