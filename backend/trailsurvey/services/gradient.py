"""
Slope-to-color mapping for corridor rendering.

Slope runs green (0%) to red (5%); cross slope runs dark blue (0%) to pink
(2%). Values are clamped to the domain before interpolation.
"""

from __future__ import annotations

from dataclasses import dataclass

from trailsurvey.models.trail import QuantityKind


@dataclass(frozen=True)
class Color:
    """RGBA color with channels in [0, 1]."""

    red: float
    green: float
    blue: float
    alpha: float = 1.0

    def to_rgba_tuple(self) -> tuple[float, float, float, float]:
        return (self.red, self.green, self.blue, self.alpha)

    def to_hex(self) -> str:
        """#RRGGBBAA"""
        channels = (self.red, self.green, self.blue, self.alpha)
        return "#" + "".join(f"{round(c * 255):02x}" for c in channels)


GREEN = Color(0.0, 1.0, 0.0)
YELLOW = Color(1.0, 1.0, 0.0)
RED = Color(1.0, 0.0, 0.0)
DARK_BLUE = Color(0.0, 0.0, 0.5)
PINK = Color(1.0, 45 / 255, 85 / 255)
SENSOR_FAULT_COLOR = Color(0.5, 0.5, 0.5)


@dataclass(frozen=True)
class ColorStop:
    """Color anchors for one quantity."""

    kind: QuantityKind
    domain_min: float
    domain_max: float
    color_at_min: Color
    color_at_max: Color


COLOR_STOPS: dict[QuantityKind, ColorStop] = {
    QuantityKind.SLOPE: ColorStop(QuantityKind.SLOPE, 0.0, 5.0, GREEN, RED),
    QuantityKind.CROSS_SLOPE: ColorStop(QuantityKind.CROSS_SLOPE, 0.0, 2.0, DARK_BLUE, PINK),
}


def interpolate(start: Color, end: Color, factor: float) -> Color:
    """Linear per-channel interpolation."""
    return Color(
        red=start.red + (end.red - start.red) * factor,
        green=start.green + (end.green - start.green) * factor,
        blue=start.blue + (end.blue - start.blue) * factor,
        alpha=start.alpha + (end.alpha - start.alpha) * factor,
    )


def color_for(kind: QuantityKind, value: float) -> Color:
    """
    Map a grade to its gradient color.

    Args:
        kind: Which quantity the value measures
        value: Percent grade

    Returns:
        Interpolated Color; values past the domain clamp to the end colors
    """
    stop = COLOR_STOPS[kind]
    factor = min(max(value / stop.domain_max, 0.0), 1.0)
    return interpolate(stop.color_at_min, stop.color_at_max, factor)


def severity_for(grade: float) -> Color:
    """Categorical pin color: gentle, moderate, steep."""
    magnitude = abs(grade)
    if magnitude <= 5.0:
        return GREEN
    if magnitude <= 15.0:
        return YELLOW
    return RED
