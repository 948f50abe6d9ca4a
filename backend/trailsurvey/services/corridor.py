"""
Corridor projection for trail rendering.

Each pair of adjacent waypoints yields a left and a right offset line,
perpendicular to the pair's bearing, at a fixed standoff.
"""

from __future__ import annotations

import math
import os
from typing import Callable, Iterable, Optional, Sequence

from trailsurvey.models.trail import Coordinate, CorridorSegment, TrailPoint
from trailsurvey.utils.geodesy import bearing, destination, geodesic_destination


CORRIDOR_STANDOFF_M = float(os.getenv("TRAIL_CORRIDOR_STANDOFF_M", "5.0"))
OFFSET_METHOD = os.getenv("TRAIL_OFFSET_METHOD", "flat").lower()

OffsetFn = Callable[[Coordinate, float, float], Coordinate]

OFFSET_METHODS: dict[str, OffsetFn] = {
    "flat": destination,
    "geodesic": geodesic_destination,
}


def offset_function(method: str = OFFSET_METHOD) -> OffsetFn:
    try:
        return OFFSET_METHODS[method]
    except KeyError:
        raise ValueError(f"Unknown offset method: {method}") from None


def pairwise(waypoints: Sequence[TrailPoint]) -> list[tuple[TrailPoint, TrailPoint]]:
    """Adjacent waypoint pairs in trail order."""
    return list(zip(waypoints, waypoints[1:]))


def project(
    waypoint_pairs: Iterable[tuple[TrailPoint, TrailPoint]],
    standoff_m: float = CORRIDOR_STANDOFF_M,
    offset: Optional[OffsetFn] = None,
) -> list[CorridorSegment]:
    """
    Build corridor segments for waypoint pairs.

    Args:
        waypoint_pairs: (A, B) pairs, A before B
        standoff_m: Perpendicular distance of each line from the centerline
        offset: Coordinate offset function, defaults to the configured method

    Returns:
        One CorridorSegment per pair, labeled with B's slope values
    """
    if offset is None:
        offset = offset_function()

    segments: list[CorridorSegment] = []
    for a, b in waypoint_pairs:
        heading = bearing(a.position, b.position)
        left_bearing = heading - math.pi / 2
        right_bearing = heading + math.pi / 2

        segments.append(CorridorSegment(
            left_line=(
                offset(a.position, standoff_m, left_bearing),
                offset(b.position, standoff_m, left_bearing),
            ),
            right_line=(
                offset(a.position, standoff_m, right_bearing),
                offset(b.position, standoff_m, right_bearing),
            ),
            slope_value=b.slope_grade,
            cross_slope_value=b.cross_slope_grade,
            sensor_fault=b.sensor_fault,
        ))
    return segments


def project_waypoints(
    waypoints: Sequence[TrailPoint],
    standoff_m: float = CORRIDOR_STANDOFF_M,
    offset: Optional[OffsetFn] = None,
) -> list[CorridorSegment]:
    """Corridor segments for a waypoint sequence; empty for fewer than two."""
    if len(waypoints) < 2:
        return []
    return project(pairwise(waypoints), standoff_m, offset)
