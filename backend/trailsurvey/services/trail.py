"""
Slope trail: the ordered, append-only log of trail points.

Insertion order is temporal order. Waypoints are derived on demand by greedy
minimum-spacing selection and never stored.
"""

from __future__ import annotations

import logging
import os
from typing import Iterable, Iterator, Optional

from trailsurvey.errors import OutOfOrderSample, SensorFault, TrailNotTracking
from trailsurvey.models.trail import Coordinate, TrailPoint
from trailsurvey.services.orientation import SENSOR_FAULT_GRADE, is_sensor_fault
from trailsurvey.utils.geodesy import haversine_distance, validate_coordinate


logger = logging.getLogger(__name__)

# One rod (~25 ft)
WAYPOINT_SPACING_M = float(os.getenv("TRAIL_WAYPOINT_SPACING_M", "7.62"))
REJECT_SENSOR_FAULTS = os.getenv("TRAIL_REJECT_SENSOR_FAULTS", "0") not in ("0", "false", "False")


def select_waypoints(
    points: Iterable[TrailPoint],
    min_spacing_m: float = WAYPOINT_SPACING_M,
) -> Iterator[TrailPoint]:
    """
    Greedy single-pass waypoint selection.

    The first point is always a waypoint. A later point becomes one when it is
    strictly farther than min_spacing_m from the last selected waypoint.
    """
    last: Optional[TrailPoint] = None
    for point in points:
        if last is None or haversine_distance(last.position, point.position) > min_spacing_m:
            last = point
            yield point


class SlopeTrail:
    """
    Append-only trail of slope samples for one tracking session.

    Args:
        fault_limit: Grade magnitude (%) above which a point counts as a
            sensor fault.
        reject_faults: Raise SensorFault instead of appending a flagged point.
    """

    def __init__(
        self,
        fault_limit: float = SENSOR_FAULT_GRADE,
        reject_faults: bool = REJECT_SENSOR_FAULTS,
    ) -> None:
        self.fault_limit = fault_limit
        self.reject_faults = reject_faults
        self._points: list[TrailPoint] = []
        self._tracking = False

    # ------------------------------------------------------------------
    # Tracking state
    # ------------------------------------------------------------------

    @property
    def is_tracking(self) -> bool:
        return self._tracking

    def start_tracking(self) -> None:
        self._tracking = True

    def stop_tracking(self) -> None:
        self._tracking = False

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def append(
        self,
        position: Coordinate,
        timestamp: float,
        slope_grade: float,
        cross_slope_grade: float,
    ) -> TrailPoint:
        """
        Record a new trail point.

        Args:
            position: Location of the sample
            timestamp: Seconds since epoch
            slope_grade: Filtered longitudinal slope, % grade
            cross_slope_grade: Filtered cross slope, % grade

        Returns:
            The appended TrailPoint

        Raises:
            TrailNotTracking: Tracking is off.
            InvalidCoordinate: Position out of range.
            OutOfOrderSample: Timestamp earlier than the last point.
            SensorFault: Grade out of range and reject_faults is set.
        """
        if not self._tracking:
            raise TrailNotTracking("Trail is not tracking")

        validate_coordinate(position.latitude, position.longitude)

        if self._points and timestamp < self._points[-1].timestamp:
            raise OutOfOrderSample(timestamp, self._points[-1].timestamp)

        fault = is_sensor_fault(slope_grade, self.fault_limit) or is_sensor_fault(
            cross_slope_grade, self.fault_limit
        )
        if fault:
            if self.reject_faults:
                raise SensorFault(slope_grade, cross_slope_grade, self.fault_limit)
            logger.warning(
                f"Sensor fault at {timestamp}: slope={slope_grade}, cross_slope={cross_slope_grade}"
            )

        point = TrailPoint(
            position=position,
            timestamp=timestamp,
            slope_grade=slope_grade,
            cross_slope_grade=cross_slope_grade,
            sensor_fault=fault,
        )
        self._points.append(point)
        return point

    def waypoints(self, min_spacing_m: float = WAYPOINT_SPACING_M) -> Iterator[TrailPoint]:
        """
        Lazily select waypoints from a snapshot of the trail.

        Every call returns a fresh iterator, so the sequence can be restarted.
        """
        return select_waypoints(self.points(), min_spacing_m)

    def points(self) -> tuple[TrailPoint, ...]:
        """Immutable snapshot of the trail in order."""
        return tuple(self._points)

    @property
    def last(self) -> Optional[TrailPoint]:
        return self._points[-1] if self._points else None

    def clear(self) -> None:
        """Drop all points (new session)."""
        self._points.clear()

    def __len__(self) -> int:
        return len(self._points)
