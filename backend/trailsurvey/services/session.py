"""
Tracking session: the single writer for one surveyed trail.

Owns the orientation filter and the slope trail. Every write goes through
one lock; smoothing state and append order are both sequence-dependent.
Rendering reads work from a snapshot taken under the same lock.
"""

from __future__ import annotations

import logging
import threading
import time
import uuid
from dataclasses import dataclass
from typing import Callable, Iterable, Optional

import numpy as np

from trailsurvey.models.sample import DeviceOrientation, Sample
from trailsurvey.models.trail import (
    Coordinate,
    CorridorSegment,
    TrailPoint,
    TrailSummary,
)
from trailsurvey.services.corridor import CORRIDOR_STANDOFF_M, OffsetFn, project_waypoints
from trailsurvey.services.gradient import SENSOR_FAULT_COLOR, Color, color_for, severity_for
from trailsurvey.services.orientation import DEFAULT_ALPHA, OrientationFilter
from trailsurvey.services.position_filter import POSITION_FILTER_ENABLED, PositionFilter
from trailsurvey.services.trail import WAYPOINT_SPACING_M, SlopeTrail, select_waypoints
from trailsurvey.utils.geodesy import path_length, validate_coordinate


logger = logging.getLogger(__name__)

PointCallback = Callable[[TrailPoint], None]


@dataclass(frozen=True)
class CorridorOverlay:
    """Render metadata for one corridor segment."""

    segment: CorridorSegment
    left_color: Color
    right_color: Color


@dataclass(frozen=True)
class WaypointPin:
    """Render metadata for one waypoint marker."""

    point: TrailPoint
    color: Color


def overlay_for(segment: CorridorSegment) -> CorridorOverlay:
    """Color a corridor segment; grade sign is ignored, faults render grey."""
    if segment.sensor_fault:
        return CorridorOverlay(segment, SENSOR_FAULT_COLOR, SENSOR_FAULT_COLOR)
    return CorridorOverlay(
        segment=segment,
        left_color=color_for(segment.left_kind, abs(segment.value_for(segment.left_kind))),
        right_color=color_for(segment.right_kind, abs(segment.value_for(segment.right_kind))),
    )


class TrackingSession:
    """
    One trail survey session.

    Args:
        name: Display name
        alpha: Orientation smoothing coefficient
        position_filter: Optional GPS fix filter; defaults to a PositionFilter
            when TRAIL_POSITION_FILTER is enabled
        on_point: Called with every appended point, outside the lock
    """

    def __init__(
        self,
        name: Optional[str] = None,
        alpha: float = DEFAULT_ALPHA,
        trail: Optional[SlopeTrail] = None,
        position_filter: Optional[PositionFilter] = None,
        on_point: Optional[PointCallback] = None,
    ) -> None:
        self.id = uuid.uuid4().hex[:16]
        self.name = name or f"trail-{self.id[:8]}"
        self.created_at = time.time()
        self.orientation = OrientationFilter(alpha)
        self.trail = trail if trail is not None else SlopeTrail()
        if position_filter is None and POSITION_FILTER_ENABLED:
            position_filter = PositionFilter()
        self.position_filter = position_filter
        self.on_point = on_point
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def is_tracking(self) -> bool:
        return self.trail.is_tracking

    def start(self) -> Optional[TrailPoint]:
        """Turn tracking on; pins the last known position if there is one."""
        with self._lock:
            if self.trail.is_tracking:
                return None
            self.trail.start_tracking()
            pin = self._drop_pin_locked()
        logger.info(f"Session {self.id} started tracking ({len(self.trail)} points)")
        self._notify(pin)
        return pin

    def stop(self) -> tuple[TrailPoint, ...]:
        """Pin the last position, turn tracking off, and return the trail."""
        with self._lock:
            pin = None
            if self.trail.is_tracking:
                pin = self._drop_pin_locked()
                self.trail.stop_tracking()
            snapshot = self.trail.points()
        logger.info(f"Session {self.id} stopped tracking ({len(snapshot)} points)")
        self._notify(pin)
        return snapshot

    def load(self, points: Iterable[TrailPoint]) -> int:
        """
        Replay previously recorded points (e.g. an imported CSV) onto the trail.

        Returns:
            Number of points loaded
        """
        count = 0
        with self._lock:
            was_tracking = self.trail.is_tracking
            self.trail.start_tracking()
            try:
                for p in points:
                    self.trail.append(p.position, p.timestamp, p.slope_grade, p.cross_slope_grade)
                    count += 1
            finally:
                if not was_tracking:
                    self.trail.stop_tracking()
        logger.info(f"Session {self.id} loaded {count} points")
        return count

    def reset(self) -> None:
        """Clear the trail for a fresh survey."""
        with self._lock:
            self.trail.clear()
            if self.position_filter is not None:
                self.position_filter.reset()
        logger.info(f"Session {self.id} cleared")

    # ------------------------------------------------------------------
    # Ingestion
    # ------------------------------------------------------------------

    def update_orientation(
        self,
        raw_pitch_deg: float,
        raw_roll_deg: float,
        orientation: DeviceOrientation = DeviceOrientation.PORTRAIT,
    ) -> tuple[float, float]:
        with self._lock:
            return self.orientation.update(raw_pitch_deg, raw_roll_deg, orientation)

    def record_location(self, position: Coordinate, timestamp: float) -> Optional[TrailPoint]:
        """
        Append a trail point at position with the current filtered grades.

        Returns:
            The new point, or None when not tracking or the fix was filtered out
        """
        validate_coordinate(position.latitude, position.longitude)
        with self._lock:
            point = self._record_locked(position, timestamp)
        self._notify(point)
        return point

    def ingest(self, sample: Sample) -> Optional[TrailPoint]:
        """Apply one combined sample: orientation first, then location."""
        validate_coordinate(sample.position.latitude, sample.position.longitude)
        with self._lock:
            self.orientation.update(sample.raw_pitch_deg, sample.raw_roll_deg, sample.orientation)
            point = self._record_locked(sample.position, sample.timestamp)
        self._notify(point)
        return point

    def calibrate(self) -> None:
        """Set the zero reference to the current smoothed attitude."""
        with self._lock:
            self.orientation.set_baseline()
        logger.info(f"Session {self.id} baseline set")

    def drop_pin(self) -> Optional[TrailPoint]:
        """Re-record the last position with the current grades."""
        with self._lock:
            pin = self._drop_pin_locked()
        self._notify(pin)
        return pin

    # ------------------------------------------------------------------
    # Rendering reads
    # ------------------------------------------------------------------

    def snapshot(self) -> tuple[TrailPoint, ...]:
        with self._lock:
            return self.trail.points()

    def waypoints(self, min_spacing_m: float = WAYPOINT_SPACING_M) -> list[TrailPoint]:
        return list(select_waypoints(self.snapshot(), min_spacing_m))

    def corridor(
        self,
        min_spacing_m: float = WAYPOINT_SPACING_M,
        standoff_m: float = CORRIDOR_STANDOFF_M,
        offset: Optional[OffsetFn] = None,
    ) -> list[CorridorSegment]:
        return project_waypoints(self.waypoints(min_spacing_m), standoff_m, offset)

    def overlays(
        self,
        min_spacing_m: float = WAYPOINT_SPACING_M,
        standoff_m: float = CORRIDOR_STANDOFF_M,
        offset: Optional[OffsetFn] = None,
    ) -> list[CorridorOverlay]:
        return [overlay_for(s) for s in self.corridor(min_spacing_m, standoff_m, offset)]

    def pins(self, min_spacing_m: float = WAYPOINT_SPACING_M) -> list[WaypointPin]:
        return [WaypointPin(p, severity_for(p.slope_grade)) for p in self.waypoints(min_spacing_m)]

    def summary(self, min_spacing_m: float = WAYPOINT_SPACING_M) -> TrailSummary:
        points = self.snapshot()
        waypoint_count = sum(1 for _ in select_waypoints(points, min_spacing_m))

        valid = [p for p in points if not p.sensor_fault]
        slopes = np.array([p.slope_grade for p in valid], dtype=np.float64)
        cross = np.array([p.cross_slope_grade for p in valid], dtype=np.float64)
        lat = np.array([p.latitude for p in points], dtype=np.float64)
        lon = np.array([p.longitude for p in points], dtype=np.float64)

        return TrailSummary(
            id=self.id,
            name=self.name,
            is_tracking=self.is_tracking,
            point_count=len(points),
            waypoint_count=waypoint_count,
            distance_m=path_length(lat, lon),
            duration_s=float(points[-1].timestamp - points[0].timestamp) if len(points) > 1 else 0.0,
            max_slope=float(np.max(np.abs(slopes))) if len(slopes) else None,
            max_cross_slope=float(np.max(np.abs(cross))) if len(cross) else None,
            mean_slope=float(np.mean(slopes)) if len(slopes) else None,
            mean_cross_slope=float(np.mean(cross)) if len(cross) else None,
            fault_count=len(points) - len(valid),
            started_at=points[0].recorded_at.isoformat() if points else None,
        )

    # ------------------------------------------------------------------
    # Private helpers (caller holds the lock)
    # ------------------------------------------------------------------

    def _record_locked(self, position: Coordinate, timestamp: float) -> Optional[TrailPoint]:
        if not self.trail.is_tracking:
            logger.debug(f"Session {self.id} not tracking; location ignored")
            return None

        if self.position_filter is not None:
            filtered = self.position_filter.update(position, timestamp)
            if filtered is None:
                logger.debug(f"Session {self.id} dropped fix at {timestamp}")
                return None
            position = filtered

        return self.trail.append(
            position,
            timestamp,
            self.orientation.pitch_grade,
            self.orientation.roll_grade,
        )

    def _drop_pin_locked(self) -> Optional[TrailPoint]:
        last = self.trail.last
        if last is None or not self.trail.is_tracking:
            return None
        return self.trail.append(
            last.position,
            last.timestamp,
            self.orientation.pitch_grade,
            self.orientation.roll_grade,
        )

    def _notify(self, point: Optional[TrailPoint]) -> None:
        if point is not None and self.on_point is not None:
            self.on_point(point)
