"""
Trail data model.

All slope values are percent grade (100 * tan(angle from horizontal)).
Coordinates are WGS84 degrees; distances are meters.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional


class QuantityKind(Enum):
    """Physical quantity a corridor line visualizes."""

    SLOPE = "slope"
    CROSS_SLOPE = "cross_slope"


@dataclass(frozen=True)
class Coordinate:
    """Geographic position."""

    latitude: float
    longitude: float
    altitude: Optional[float] = None
    accuracy: Optional[float] = None  # horizontal accuracy, meters


@dataclass(frozen=True)
class TrailPoint:
    """A single recorded trail sample. Immutable once created."""

    position: Coordinate
    timestamp: float  # seconds since epoch
    slope_grade: float
    cross_slope_grade: float
    sensor_fault: bool = False
    id: str = field(default_factory=lambda: uuid.uuid4().hex)

    @property
    def latitude(self) -> float:
        return self.position.latitude

    @property
    def longitude(self) -> float:
        return self.position.longitude

    @property
    def recorded_at(self) -> datetime:
        return datetime.fromtimestamp(self.timestamp, tz=timezone.utc)


@dataclass(frozen=True)
class CorridorSegment:
    """
    Left/right offset lines flanking one waypoint-to-waypoint stretch.

    Values are those of the trailing waypoint of the pair. The left line
    shows slope and the right line shows cross slope.
    """

    left_line: tuple[Coordinate, Coordinate]
    right_line: tuple[Coordinate, Coordinate]
    slope_value: float
    cross_slope_value: float
    sensor_fault: bool = False
    left_kind: QuantityKind = QuantityKind.SLOPE
    right_kind: QuantityKind = QuantityKind.CROSS_SLOPE

    def value_for(self, kind: QuantityKind) -> float:
        if kind is QuantityKind.SLOPE:
            return self.slope_value
        return self.cross_slope_value


@dataclass
class TrailSummary:
    """Lightweight summary of a tracking session for listing."""

    id: str
    name: str
    is_tracking: bool
    point_count: int
    waypoint_count: int
    distance_m: float
    duration_s: float
    max_slope: Optional[float]
    max_cross_slope: Optional[float]
    mean_slope: Optional[float]
    mean_cross_slope: Optional[float]
    fault_count: int
    started_at: Optional[str]
