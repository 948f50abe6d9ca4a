"""
API schemas (Pydantic models) for request/response validation.
"""

from typing import Optional

from pydantic import BaseModel, Field

from trailsurvey.models.sample import DeviceOrientation


# ============================================================================
# Session Schemas
# ============================================================================

class CreateSessionRequest(BaseModel):
    """Request to open a new tracking session."""
    name: Optional[str] = None
    alpha: float = Field(default=0.1, gt=0.0, le=1.0)


class SessionSummaryResponse(BaseModel):
    """Summary of a tracking session."""
    id: str
    name: str
    is_tracking: bool
    point_count: int
    waypoint_count: int
    distance_m: float
    duration_s: float
    max_slope: Optional[float] = None
    max_cross_slope: Optional[float] = None
    mean_slope: Optional[float] = None
    mean_cross_slope: Optional[float] = None
    fault_count: int
    started_at: Optional[str] = None


class StopSessionResponse(BaseModel):
    """Result of stopping a session."""
    summary: SessionSummaryResponse
    export_path: Optional[str] = None


# ============================================================================
# Ingestion Schemas
# ============================================================================

class CoordinateSchema(BaseModel):
    """WGS84 position."""
    latitude: float = Field(ge=-90.0, le=90.0)
    longitude: float = Field(ge=-180.0, le=180.0)
    altitude: Optional[float] = None
    accuracy: Optional[float] = Field(default=None, ge=0.0)


class OrientationRequest(BaseModel):
    """Raw device attitude."""
    pitch: float  # degrees
    roll: float   # degrees
    orientation: DeviceOrientation = DeviceOrientation.PORTRAIT


class OrientationResponse(BaseModel):
    """Filtered attitude relative to the baseline."""
    pitch: float
    roll: float
    pitch_grade: float
    roll_grade: float


class LocationRequest(BaseModel):
    """GPS fix."""
    timestamp: float  # seconds since epoch
    position: CoordinateSchema


class SampleRequest(BaseModel):
    """Combined orientation + location sample."""
    timestamp: float
    position: CoordinateSchema
    pitch: float
    roll: float
    orientation: DeviceOrientation = DeviceOrientation.PORTRAIT


class TrailPointResponse(BaseModel):
    """Single recorded trail point."""
    id: str
    timestamp: float
    latitude: float
    longitude: float
    altitude: Optional[float] = None
    slope: float
    cross_slope: float
    sensor_fault: bool


class RecordResponse(BaseModel):
    """Outcome of a location/sample push."""
    recorded: bool
    point: Optional[TrailPointResponse] = None


# ============================================================================
# Rendering Schemas
# ============================================================================

class WaypointResponse(TrailPointResponse):
    """Waypoint with its categorical pin color."""
    color: str  # #RRGGBBAA


class CorridorLineResponse(BaseModel):
    """One offset line of a corridor segment."""
    kind: str
    value: float
    color: str  # #RRGGBBAA
    coordinates: list[tuple[float, float]]  # (lat, lon)


class CorridorSegmentResponse(BaseModel):
    """Left/right corridor lines for one waypoint pair."""
    left: CorridorLineResponse
    right: CorridorLineResponse
    sensor_fault: bool


class CorridorResponse(BaseModel):
    """All corridor segments of a session."""
    session_id: str
    min_spacing_m: float
    standoff_m: float
    segments: list[CorridorSegmentResponse]

