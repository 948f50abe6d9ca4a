"""
API routes for trail tracking sessions.
"""

import math
from typing import Optional

from fastapi import APIRouter, HTTPException, Query, Request
from fastapi.responses import PlainTextResponse

from trailsurvey.api.schemas import (
    CorridorLineResponse,
    CorridorResponse,
    CorridorSegmentResponse,
    CreateSessionRequest,
    LocationRequest,
    OrientationRequest,
    OrientationResponse,
    RecordResponse,
    SampleRequest,
    SessionSummaryResponse,
    StopSessionResponse,
    TrailPointResponse,
    WaypointResponse,
)
from trailsurvey.errors import (
    InvalidCoordinate,
    OutOfOrderSample,
    SensorFault,
    SessionNotFound,
    TrailNotTracking,
    TrailSurveyError,
)
from trailsurvey.models.sample import Sample
from trailsurvey.models.trail import Coordinate, TrailPoint, TrailSummary
from trailsurvey.services.corridor import CORRIDOR_STANDOFF_M
from trailsurvey.services.repository import get_repository
from trailsurvey.services.session import CorridorOverlay, TrackingSession
from trailsurvey.services.trail import WAYPOINT_SPACING_M
from trailsurvey.services.trail_csv import trail_to_csv


router = APIRouter(prefix="/sessions", tags=["sessions"])


def _nan_to_none(value: Optional[float]) -> Optional[float]:
    """Convert NaN to None for JSON serialization."""
    if value is None or math.isnan(value):
        return None
    return value


def _get_session(session_id: str) -> TrackingSession:
    try:
        return get_repository().get_session(session_id)
    except SessionNotFound:
        raise HTTPException(status_code=404, detail=f"Session not found: {session_id}")


def _raise_ingest_error(error: TrailSurveyError) -> None:
    """Translate a rejected sample into an HTTP error."""
    if isinstance(error, (OutOfOrderSample, TrailNotTracking)):
        raise HTTPException(status_code=409, detail=str(error))
    if isinstance(error, (InvalidCoordinate, SensorFault)):
        raise HTTPException(status_code=422, detail=str(error))
    raise HTTPException(status_code=400, detail=str(error))


def _to_coordinate(schema) -> Coordinate:
    return Coordinate(
        latitude=schema.latitude,
        longitude=schema.longitude,
        altitude=schema.altitude,
        accuracy=schema.accuracy,
    )


def _build_point_response(point: TrailPoint) -> TrailPointResponse:
    return TrailPointResponse(
        id=point.id,
        timestamp=point.timestamp,
        latitude=point.latitude,
        longitude=point.longitude,
        altitude=point.position.altitude,
        slope=point.slope_grade,
        cross_slope=point.cross_slope_grade,
        sensor_fault=point.sensor_fault,
    )


def _build_summary_response(summary: TrailSummary) -> SessionSummaryResponse:
    return SessionSummaryResponse(
        id=summary.id,
        name=summary.name,
        is_tracking=summary.is_tracking,
        point_count=summary.point_count,
        waypoint_count=summary.waypoint_count,
        distance_m=summary.distance_m,
        duration_s=summary.duration_s,
        max_slope=_nan_to_none(summary.max_slope),
        max_cross_slope=_nan_to_none(summary.max_cross_slope),
        mean_slope=_nan_to_none(summary.mean_slope),
        mean_cross_slope=_nan_to_none(summary.mean_cross_slope),
        fault_count=summary.fault_count,
        started_at=summary.started_at,
    )


def _build_segment_response(overlay: CorridorOverlay) -> CorridorSegmentResponse:
    segment = overlay.segment
    return CorridorSegmentResponse(
        left=CorridorLineResponse(
            kind=segment.left_kind.value,
            value=segment.value_for(segment.left_kind),
            color=overlay.left_color.to_hex(),
            coordinates=[(c.latitude, c.longitude) for c in segment.left_line],
        ),
        right=CorridorLineResponse(
            kind=segment.right_kind.value,
            value=segment.value_for(segment.right_kind),
            color=overlay.right_color.to_hex(),
            coordinates=[(c.latitude, c.longitude) for c in segment.right_line],
        ),
        sensor_fault=segment.sensor_fault,
    )


# ============================================================================
# Session lifecycle
# ============================================================================

@router.post("", response_model=SessionSummaryResponse, status_code=201)
async def create_session(request: CreateSessionRequest):
    """Open a new (not yet tracking) session."""
    session = get_repository().create_session(name=request.name, alpha=request.alpha)
    return _build_summary_response(session.summary())


@router.get("", response_model=list[SessionSummaryResponse])
async def list_sessions():
    """List all sessions, newest first."""
    return [_build_summary_response(s) for s in get_repository().list_sessions()]


@router.post("/import", response_model=SessionSummaryResponse, status_code=201)
async def import_session(request: Request, name: Optional[str] = Query(None)):
    """
    Create a session from an exported trail CSV sent as the request body.
    """
    body = (await request.body()).decode("utf-8-sig")
    try:
        session = get_repository().import_trail(body, name=name)
    except TrailSurveyError as e:
        _raise_ingest_error(e)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _build_summary_response(session.summary())


@router.get("/{session_id}", response_model=SessionSummaryResponse)
async def get_session(session_id: str):
    return _build_summary_response(_get_session(session_id).summary())


@router.delete("/{session_id}", status_code=204)
async def delete_session(session_id: str):
    try:
        get_repository().delete_session(session_id)
    except SessionNotFound:
        raise HTTPException(status_code=404, detail=f"Session not found: {session_id}")


@router.post("/{session_id}/start", response_model=SessionSummaryResponse)
async def start_tracking(session_id: str):
    """Start tracking. Pins the last known position if the trail is not empty."""
    session = _get_session(session_id)
    session.start()
    return _build_summary_response(session.summary())


@router.post("/{session_id}/stop", response_model=StopSessionResponse)
async def stop_tracking(session_id: str):
    """
    Stop tracking and write the trail CSV to the export folder (if configured).
    """
    session = _get_session(session_id)
    _, export_path = get_repository().stop_session(session_id)
    return StopSessionResponse(
        summary=_build_summary_response(session.summary()),
        export_path=str(export_path) if export_path else None,
    )


@router.post("/{session_id}/reset", response_model=SessionSummaryResponse)
async def reset_session(session_id: str):
    """Clear the trail."""
    session = _get_session(session_id)
    session.reset()
    return _build_summary_response(session.summary())


# ============================================================================
# Ingestion
# ============================================================================

@router.post("/{session_id}/orientation", response_model=OrientationResponse)
async def push_orientation(session_id: str, request: OrientationRequest):
    """Feed one raw attitude reading through the orientation filter."""
    session = _get_session(session_id)
    pitch, roll = session.update_orientation(request.pitch, request.roll, request.orientation)
    return OrientationResponse(
        pitch=pitch,
        roll=roll,
        pitch_grade=session.orientation.pitch_grade,
        roll_grade=session.orientation.roll_grade,
    )


@router.post("/{session_id}/location", response_model=RecordResponse)
async def push_location(session_id: str, request: LocationRequest):
    """Record a GPS fix with the current filtered grades."""
    session = _get_session(session_id)
    try:
        point = session.record_location(_to_coordinate(request.position), request.timestamp)
    except TrailSurveyError as e:
        _raise_ingest_error(e)
    if point is None:
        return RecordResponse(recorded=False)
    return RecordResponse(recorded=True, point=_build_point_response(point))


@router.post("/{session_id}/samples", response_model=RecordResponse)
async def push_sample(session_id: str, request: SampleRequest):
    """Apply a combined orientation + location sample."""
    session = _get_session(session_id)
    sample = Sample(
        timestamp=request.timestamp,
        position=_to_coordinate(request.position),
        raw_pitch_deg=request.pitch,
        raw_roll_deg=request.roll,
        orientation=request.orientation,
    )
    try:
        point = session.ingest(sample)
    except TrailSurveyError as e:
        _raise_ingest_error(e)
    if point is None:
        return RecordResponse(recorded=False)
    return RecordResponse(recorded=True, point=_build_point_response(point))


@router.post("/{session_id}/calibrate", response_model=OrientationResponse)
async def calibrate(session_id: str):
    """Set the zero reference to the current smoothed attitude."""
    session = _get_session(session_id)
    session.calibrate()
    return OrientationResponse(
        pitch=session.orientation.pitch,
        roll=session.orientation.roll,
        pitch_grade=session.orientation.pitch_grade,
        roll_grade=session.orientation.roll_grade,
    )


@router.post("/{session_id}/pins", response_model=RecordResponse)
async def drop_pin(session_id: str):
    """Re-record the last position with the current grades."""
    session = _get_session(session_id)
    try:
        point = session.drop_pin()
    except TrailSurveyError as e:
        _raise_ingest_error(e)
    if point is None:
        return RecordResponse(recorded=False)
    return RecordResponse(recorded=True, point=_build_point_response(point))


# ============================================================================
# Rendering reads
# ============================================================================

@router.get("/{session_id}/points", response_model=list[TrailPointResponse])
async def get_points(session_id: str):
    """Full trail in recording order."""
    session = _get_session(session_id)
    return [_build_point_response(p) for p in session.snapshot()]


@router.get("/{session_id}/waypoints", response_model=list[WaypointResponse])
async def get_waypoints(
    session_id: str,
    min_spacing: float = Query(WAYPOINT_SPACING_M, ge=0.0, description="Minimum waypoint spacing in meters"),
):
    """Waypoints with categorical severity colors."""
    session = _get_session(session_id)
    return [
        WaypointResponse(
            **_build_point_response(pin.point).model_dump(),
            color=pin.color.to_hex(),
        )
        for pin in session.pins(min_spacing)
    ]


@router.get("/{session_id}/corridor", response_model=CorridorResponse)
async def get_corridor(
    session_id: str,
    min_spacing: float = Query(WAYPOINT_SPACING_M, ge=0.0, description="Minimum waypoint spacing in meters"),
    standoff: float = Query(CORRIDOR_STANDOFF_M, ge=0.0, le=100.0, description="Corridor offset in meters"),
):
    """
    Colored corridor lines for every waypoint pair.

    Left lines carry slope, right lines carry cross slope.
    """
    session = _get_session(session_id)
    overlays = session.overlays(min_spacing, standoff)
    return CorridorResponse(
        session_id=session_id,
        min_spacing_m=min_spacing,
        standoff_m=standoff,
        segments=[_build_segment_response(o) for o in overlays],
    )


@router.get("/{session_id}/export.csv", response_class=PlainTextResponse)
async def export_csv(session_id: str):
    """Trail as CSV (Timestamp, Latitude, Longitude, Slope, Cross Slope)."""
    session = _get_session(session_id)
    return PlainTextResponse(
        trail_to_csv(session.snapshot()),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{session.name}.csv"'},
    )
