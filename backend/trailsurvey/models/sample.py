"""
Raw sensor sample model (device-format, unfiltered).

The mobile client pushes these before any smoothing or calibration happens.
"""

from dataclasses import dataclass
from enum import Enum

from trailsurvey.models.trail import Coordinate


class DeviceOrientation(Enum):
    """Physical orientation reported by the device alongside attitude."""

    PORTRAIT = "portrait"
    PORTRAIT_UPSIDE_DOWN = "portraitUpsideDown"
    LANDSCAPE_LEFT = "landscapeLeft"
    LANDSCAPE_RIGHT = "landscapeRight"
    FACE_UP = "faceUp"
    FACE_DOWN = "faceDown"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class Sample:
    """One combined orientation + location reading."""

    timestamp: float          # seconds since epoch
    position: Coordinate
    raw_pitch_deg: float
    raw_roll_deg: float
    orientation: DeviceOrientation = DeviceOrientation.PORTRAIT
