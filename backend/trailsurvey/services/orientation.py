"""
Orientation filter for raw device attitude.

Remaps pitch/roll to the device's physical orientation, applies a single-pole
exponential moving average, and reports angles relative to a user-set zero
reference. Grades are 100 * tan(angle).
"""

from __future__ import annotations

import math
import os

from trailsurvey.models.sample import DeviceOrientation


DEFAULT_ALPHA = float(os.getenv("TRAIL_SMOOTHING_ALPHA", "0.1"))
SENSOR_FAULT_GRADE = float(os.getenv("TRAIL_SENSOR_FAULT_GRADE", "200.0"))  # % grade


def grade_to_percent(angle_deg: float) -> float:
    """Convert an angle from horizontal (degrees) to percent grade."""
    return math.tan(math.radians(angle_deg)) * 100.0


def is_sensor_fault(grade: float, limit: float = SENSOR_FAULT_GRADE) -> bool:
    """True when a grade is not a plausible physical slope."""
    return not math.isfinite(grade) or abs(grade) > limit


def remap_axes(
    pitch: float,
    roll: float,
    orientation: DeviceOrientation,
) -> tuple[float, float]:
    """
    Rotate raw attitude into the frame of the held device.

    Landscape orientations swap the axes; upside-down portrait flips both.
    """
    if orientation is DeviceOrientation.LANDSCAPE_LEFT:
        pitch, roll = roll, pitch
        roll = -roll
    elif orientation is DeviceOrientation.LANDSCAPE_RIGHT:
        pitch, roll = roll, pitch
        pitch = -pitch
    elif orientation is DeviceOrientation.PORTRAIT_UPSIDE_DOWN:
        pitch = -pitch
        roll = -roll
    return pitch, roll


class OrientationFilter:
    """
    Exponential smoothing of pitch/roll with baseline calibration.

    Updates must arrive in sample order; the smoothing state is
    order-dependent. The filter itself does no locking.

    Args:
        alpha: Smoothing coefficient in (0, 1]. 1 disables smoothing.
    """

    def __init__(self, alpha: float = DEFAULT_ALPHA) -> None:
        if not 0.0 < alpha <= 1.0:
            raise ValueError("alpha must be in (0, 1]")
        self.alpha = alpha
        self.smoothed_pitch = 0.0
        self.smoothed_roll = 0.0
        self.baseline_pitch = 0.0
        self.baseline_roll = 0.0

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def update(
        self,
        raw_pitch_deg: float,
        raw_roll_deg: float,
        orientation: DeviceOrientation = DeviceOrientation.PORTRAIT,
    ) -> tuple[float, float]:
        """
        Feed one raw attitude reading.

        Args:
            raw_pitch_deg: Device pitch in degrees
            raw_roll_deg: Device roll in degrees
            orientation: Physical orientation of the device

        Returns:
            (pitch, roll) in degrees, relative to the baseline
        """
        new_pitch, new_roll = remap_axes(raw_pitch_deg, raw_roll_deg, orientation)

        self.smoothed_pitch = (1 - self.alpha) * self.smoothed_pitch + self.alpha * new_pitch
        self.smoothed_roll = (1 - self.alpha) * self.smoothed_roll + self.alpha * new_roll

        return self.pitch, self.roll

    def set_baseline(self) -> None:
        """Zero-reference all later readings to the current smoothed attitude."""
        self.baseline_pitch = self.smoothed_pitch
        self.baseline_roll = self.smoothed_roll

    @property
    def pitch(self) -> float:
        return self.smoothed_pitch - self.baseline_pitch

    @property
    def roll(self) -> float:
        return self.smoothed_roll - self.baseline_roll

    @property
    def pitch_grade(self) -> float:
        """Longitudinal slope, % grade."""
        return grade_to_percent(self.pitch)

    @property
    def roll_grade(self) -> float:
        """Cross slope, % grade."""
        return grade_to_percent(self.roll)
