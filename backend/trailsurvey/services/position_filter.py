"""
GPS fix filter for walked trails.

Drops fixes that imply faster-than-walking movement and smooths the rest with
a moving average over the last few accepted fixes.
"""

from __future__ import annotations

import os
from collections import deque
from typing import Optional

import numpy as np

from trailsurvey.models.trail import Coordinate
from trailsurvey.utils.geodesy import haversine_distance


MAX_WALKING_SPEED = float(os.getenv("TRAIL_MAX_WALKING_SPEED", "2.5"))  # m/s
POSITION_WINDOW = int(os.getenv("TRAIL_POSITION_WINDOW", "5"))
POSITION_FILTER_ENABLED = os.getenv("TRAIL_POSITION_FILTER", "0") not in ("0", "false", "False")


class PositionFilter:
    """
    Speed-gated moving average over GPS fixes.

    Args:
        max_speed_mps: Fixes implying a higher speed from the last accepted
            fix are dropped.
        window: Number of accepted fixes to average.
    """

    def __init__(self, max_speed_mps: float = MAX_WALKING_SPEED, window: int = POSITION_WINDOW) -> None:
        if window < 1:
            raise ValueError("window must be >= 1")
        self.max_speed_mps = max_speed_mps
        self.window = window
        self._buffer: deque[Coordinate] = deque(maxlen=window)
        self._last_fix: Optional[Coordinate] = None
        self._last_time: Optional[float] = None

    def update(self, position: Coordinate, timestamp: float) -> Optional[Coordinate]:
        """
        Filter one fix.

        Returns:
            Smoothed coordinate, or None when the fix is rejected
        """
        if self._last_fix is not None and self._last_time is not None:
            dt = timestamp - self._last_time
            distance = haversine_distance(self._last_fix, position)
            if dt <= 0:
                if distance > 0:
                    return None
            elif distance / dt > self.max_speed_mps:
                return None

        self._last_fix = position
        self._last_time = timestamp
        self._buffer.append(position)

        lat = np.mean([c.latitude for c in self._buffer])
        lon = np.mean([c.longitude for c in self._buffer])
        return Coordinate(
            latitude=float(lat),
            longitude=float(lon),
            altitude=position.altitude,
            accuracy=position.accuracy,
        )

    def reset(self) -> None:
        self._buffer.clear()
        self._last_fix = None
        self._last_time = None
