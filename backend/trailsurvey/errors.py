"""
Domain errors for trail survey ingestion.

Everything here is raised synchronously back to the caller; nothing is retried.
"""


class TrailSurveyError(Exception):
    """Base class for trail survey errors."""


class OutOfOrderSample(TrailSurveyError):
    """Sample timestamp is earlier than the last point on the trail."""

    def __init__(self, timestamp: float, last_timestamp: float):
        self.timestamp = timestamp
        self.last_timestamp = last_timestamp
        super().__init__(
            f"Sample at {timestamp} is earlier than last trail point at {last_timestamp}"
        )


class InvalidCoordinate(TrailSurveyError, ValueError):
    """Latitude/longitude outside the valid range."""

    def __init__(self, latitude: float, longitude: float):
        self.latitude = latitude
        self.longitude = longitude
        super().__init__(f"Invalid coordinate: lat={latitude}, lon={longitude}")


class SensorFault(TrailSurveyError):
    """Derived grade is beyond any physically meaningful slope."""

    def __init__(self, slope_grade: float, cross_slope_grade: float, limit: float):
        self.slope_grade = slope_grade
        self.cross_slope_grade = cross_slope_grade
        self.limit = limit
        super().__init__(
            f"Grade exceeds {limit}%: slope={slope_grade}, cross_slope={cross_slope_grade}"
        )


class TrailNotTracking(TrailSurveyError):
    """Append attempted while tracking is off."""


class SessionNotFound(TrailSurveyError):
    """No session with the requested id."""
