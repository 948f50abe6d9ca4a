"""
Geodesic utilities for trail geometry.

Bearings are radians clockwise from north. Corridor offsets use a flat-earth
small-distance approximation by default; an exact WGS84 forward geodesic is
available for long offsets.
"""

import math

import numpy as np
from numpy.typing import NDArray
from pyproj import Geod

from trailsurvey.errors import InvalidCoordinate
from trailsurvey.models.trail import Coordinate

EARTH_RADIUS_M = 6371000.0  # Earth's mean radius in meters

_WGS84 = Geod(ellps="WGS84")


def to_radians(degrees: float) -> float:
    return degrees * math.pi / 180.0


def to_degrees(radians: float) -> float:
    return radians * 180.0 / math.pi


def validate_coordinate(latitude: float, longitude: float) -> None:
    """
    Reject coordinates outside the valid WGS84 range.

    Raises:
        InvalidCoordinate: lat not in [-90, 90], lon not in [-180, 180],
            or either value is NaN/inf.
    """
    if not (math.isfinite(latitude) and math.isfinite(longitude)):
        raise InvalidCoordinate(latitude, longitude)
    if not -90.0 <= latitude <= 90.0 or not -180.0 <= longitude <= 180.0:
        raise InvalidCoordinate(latitude, longitude)


def bearing(origin: Coordinate, target: Coordinate) -> float:
    """
    Initial great-circle bearing from origin to target.

    Args:
        origin: Start point
        target: End point

    Returns:
        Bearing in radians, in (-pi, pi]. Identical points give 0.
    """
    lat1 = to_radians(origin.latitude)
    lat2 = to_radians(target.latitude)
    d_lon = to_radians(target.longitude - origin.longitude)

    y = math.sin(d_lon) * math.cos(lat2)
    x = math.cos(lat1) * math.sin(lat2) - math.sin(lat1) * math.cos(lat2) * math.cos(d_lon)

    if y == 0.0 and x == 0.0:
        return 0.0
    result = math.atan2(y, x)
    # atan2 returns -pi for due south with a negative-zero y
    if result == -math.pi:
        return math.pi
    return result


def destination(origin: Coordinate, distance_m: float, bearing_rad: float) -> Coordinate:
    """
    Offset a coordinate by a distance along a bearing.

    Flat-earth approximation: accurate for offsets up to tens of meters,
    which covers corridor standoffs.

    Args:
        origin: Start point
        distance_m: Distance in meters
        bearing_rad: Bearing in radians, clockwise from north

    Returns:
        Offset coordinate (altitude/accuracy carried over from origin)
    """
    if distance_m == 0:
        return origin

    lat1 = to_radians(origin.latitude)
    lon1 = to_radians(origin.longitude)

    d_lat = distance_m * math.cos(bearing_rad) / EARTH_RADIUS_M
    d_lon = distance_m * math.sin(bearing_rad) / (EARTH_RADIUS_M * math.cos(lat1 + d_lat))

    return Coordinate(
        latitude=to_degrees(lat1 + d_lat),
        longitude=to_degrees(lon1 + d_lon),
        altitude=origin.altitude,
        accuracy=origin.accuracy,
    )


def geodesic_destination(origin: Coordinate, distance_m: float, bearing_rad: float) -> Coordinate:
    """
    Exact forward geodesic on the WGS84 ellipsoid.

    Drop-in replacement for destination() when offsets span long distances.
    """
    if distance_m == 0:
        return origin

    lon, lat, _ = _WGS84.fwd(
        origin.longitude,
        origin.latitude,
        to_degrees(bearing_rad),
        distance_m,
    )
    return Coordinate(
        latitude=float(lat),
        longitude=float(lon),
        altitude=origin.altitude,
        accuracy=origin.accuracy,
    )


def haversine_distance(a: Coordinate, b: Coordinate) -> float:
    """
    Calculate great-circle distance between two points.

    Returns:
        Distance in meters
    """
    lat1_rad = np.radians(a.latitude)
    lat2_rad = np.radians(b.latitude)
    dlat = np.radians(b.latitude - a.latitude)
    dlon = np.radians(b.longitude - a.longitude)

    h = np.sin(dlat / 2) ** 2 + np.cos(lat1_rad) * np.cos(lat2_rad) * np.sin(dlon / 2) ** 2
    c = 2 * np.arctan2(np.sqrt(h), np.sqrt(1 - h))

    return float(EARTH_RADIUS_M * c)


def path_length(lat: NDArray[np.float64], lon: NDArray[np.float64]) -> float:
    """
    Total along-track length of a polyline.

    Args:
        lat: Latitude array in degrees
        lon: Longitude array in degrees

    Returns:
        Sum of consecutive haversine distances in meters
    """
    if len(lat) < 2:
        return 0.0

    lat_rad = np.radians(lat)
    dlat = np.diff(lat_rad)
    dlon = np.radians(np.diff(lon))

    h = np.sin(dlat / 2) ** 2 + np.cos(lat_rad[:-1]) * np.cos(lat_rad[1:]) * np.sin(dlon / 2) ** 2
    c = 2 * np.arctan2(np.sqrt(h), np.sqrt(1 - h))

    return float(np.sum(EARTH_RADIUS_M * c))
