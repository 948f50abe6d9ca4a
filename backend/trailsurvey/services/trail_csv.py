"""
Trail CSV export and import.

Export format (one row per trail point, trail order):

    Timestamp, Latitude, Longitude, Slope, Cross Slope

Timestamps are ISO-8601 UTC; slopes are unrounded percent grade.
"""

import io
import logging
from pathlib import Path
from typing import Iterable, Optional, Union

import numpy as np
import pandas as pd

from trailsurvey.models.trail import Coordinate, TrailPoint
from trailsurvey.services.orientation import SENSOR_FAULT_GRADE, is_sensor_fault
from trailsurvey.utils.geodesy import validate_coordinate


logger = logging.getLogger(__name__)

CSV_COLUMNS = ["Timestamp", "Latitude", "Longitude", "Slope", "Cross Slope"]
CSV_HEADER = ", ".join(CSV_COLUMNS)

# Column name variants accepted on import
COLUMN_MAPPINGS = {
    "timestamp": ["Timestamp", "timestamp", "Time", "time"],
    "latitude": ["Latitude", "latitude", "Lat", "lat"],
    "longitude": ["Longitude", "longitude", "Lon", "lon", "Long", "long"],
    "slope": ["Slope", "slope", "Slope (%)"],
    "cross_slope": ["Cross Slope", "cross_slope", "CrossSlope", "Cross Slope (%)"],
}


def trail_to_csv(points: Iterable[TrailPoint]) -> str:
    """Serialize trail points to the export CSV text."""
    buffer = io.StringIO()
    buffer.write(CSV_HEADER + "\n")
    for point in points:
        row = [
            point.recorded_at.isoformat(timespec="microseconds"),
            str(point.latitude),
            str(point.longitude),
            str(point.slope_grade),
            str(point.cross_slope_grade),
        ]
        buffer.write(", ".join(row) + "\n")
    return buffer.getvalue()


def write_trail_csv(points: Iterable[TrailPoint], filepath: Path) -> Path:
    """Write the export CSV; parent folders are created as needed."""
    filepath.parent.mkdir(parents=True, exist_ok=True)
    filepath.write_text(trail_to_csv(points), encoding="utf-8")
    logger.info(f"Trail data saved as CSV to: {filepath}")
    return filepath


class TrailCsvParser:
    """Parser for exported trail CSV files."""

    def __init__(self, fault_limit: float = SENSOR_FAULT_GRADE) -> None:
        self.fault_limit = fault_limit

    def parse(self, source: Union[Path, str, io.StringIO]) -> list[TrailPoint]:
        """
        Parse a trail CSV into TrailPoints.

        Args:
            source: File path, CSV text, or text buffer

        Raises:
            ValueError: Missing required columns.
            InvalidCoordinate: A row has an out-of-range position.
        """
        df = self._read_csv(source)
        if df.empty:
            return []
        col_map = self._map_columns(df.columns.tolist())

        missing = [name for name, col in col_map.items() if col is None]
        if missing:
            raise ValueError(f"Trail CSV missing columns: {', '.join(missing)}")

        timestamps = self._parse_timestamps(df[col_map["timestamp"]])
        lat = self._extract_column(df, col_map["latitude"])
        lon = self._extract_column(df, col_map["longitude"])
        slope = self._extract_column(df, col_map["slope"])
        cross = self._extract_column(df, col_map["cross_slope"])

        points: list[TrailPoint] = []
        for i in range(len(df)):
            validate_coordinate(float(lat[i]), float(lon[i]))
            slope_grade = float(slope[i])
            cross_grade = float(cross[i])
            points.append(TrailPoint(
                position=Coordinate(latitude=float(lat[i]), longitude=float(lon[i])),
                timestamp=float(timestamps[i]),
                slope_grade=slope_grade,
                cross_slope_grade=cross_grade,
                sensor_fault=(
                    is_sensor_fault(slope_grade, self.fault_limit)
                    or is_sensor_fault(cross_grade, self.fault_limit)
                ),
            ))

        logger.debug(f"Parsed {len(points)} trail points")
        return points

    def _read_csv(self, source: Union[Path, str, io.StringIO]) -> pd.DataFrame:
        if isinstance(source, str):
            source = io.StringIO(source)
        try:
            df = pd.read_csv(source, skipinitialspace=True)
        except pd.errors.EmptyDataError:
            return pd.DataFrame()
        df.columns = df.columns.str.strip()
        return df

    def _map_columns(self, columns: list[str]) -> dict[str, Optional[str]]:
        col_map: dict[str, Optional[str]] = {}
        for std_name, variants in COLUMN_MAPPINGS.items():
            col_map[std_name] = None
            for variant in variants:
                if variant in columns:
                    col_map[std_name] = variant
                    break
        return col_map

    def _parse_timestamps(self, column: pd.Series) -> np.ndarray:
        numeric = pd.to_numeric(column, errors="coerce")
        if not numeric.isna().any():
            return numeric.values.astype(np.float64)

        parsed = pd.to_datetime(column.astype(str).str.strip(), utc=True, format="mixed")
        epoch = pd.Timestamp("1970-01-01", tz="UTC")
        return ((parsed - epoch) / pd.Timedelta(seconds=1)).values.astype(np.float64)

    def _extract_column(self, df: pd.DataFrame, col: str) -> np.ndarray:
        return pd.to_numeric(df[col], errors="coerce").values.astype(np.float64)


def read_trail_csv(source: Union[Path, str, io.StringIO]) -> list[TrailPoint]:
    """Parse an exported trail CSV."""
    return TrailCsvParser().parse(source)
