"""
Tests for trail CSV export and import.
"""

from pathlib import Path

import pytest
from numpy.testing import assert_allclose

from trailsurvey.errors import InvalidCoordinate
from trailsurvey.models.trail import Coordinate, TrailPoint
from trailsurvey.services.trail_csv import (
    CSV_HEADER,
    TrailCsvParser,
    read_trail_csv,
    trail_to_csv,
    write_trail_csv,
)


@pytest.fixture
def points():
    return [
        TrailPoint(Coordinate(40.0, -105.0), 1700000000.25, 1.23456789, -0.5),
        TrailPoint(Coordinate(40.0001, -105.0002), 1700000001.5, 4.0, 2.125),
        TrailPoint(Coordinate(40.0002, -105.0004), 1700000003.0, 350.0, 0.0, sensor_fault=True),
    ]


class TestExport:
    """Tests for CSV serialization."""

    def test_header(self, points):
        text = trail_to_csv(points)
        assert text.splitlines()[0] == "Timestamp, Latitude, Longitude, Slope, Cross Slope"
        assert CSV_HEADER == "Timestamp, Latitude, Longitude, Slope, Cross Slope"

    def test_one_row_per_point(self, points):
        lines = trail_to_csv(points).splitlines()
        assert len(lines) == 4

    def test_empty_trail(self):
        assert trail_to_csv([]) == CSV_HEADER + "\n"

    def test_values_not_rounded(self, points):
        """Slopes are written at full precision."""
        row = trail_to_csv(points).splitlines()[1].split(", ")
        assert row[0] == "2023-11-14T22:13:20.250000+00:00"
        assert row[1] == "40.0"
        assert row[2] == "-105.0"
        assert row[3] == "1.23456789"
        assert row[4] == "-0.5"

    def test_write_creates_folders(self, points, tmp_path):
        target = tmp_path / "exports" / "nested" / "trail.csv"
        result = write_trail_csv(points, target)
        assert result == target
        assert target.read_text(encoding="utf-8") == trail_to_csv(points)


class TestImport:
    """Tests for TrailCsvParser."""

    def test_round_trip(self, points):
        """Exported text parses back to the same values."""
        parsed = read_trail_csv(trail_to_csv(points))

        assert len(parsed) == len(points)
        for original, loaded in zip(points, parsed):
            assert_allclose(loaded.timestamp, original.timestamp, atol=1e-6)
            assert_allclose(
                [loaded.latitude, loaded.longitude, loaded.slope_grade, loaded.cross_slope_grade],
                [original.latitude, original.longitude, original.slope_grade, original.cross_slope_grade],
                rtol=1e-12,
            )
            assert loaded.sensor_fault == original.sensor_fault

    def test_read_from_path(self, points, tmp_path):
        path = write_trail_csv(points, tmp_path / "trail.csv")
        parsed = read_trail_csv(Path(path))
        assert len(parsed) == 3

    def test_numeric_timestamps(self):
        text = "timestamp,lat,lon,slope,cross_slope\n1000.5,40.0,-105.0,1.0,0.5\n1001,40.1,-105.0,2.0,0.0\n"
        parsed = TrailCsvParser().parse(text)
        assert [p.timestamp for p in parsed] == [1000.5, 1001.0]
        assert_allclose(parsed[1].latitude, 40.1)

    def test_device_date_format(self):
        """Dates written as 'yyyy-MM-dd HH:mm:ss +0000' are accepted."""
        text = (
            "Timestamp, Latitude, Longitude, Slope, Cross Slope\n"
            "2024-03-01 17:05:09 +0000, 40.0, -105.0, 1.5, 0.25\n"
        )
        [point] = read_trail_csv(text)
        assert point.timestamp == 1709312709.0
        assert point.slope_grade == 1.5

    def test_missing_column(self):
        text = "Timestamp, Latitude, Longitude, Slope\n1000, 40.0, -105.0, 1.0\n"
        with pytest.raises(ValueError, match="cross_slope"):
            read_trail_csv(text)

    def test_empty_input(self):
        assert read_trail_csv("") == []
        assert read_trail_csv(CSV_HEADER + "\n") == []

    def test_invalid_coordinate(self):
        text = CSV_HEADER + "\n1000, 95.0, -105.0, 1.0, 0.0\n"
        with pytest.raises(InvalidCoordinate):
            read_trail_csv(text)

    def test_fault_limit_applied(self):
        text = CSV_HEADER + "\n1000, 40.0, -105.0, 150.0, 0.0\n"
        [point] = TrailCsvParser(fault_limit=100.0).parse(text)
        assert point.sensor_fault is True
