"""
Tests for API endpoints.
"""

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from trailsurvey.main import app
from trailsurvey.services.repository import init_repository
from trailsurvey.services.trail_csv import CSV_HEADER


@pytest.fixture
def export_folder(tmp_path):
    return tmp_path / "trails"


@pytest.fixture
def client(export_folder):
    """Create test client with a fresh repository."""
    init_repository(export_folder)
    return TestClient(app)


@pytest.fixture
def session_id(client):
    """A session that is already tracking."""
    response = client.post("/sessions", json={"name": "loop", "alpha": 1.0})
    sid = response.json()["id"]
    client.post(f"/sessions/{sid}/start")
    return sid


def _sample(timestamp, lat, lon=-105.0, pitch=0.0, roll=0.0, orientation="portrait"):
    return {
        "timestamp": timestamp,
        "position": {"latitude": lat, "longitude": lon},
        "pitch": pitch,
        "roll": roll,
        "orientation": orientation,
    }


class TestHealthEndpoints:
    """Tests for health check endpoints."""

    def test_root_endpoint(self, client):
        """Root endpoint returns basic info."""
        response = client.get("/")
        assert response.status_code == 200
        data = response.json()
        assert data["name"] == "Trail Survey"
        assert data["status"] == "running"

    def test_health_endpoint(self, client, export_folder):
        """Health endpoint reports the repository state."""
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["export_folder"] == str(export_folder)
        assert data["session_count"] == 0


class TestSessionEndpoints:
    """Tests for session lifecycle endpoints."""

    def test_create_and_list(self, client):
        response = client.post("/sessions", json={"name": "north loop"})
        assert response.status_code == 201
        created = response.json()
        assert created["name"] == "north loop"
        assert created["is_tracking"] is False
        assert created["point_count"] == 0
        assert created["max_slope"] is None

        response = client.get("/sessions")
        assert response.status_code == 200
        assert [s["id"] for s in response.json()] == [created["id"]]

    def test_invalid_alpha(self, client):
        response = client.post("/sessions", json={"alpha": 0.0})
        assert response.status_code == 422

    def test_unknown_session(self, client):
        assert client.get("/sessions/nope").status_code == 404
        assert client.post("/sessions/nope/start").status_code == 404
        assert client.get("/sessions/nope/corridor").status_code == 404
        assert client.delete("/sessions/nope").status_code == 404

    def test_delete(self, client, session_id):
        assert client.delete(f"/sessions/{session_id}").status_code == 204
        assert client.get(f"/sessions/{session_id}").status_code == 404

    def test_reset(self, client, session_id):
        client.post(f"/sessions/{session_id}/samples", json=_sample(1000.0, 40.0))
        response = client.post(f"/sessions/{session_id}/reset")
        assert response.status_code == 200
        assert response.json()["point_count"] == 0


class TestTrackingFlow:
    """End-to-end survey flow."""

    def test_full_flow(self, client, session_id, export_folder):
        """Two samples ~10 m apart give one corridor segment and a CSV on stop."""
        r1 = client.post(f"/sessions/{session_id}/samples", json=_sample(1000.0, 40.0, pitch=1.0))
        r2 = client.post(f"/sessions/{session_id}/samples", json=_sample(1005.0, 40.00009, pitch=2.0, roll=0.5))
        assert r1.status_code == 200
        assert r2.status_code == 200
        assert r2.json()["recorded"] is True
        assert r2.json()["point"]["sensor_fault"] is False

        response = client.get(f"/sessions/{session_id}/waypoints")
        assert response.status_code == 200
        waypoints = response.json()
        assert len(waypoints) == 2
        assert waypoints[0]["color"] == "#00ff00ff"

        response = client.get(f"/sessions/{session_id}/corridor")
        assert response.status_code == 200
        corridor = response.json()
        assert corridor["standoff_m"] == 5.0
        assert len(corridor["segments"]) == 1
        segment = corridor["segments"][0]
        assert segment["left"]["kind"] == "slope"
        assert segment["right"]["kind"] == "cross_slope"
        assert segment["left"]["value"] == r2.json()["point"]["slope"]
        assert len(segment["left"]["coordinates"]) == 2
        # Heading north: left line is west of the trail
        assert segment["left"]["coordinates"][0][1] < -105.0
        assert segment["right"]["coordinates"][0][1] > -105.0

        response = client.get(f"/sessions/{session_id}/export.csv")
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        lines = response.text.splitlines()
        assert lines[0] == CSV_HEADER
        assert len(lines) == 3

        response = client.post(f"/sessions/{session_id}/stop")
        assert response.status_code == 200
        data = response.json()
        assert data["summary"]["is_tracking"] is False
        # Stop pins the last position
        assert data["summary"]["point_count"] == 3
        export_path = Path(data["export_path"])
        assert export_path.parent == export_folder
        assert export_path.read_text(encoding="utf-8").splitlines()[0] == CSV_HEADER

    def test_out_of_order_conflict(self, client, session_id):
        client.post(f"/sessions/{session_id}/samples", json=_sample(1000.0, 40.0))
        response = client.post(f"/sessions/{session_id}/samples", json=_sample(999.0, 40.0001))
        assert response.status_code == 409
        assert client.get(f"/sessions/{session_id}/points").json()[0]["timestamp"] == 1000.0
        assert len(client.get(f"/sessions/{session_id}/points").json()) == 1

    def test_invalid_latitude(self, client, session_id):
        response = client.post(f"/sessions/{session_id}/samples", json=_sample(1000.0, 95.0))
        assert response.status_code == 422

    def test_location_when_not_tracking(self, client):
        sid = client.post("/sessions", json={}).json()["id"]
        response = client.post(
            f"/sessions/{sid}/location",
            json={"timestamp": 1000.0, "position": {"latitude": 40.0, "longitude": -105.0}},
        )
        assert response.status_code == 200
        assert response.json() == {"recorded": False, "point": None}

    def test_orientation_and_calibrate(self, client, session_id):
        response = client.post(
            f"/sessions/{session_id}/orientation",
            json={"pitch": 1.0, "roll": 3.0, "orientation": "landscapeLeft"},
        )
        assert response.status_code == 200
        data = response.json()
        # landscapeLeft swaps axes and negates roll
        assert data["pitch"] == pytest.approx(3.0)
        assert data["roll"] == pytest.approx(-1.0)

        response = client.post(f"/sessions/{session_id}/calibrate")
        assert response.status_code == 200
        assert response.json()["pitch"] == 0.0
        assert response.json()["pitch_grade"] == 0.0

    def test_bad_orientation(self, client, session_id):
        response = client.post(
            f"/sessions/{session_id}/orientation",
            json={"pitch": 1.0, "roll": 3.0, "orientation": "sideways"},
        )
        assert response.status_code == 422

    def test_drop_pin(self, client, session_id):
        assert client.post(f"/sessions/{session_id}/pins").json()["recorded"] is False
        client.post(f"/sessions/{session_id}/samples", json=_sample(1000.0, 40.0))
        response = client.post(f"/sessions/{session_id}/pins")
        assert response.json()["recorded"] is True
        assert response.json()["point"]["latitude"] == 40.0


class TestImportEndpoint:
    """Tests for CSV import."""

    def test_import_csv(self, client):
        body = (
            CSV_HEADER + "\n"
            "2024-03-01T17:05:09.000000+00:00, 40.0, -105.0, 1.0, 0.5\n"
            "2024-03-01T17:05:14.000000+00:00, 40.00009, -105.0, 6.0, 2.5\n"
        )
        response = client.post("/sessions/import?name=imported", content=body)
        assert response.status_code == 201
        data = response.json()
        assert data["name"] == "imported"
        assert data["point_count"] == 2
        assert data["is_tracking"] is False
        assert data["duration_s"] == 5.0

        corridor = client.get(f"/sessions/{data['id']}/corridor").json()
        assert len(corridor["segments"]) == 1
        assert corridor["segments"][0]["left"]["color"] == "#ff0000ff"

    def test_import_missing_columns(self, client):
        response = client.post("/sessions/import", content="Timestamp, Latitude\n1000, 40.0\n")
        assert response.status_code == 400

    def test_import_out_of_order_registers_nothing(self, client):
        """A rejected import leaves no partial session behind."""
        body = (
            CSV_HEADER + "\n"
            "100.0, 40.0, -105.0, 1.0, 0.5\n"
            "50.0, 40.00009, -105.0, 2.0, 0.5\n"
        )
        response = client.post("/sessions/import", content=body)
        assert response.status_code == 409
        assert client.get("/sessions").json() == []


class TestExportPath:
    """Tests for where stopped sessions are written."""

    def test_name_cannot_leave_export_folder(self, client, export_folder, tmp_path):
        sid = client.post("/sessions", json={"name": "../escaped"}).json()["id"]
        client.post(f"/sessions/{sid}/start")
        client.post(
            f"/sessions/{sid}/location",
            json={"timestamp": 1000.0, "position": {"latitude": 40.0, "longitude": -105.0}},
        )

        response = client.post(f"/sessions/{sid}/stop")

        export_path = Path(response.json()["export_path"])
        assert export_path.parent == export_folder
        assert export_path.name.startswith("___escaped_")
        assert [p.name for p in tmp_path.iterdir()] == ["trails"]
