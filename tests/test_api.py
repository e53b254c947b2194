from __future__ import annotations

import base64
import io
import uuid
from datetime import date

import pytest
from PIL import Image

from src.coach_attendance.coach_attendance.container import build_memory_container
from src.coach_attendance.coach_attendance.main import create_app


class RecordingStorage:
    def __init__(self):
        self.uploads: list[bytes] = []

    def upload(self, data: bytes) -> str:
        self.uploads.append(data)
        return f"https://cdn.example.com/photos/{len(self.uploads)}.png"


@pytest.fixture
def storage():
    return RecordingStorage()


@pytest.fixture
def app(monkeypatch, storage):
    monkeypatch.setenv("APP_ENV", "testing")
    container = build_memory_container(today=date.today(), photo_storage=storage)
    return create_app(container=container)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def logged_in(client):
    resp = client.post("/api/auth/login", json={"username": "john_doe", "password": "password123"})
    assert resp.status_code == 200
    return client


def _dashboard(client) -> dict:
    resp = client.get("/api/dashboard")
    assert resp.status_code == 200
    return resp.get_json()


def _png_data_url() -> str:
    buf = io.BytesIO()
    Image.new("RGB", (2, 2)).save(buf, format="PNG")
    return "data:image/png;base64," + base64.b64encode(buf.getvalue()).decode("ascii")


def test_protected_endpoints_require_login(client):
    assert client.get("/api/dashboard").status_code == 401
    assert client.post("/api/attendance", json={}).status_code == 401
    assert client.get("/api/attendance/export").status_code == 401


def test_login_rejects_bad_credentials(client):
    resp = client.post("/api/auth/login", json={"username": "john_doe", "password": "wrong-pass"})
    assert resp.status_code == 401

    resp = client.post("/api/auth/login", json={"username": "jo", "password": "x"})
    assert resp.status_code == 400


def test_login_me_logout(logged_in):
    assert logged_in.get("/api/auth/me").get_json()["coach"]["ageGroup"] == "U-12"

    assert logged_in.post("/api/auth/logout").get_json() == {"success": True}
    assert logged_in.get("/api/auth/me").status_code == 401


def test_dashboard_shows_todays_sessions_and_players(logged_in):
    data = _dashboard(logged_in)

    assert [s["timeSlot"] for s in data["todaySessions"]] == ["morning", "evening"]
    assert len(data["players"]) == 5
    assert data["stats"]["totalPlayers"] == 5


def test_bulk_attendance_round_trip(logged_in, storage):
    data = _dashboard(logged_in)
    session_id = data["todaySessions"][0]["id"]
    a, b, c = (p["id"] for p in data["players"][:3])

    resp = logged_in.post(
        "/api/attendance",
        json={
            "sessionId": session_id,
            "attendance": {a: "present_regular", b: "present_complimentary", c: "absent"},
            "photo": _png_data_url(),
        },
    )

    body = resp.get_json()
    assert resp.status_code == 200
    assert body["success"] is True
    assert body["recordedCount"] == 3
    assert body["errors"] == []
    assert len(storage.uploads) == 1

    records = logged_in.get(f"/api/sessions/{session_id}/attendance").get_json()["records"]
    assert {r["playerId"]: r["status"] for r in records} == {
        a: "present_regular",
        b: "present_complimentary",
        c: "absent",
    }
    assert {r["version"] for r in records} == {1}
    assert {r["photoUrl"] for r in records} == {"https://cdn.example.com/photos/1.png"}

    today = date.today()
    usage = logged_in.get(f"/api/players/{b}/complimentary?month={today.month}&year={today.year}").get_json()
    assert usage["complimentaryUsed"] == 1
    assert usage["complimentaryRemaining"] == 2


@pytest.mark.parametrize(
    "payload",
    [
        {"sessionId": "bad", "attendance": {str(uuid.uuid4()): "present_regular"}},
        {"sessionId": str(uuid.uuid4()), "attendance": {}},
        {"sessionId": str(uuid.uuid4()), "attendance": {str(uuid.uuid4()): "late"}},
        {"sessionId": str(uuid.uuid4()), "attendance": {"nope": "absent"}},
        {"sessionId": str(uuid.uuid4()), "attendance": {str(uuid.uuid4()): "absent"}, "photo": "data:text/plain,hi"},
    ],
)
def test_bulk_attendance_rejects_invalid_payloads(logged_in, payload):
    resp = logged_in.post("/api/attendance", json=payload)

    assert resp.status_code == 400
    assert resp.get_json()["error"] == "Invalid input data"


def test_bulk_attendance_unknown_session(logged_in):
    resp = logged_in.post(
        "/api/attendance",
        json={"sessionId": str(uuid.uuid4()), "attendance": {str(uuid.uuid4()): "present_regular"}},
    )

    assert resp.status_code == 400
    assert resp.get_json()["details"] == "Session not found"


def test_complimentary_endpoint_validates_month(logged_in):
    resp = logged_in.get(f"/api/players/{uuid.uuid4()}/complimentary?month=13&year=2025")
    assert resp.status_code == 400

    resp = logged_in.get(f"/api/players/{uuid.uuid4()}/complimentary?month=march")
    assert resp.status_code == 400


def test_export_csv(logged_in):
    data = _dashboard(logged_in)
    session_id = data["todaySessions"][0]["id"]
    player = data["players"][0]
    logged_in.post("/api/attendance", json={"sessionId": session_id, "attendance": {player["id"]: "present_regular"}})

    resp = logged_in.get("/api/attendance/export")

    assert resp.status_code == 200
    assert resp.mimetype == "text/csv"
    assert f"attendance-report-U-12-{date.today():%Y-%m-%d}.csv" in resp.headers["Content-Disposition"]

    lines = resp.get_data(as_text=True).splitlines()
    assert lines[0].startswith("Player Name,Age Group,Booked Sessions")
    assert lines[1].startswith(f"{player['name']},U-12,12,1,8,0,11,")
    assert "Coach: john_doe" in lines
    assert "Total Players: 5" in lines


def test_complimentary_for_unknown_player(logged_in):
    resp = logged_in.get(f"/api/players/{uuid.uuid4()}/complimentary?month=3&year=2025")

    assert resp.status_code == 404


def test_local_photos_are_served(monkeypatch, tmp_path):
    monkeypatch.setenv("APP_ENV", "testing")
    container = build_memory_container(
        today=date.today(),
        photo_config={"backend": "local", "local_directory": str(tmp_path), "local_base_url": "/photos"},
    )
    client = create_app(container=container).test_client()
    client.post("/api/auth/login", json={"username": "john_doe", "password": "password123"})
    data = _dashboard(client)
    session_id = data["todaySessions"][0]["id"]
    player = data["players"][0]["id"]

    client.post(
        "/api/attendance",
        json={"sessionId": session_id, "attendance": {player: "present_regular"}, "photo": _png_data_url()},
    )
    (record,) = client.get(f"/api/sessions/{session_id}/attendance").get_json()["records"]

    assert record["photoUrl"].startswith("/photos/photos/session-")
    resp = client.get(record["photoUrl"])
    assert resp.status_code == 200
    assert resp.data.startswith(b"\x89PNG")
