from __future__ import annotations

import pytest

from src.qr_attendance.qr_attendance.main import create_app


@pytest.fixture
def app(monkeypatch, container):
    monkeypatch.setenv("APP_ENV", "testing")
    return create_app(container=container)


@pytest.fixture
def client(app):
    return app.test_client()


def login(client, user_id: str) -> None:
    with client.session_transaction() as sess:
        sess["user_id"] = user_id


def open_session(client, admin, name="Robotics Workshop", duration=60):
    login(client, admin.id)
    resp = client.post("/sessions", json={"name": name, "durationMinutes": duration})
    assert resp.status_code == 201
    return resp.get_json()


def test_requires_authenticated_principal(client):
    assert client.post("/sessions", json={"name": "Lab", "durationMinutes": 10}).status_code == 401
    assert client.get("/attendance/me").status_code == 401


def test_unknown_principal_is_not_replaced_by_a_demo_user(client):
    login(client, "S9999")

    assert client.post("/attendance", json={"sessionId": "x"}).status_code == 401


def test_create_session_contract(client, admin, students):
    body = open_session(client, admin)
    assert body["name"] == "Robotics Workshop"
    assert body["isActive"] is True
    assert body["duration"] == 60

    login(client, students[0].id)
    assert client.post("/sessions", json={"name": "Lab", "durationMinutes": 10}).status_code == 403

    login(client, admin.id)
    missing = client.post("/sessions", json={"name": "Lab"})
    assert missing.status_code == 400
    assert missing.get_json()["error"] == "validation_error"


def test_active_session_endpoint(client, admin):
    assert client.get("/sessions/active").status_code == 404

    created = open_session(client, admin)
    resp = client.get("/sessions/active")

    assert resp.status_code == 200
    assert resp.get_json()["id"] == created["id"]


def test_scan_then_rescan(client, admin, students):
    open_session(client, admin)
    payload = client.get("/sessions/active/qr").get_json()["payload"]

    login(client, students[0].id)
    first = client.post("/attendance", json={"payload": payload})
    second = client.post("/attendance", json={"payload": payload})

    assert first.status_code == 201
    assert first.get_json()["duplicate"] is False
    assert first.get_json()["method"] == "qr"
    assert second.status_code == 200
    assert second.get_json()["duplicate"] is True
    assert second.get_json()["checkInTime"] == first.get_json()["checkInTime"]

    mine = client.get("/attendance/me").get_json()
    assert [r["sessionId"] for r in mine] == [first.get_json()["sessionId"]]


def test_check_in_errors(client, admin, students):
    created = open_session(client, admin)

    login(client, students[0].id)
    assert client.post("/attendance", json={}).status_code == 400
    assert client.post("/attendance", json={"payload": "garbage"}).status_code == 400
    assert client.post("/attendance", json={"sessionId": "missing"}).status_code == 404

    login(client, admin.id)
    client.post(f"/sessions/{created['id']}/expire")

    login(client, students[0].id)
    resp = client.post("/attendance", json={"sessionId": created["id"]})
    assert resp.status_code == 409
    assert resp.get_json()["error"] == "session_inactive"


def test_expired_session_answers_410(client, admin, students, sessions_repo):
    from dataclasses import replace
    from datetime import timedelta

    created = open_session(client, admin)
    s = sessions_repo.get_by_id(created["id"])
    # Age the session so it lapsed a minute ago.
    sessions_repo._by_id[s.session_id] = replace(
        s, created_at=s.created_at - timedelta(hours=2), expires_at=s.expires_at - timedelta(hours=1, minutes=1)
    )

    login(client, students[0].id)
    resp = client.post("/attendance", json={"sessionId": created["id"]})

    assert resp.status_code == 410
    assert resp.get_json()["error"] == "session_expired"
    assert sessions_repo.get_by_id(created["id"]).is_active is False


def test_expire_endpoint_reports_absentees(client, admin, students):
    created = open_session(client, admin)
    login(client, students[0].id)
    client.post("/attendance", json={"sessionId": created["id"]})
    login(client, students[1].id)
    client.post("/attendance", json={"sessionId": created["id"]})

    login(client, admin.id)
    resp = client.post(f"/sessions/{created['id']}/expire")

    assert resp.status_code == 200
    assert resp.get_json()["absenteeCount"] == 3
    assert resp.get_json()["backfillComplete"] is True
    assert client.post("/sessions/nope/expire").status_code == 404
    assert len(client.get("/attendance").get_json()) == 5


def test_manual_check_in_and_status(client, admin, students):
    created = open_session(client, admin)

    resp = client.post(f"/sessions/{created['id']}/attendance", json={"userId": students[4].id})
    assert resp.status_code == 201
    assert resp.get_json()["method"] == "manual"

    login(client, students[4].id)
    status = client.get("/attendance/active-session").get_json()
    assert status["checkedIn"] is True
    assert client.get("/attendance/me/stats").get_json() == {"total": 1, "present": 1, "absent": 0, "rate": 100}


def test_qr_image(client, admin):
    open_session(client, admin)

    resp = client.get("/sessions/active/qr.png")

    assert resp.status_code == 200
    assert resp.mimetype == "image/png"


def test_scanned_session_id_is_recorded_as_qr(client, admin, students):
    created = open_session(client, admin)

    login(client, students[0].id)
    scanned = client.post("/attendance", json={"sessionId": created["id"]})
    login(client, students[1].id)
    typed = client.post("/attendance", json={"sessionId": created["id"], "method": "code"})
    login(client, students[2].id)
    forged = client.post("/attendance", json={"sessionId": created["id"], "method": "manual"})

    assert scanned.status_code == 201
    assert scanned.get_json()["method"] == "qr"
    assert typed.get_json()["method"] == "code"
    assert forged.status_code == 400


@pytest.mark.parametrize("limit", ["-1", "0", "abc", "100000"])
def test_session_list_rejects_bad_limit(client, admin, limit):
    open_session(client, admin)

    resp = client.get(f"/sessions?limit={limit}")

    assert resp.status_code == 400
    assert resp.get_json()["error"] == "validation_error"


def test_session_list_honours_limit(client, admin):
    open_session(client, admin, name="A")
    open_session(client, admin, name="B")

    resp = client.get("/sessions?limit=1")

    assert resp.status_code == 200
    assert len(resp.get_json()) == 1
