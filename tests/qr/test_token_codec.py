from __future__ import annotations

import json
from datetime import datetime, timedelta

import pytest

from src.qr_attendance.qr_attendance.core.exceptions import MalformedPayload, MissingSessionId
from src.qr_attendance.qr_attendance.qr.codec import TokenCodec
from src.qr_attendance.qr_attendance.sessions.model import Session


@pytest.fixture
def session() -> Session:
    created = datetime(2026, 3, 2, 9, 0, 0)
    return Session(
        session_id="7f1c2f4e-0000-4000-8000-000000000001",
        name="Robotics Workshop",
        created_by="admin",
        created_at=created,
        expires_at=created + timedelta(minutes=60),
    )


def test_encode_carries_self_describing_fields(session):
    raw = TokenCodec().encode(session, now=datetime(2026, 3, 2, 9, 0, 5, 250000))

    assert json.loads(raw) == {
        "sessionId": session.session_id,
        "name": "Robotics Workshop",
        "date": "2026-03-02",
        "time": "09:00",
        "duration": 60,
        "generatedAt": "2026-03-02T09:00:05.250Z",
        "expiresAt": "2026-03-02T10:00:00.000Z",
    }


def test_decode_recovers_session_id(session):
    codec = TokenCodec()

    payload = codec.decode(codec.encode(session))

    assert payload.session_id == session.session_id
    assert payload.duration == 60
    assert payload.name == "Robotics Workshop"


def test_decode_ignores_embedded_expiry():
    raw = json.dumps({"sessionId": "abc", "expiresAt": "2001-01-01T00:00:00.000Z"})

    assert TokenCodec().decode(raw).session_id == "abc"


def test_decode_accepts_bytes():
    assert TokenCodec().decode(b'{"sessionId": "abc"}').session_id == "abc"


@pytest.mark.parametrize("raw", ["", "   ", "not json", "{\"sessionId\": ", "[1, 2]", "\"abc\"", b"\xff\xfe"])
def test_decode_rejects_malformed(raw):
    with pytest.raises(MalformedPayload):
        TokenCodec().decode(raw)


@pytest.mark.parametrize("raw", ["{}", '{"sessionId": ""}', '{"sessionId": 42}', '{"name": "Lab"}'])
def test_decode_requires_session_id(raw):
    with pytest.raises(MissingSessionId):
        TokenCodec().decode(raw)


def test_time_remaining_label(session):
    payload = TokenCodec().decode(TokenCodec().encode(session))

    assert payload.time_remaining(session.expires_at - timedelta(minutes=1, seconds=5)) == "1:05"
    assert payload.time_remaining(session.expires_at + timedelta(seconds=1)) == "0:00"


def test_render_png(session):
    codec = TokenCodec()

    png = codec.render_png(codec.encode(session))

    assert png.startswith(b"\x89PNG\r\n\x1a\n")
