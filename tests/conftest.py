from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from typing import Optional

import pytest

from src.qr_attendance.qr_attendance.attendance.model import AttendanceRecord
from src.qr_attendance.qr_attendance.container import wire
from src.qr_attendance.qr_attendance.core.enums import Role
from src.qr_attendance.qr_attendance.core.exceptions import ConflictError
from src.qr_attendance.qr_attendance.principals.model import Principal
from src.qr_attendance.qr_attendance.sessions.model import Session


class InMemoryPrincipals:
    def __init__(self, principals):
        self._by_id = {p.id: p for p in principals}

    def get_by_id(self, user_id: str) -> Optional[Principal]:
        return self._by_id.get(user_id)

    def list_students(self):
        return [p for p in self._by_id.values() if p.role == Role.STUDENT]


class InMemorySessions:
    """Mirrors the MySQL guarantees: one active slot, conditional deactivate."""

    def __init__(self):
        self._by_id: dict[str, Session] = {}

    def all(self):
        return list(self._by_id.values())

    def get_by_id(self, session_id: str) -> Optional[Session]:
        return self._by_id.get(session_id)

    def get_latest_active(self) -> Optional[Session]:
        active = [s for s in self._by_id.values() if s.is_active]
        return max(active, key=lambda s: s.created_at) if active else None

    def list_recent(self, limit: int):
        return sorted(self._by_id.values(), key=lambda s: s.created_at, reverse=True)[:limit]

    def insert_active(self, session: Session) -> None:
        if any(s.is_active for s in self._by_id.values()):
            raise ConflictError("Duplicate entry '1' for key 'uq_sessions_active_slot'")
        self._by_id[session.session_id] = replace(session, is_active=True)

    def deactivate(self, session_id: str, *, closed_at: datetime) -> bool:
        s = self._by_id.get(session_id)
        if not s or not s.is_active:
            return False
        self._by_id[session_id] = replace(s, is_active=False, closed_at=closed_at)
        return True

    def list_lapsed_active(self, now: datetime):
        return [s for s in self._by_id.values() if s.is_active and s.expires_at <= now]

    def list_pending_backfill(self):
        return [s for s in self._by_id.values() if not s.is_active and s.backfilled_at is None]

    def mark_backfilled(self, session_id: str, *, at: datetime) -> bool:
        s = self._by_id.get(session_id)
        if not s or s.is_active or s.backfilled_at is not None:
            return False
        self._by_id[session_id] = replace(s, backfilled_at=at)
        return True


class InMemoryAttendance:
    """Unique on (session_id, user_id), like uq_attendance_session_user."""

    def __init__(self):
        self._by_key: dict[tuple[str, str], AttendanceRecord] = {}

    def all(self):
        return list(self._by_key.values())

    def get_for_session_and_user(self, session_id: str, user_id: str) -> Optional[AttendanceRecord]:
        return self._by_key.get((session_id, user_id))

    def insert(self, record: AttendanceRecord) -> None:
        key = (record.session_id, record.user_id)
        if key in self._by_key:
            raise ConflictError("Duplicate entry for key 'uq_attendance_session_user'")
        self._by_key[key] = record

    def list_for_user(self, user_id: str):
        items = [r for r in self._by_key.values() if r.user_id == user_id]
        items.sort(key=lambda r: r.check_in_time, reverse=True)
        return items

    def list_for_session(self, session_id: str):
        return [r for r in self._by_key.values() if r.session_id == session_id]

    def list_all(self):
        return sorted(self._by_key.values(), key=lambda r: r.check_in_time, reverse=True)


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2026, 3, 2, 9, 0, 0)


@pytest.fixture
def admin() -> Principal:
    return Principal(id="admin", username="admin", name="Admin", role=Role.ADMIN)


@pytest.fixture
def students() -> list[Principal]:
    return [
        Principal(id=f"S100{i}", username=f"S100{i}", name=f"Student {i}", role=Role.STUDENT)
        for i in range(1, 6)
    ]


@pytest.fixture
def principals_repo(admin, students) -> InMemoryPrincipals:
    return InMemoryPrincipals([admin, *students])


@pytest.fixture
def sessions_repo() -> InMemorySessions:
    return InMemorySessions()


@pytest.fixture
def attendance_repo() -> InMemoryAttendance:
    return InMemoryAttendance()


@pytest.fixture
def container(principals_repo, sessions_repo, attendance_repo):
    return wire(
        principals_repo=principals_repo,
        sessions_repo=sessions_repo,
        attendance_repo=attendance_repo,
    )


@pytest.fixture
def open_session(container, admin, fixed_now) -> Session:
    """'Robotics Workshop', 60 minutes, opened at fixed_now."""

    return container.session_registry.create("Robotics Workshop", 60, admin, now=fixed_now)
