from __future__ import annotations

import logging
import uuid
from datetime import datetime
from typing import Callable, Optional, Sequence

from ..common.datetime_utils import utc_now
from ..common.validators import require_non_empty
from ..core.enums import AttendanceStatus, CheckInMethod
from ..core.exceptions import (
    ConflictError,
    NotFoundError,
    SessionExpired,
    SessionInactive,
    TransientError,
)
from ..principals.model import Principal
from ..principals.repository import PrincipalRepository
from ..sessions.service import SessionRegistry, require_admin
from .model import ActiveSessionStatus, AttendanceRecord, AttendanceStats, CheckInResult
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


class AttendanceLedger:
    """Use case: record attendance at most once per (session, user).

    A repeated scan is a success that returns the original row. The
    pre-check below is only a fast path; the unique key at the storage layer
    decides races, and a lost race is reported the same way as a pre-check
    hit.
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        registry: SessionRegistry,
        principals: PrincipalRepository,
        *,
        id_factory: Optional[Callable[[], str]] = None,
    ):
        self._attendance = attendance
        self._registry = registry
        self._principals = principals
        self._new_id = id_factory or (lambda: str(uuid.uuid4()))

    def record(
        self,
        session_id: str,
        principal: Principal,
        method: CheckInMethod = CheckInMethod.QR,
        *,
        now: datetime | None = None,
    ) -> CheckInResult:
        session_id = require_non_empty(session_id, "sessionId")
        now = now or utc_now()

        session = self._registry.get(session_id)
        if session.has_lapsed(now):
            if session.is_active:
                self._close_quietly(session, now=now)
            raise SessionExpired(f"Session {session_id} has expired")
        if not session.is_active:
            raise SessionInactive(f"Session {session_id} is no longer active")

        existing = self._attendance.get_for_session_and_user(session_id, principal.id)
        if existing:
            return CheckInResult(record=existing, duplicate=True)

        record = AttendanceRecord(
            attendance_id=self._new_id(),
            session_id=session_id,
            user_id=principal.id,
            check_in_time=now,
            status=AttendanceStatus.PRESENT,
            method=CheckInMethod(method),
        )
        try:
            self._attendance.insert(record)
        except ConflictError:
            # A concurrent attempt by the same principal won the insert.
            return CheckInResult(record=self._require_existing(session_id, principal.id), duplicate=True)

        logger.info("user %s checked in to session %s via %s", principal.id, session_id, record.method.value)
        return CheckInResult(record=record, duplicate=False)

    def record_manual(
        self,
        session_id: str,
        user_id: str,
        requestor: Principal,
        *,
        now: datetime | None = None,
    ) -> CheckInResult:
        require_admin(requestor)
        user_id = require_non_empty(user_id, "userId")
        principal = self._principals.get_by_id(user_id)
        if not principal:
            raise NotFoundError(f"User {user_id} not found")
        return self.record(session_id, principal, CheckInMethod.MANUAL, now=now)

    def materialize_absent(self, session_id: str, user_id: str, *, at: datetime) -> bool:
        """Insert a system ``absent`` row. Returns False if the pair already has a row."""

        record = AttendanceRecord(
            attendance_id=self._new_id(),
            session_id=session_id,
            user_id=user_id,
            check_in_time=at,
            status=AttendanceStatus.ABSENT,
            method=CheckInMethod.SYSTEM,
        )
        try:
            self._attendance.insert(record)
        except ConflictError:
            return False
        return True

    def get_for_user(self, principal: Principal) -> Sequence[AttendanceRecord]:
        rows = self._attendance.list_for_user(principal.id)
        return sorted(rows, key=lambda r: r.check_in_time, reverse=True)

    def get_for_session(self, session_id: str) -> Sequence[AttendanceRecord]:
        return self._attendance.list_for_session(session_id)

    def list_all(self, requestor: Principal) -> Sequence[AttendanceRecord]:
        require_admin(requestor)
        return self._attendance.list_all()

    def status_for_active(self, principal: Principal, *, now: datetime | None = None) -> ActiveSessionStatus:
        session = self._registry.get_active(now=now)
        if session is None:
            return ActiveSessionStatus(session=None)
        existing = self._attendance.get_for_session_and_user(session.session_id, principal.id)
        return ActiveSessionStatus(
            session=session,
            checked_in=existing is not None and existing.status == AttendanceStatus.PRESENT,
        )

    def stats_for_user(self, principal: Principal) -> AttendanceStats:
        rows = self._attendance.list_for_user(principal.id)
        present = sum(1 for r in rows if r.status == AttendanceStatus.PRESENT)
        total = len(rows)
        return AttendanceStats(
            total=total,
            present=present,
            absent=total - present,
            rate=round(present * 100 / total) if total else 0,
        )

    def _require_existing(self, session_id: str, user_id: str) -> AttendanceRecord:
        existing = self._attendance.get_for_session_and_user(session_id, user_id)
        if existing is None:
            raise TransientError("Attendance row not visible yet; retry")
        return existing

    def _close_quietly(self, session, *, now: datetime) -> None:
        # The caller still gets SessionExpired even if closing fails here.
        try:
            self._registry.close_lapsed(session, now=now)
        except Exception:
            logger.exception("could not close lapsed session %s", session.session_id)
