from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import AttendanceStatus, CheckInMethod
from ..sessions.model import Session


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one attendance row, unique on (session_id, user_id).

    Immutable after creation.
    """

    attendance_id: str
    session_id: str
    user_id: str
    check_in_time: datetime
    status: AttendanceStatus
    method: CheckInMethod


@dataclass(frozen=True)
class CheckInResult:
    """``duplicate`` tells a first check-in apart from "already recorded"; both are success."""

    record: AttendanceRecord
    duplicate: bool = False


@dataclass(frozen=True)
class ActiveSessionStatus:
    session: Optional[Session]
    checked_in: bool = False


@dataclass(frozen=True)
class AttendanceStats:
    total: int
    present: int
    absent: int
    rate: int
