from __future__ import annotations

from typing import Any, Dict

from ..attendance.model import AttendanceRecord, AttendanceStats
from ..sessions.model import Session
from .datetime_utils import to_iso


def session_to_dict(s: Session) -> Dict[str, Any]:
    return {
        "id": s.session_id,
        "name": s.name,
        "createdBy": s.created_by,
        "createdAt": to_iso(s.created_at),
        "expiresAt": to_iso(s.expires_at),
        "isActive": s.is_active,
        "date": s.date,
        "time": s.time,
        "duration": s.duration_minutes,
        "closedAt": to_iso(s.closed_at) if s.closed_at else None,
    }


def record_to_dict(r: AttendanceRecord) -> Dict[str, Any]:
    return {
        "id": r.attendance_id,
        "sessionId": r.session_id,
        "userId": r.user_id,
        "checkInTime": to_iso(r.check_in_time),
        "status": r.status.value,
        "method": r.method.value,
    }


def stats_to_dict(stats: AttendanceStats) -> Dict[str, Any]:
    return {
        "total": stats.total,
        "present": stats.present,
        "absent": stats.absent,
        "rate": stats.rate,
    }
