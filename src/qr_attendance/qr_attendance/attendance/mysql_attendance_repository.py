from __future__ import annotations

from typing import Optional, Sequence

from ..core.enums import AttendanceStatus, CheckInMethod
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import AttendanceRecord
from .repository import AttendanceRepository

_COLUMNS = "attendance_id, session_id, user_id, check_in_time, status, method"


def _to_record(r: dict) -> AttendanceRecord:
    return AttendanceRecord(
        attendance_id=str(r["attendance_id"]),
        session_id=str(r["session_id"]),
        user_id=str(r["user_id"]),
        check_in_time=r["check_in_time"],
        status=AttendanceStatus(r["status"]),
        method=CheckInMethod(r["method"]),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_for_session_and_user(self, session_id: str, user_id: str) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance
                WHERE session_id=%s AND user_id=%s
                """,
                (session_id, user_id),
            )
            r = fetchone(cur)
            return _to_record(r) if r else None

    def insert(self, record: AttendanceRecord) -> None:
        # uq_attendance_session_user turns a racing duplicate into ER_DUP_ENTRY -> ConflictError.
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO attendance(attendance_id, session_id, user_id, check_in_time, status, method)
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                (
                    record.attendance_id,
                    record.session_id,
                    record.user_id,
                    record.check_in_time,
                    record.status.value,
                    record.method.value,
                ),
            )

    def list_for_user(self, user_id: str) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance
                WHERE user_id=%s
                ORDER BY check_in_time DESC
                """,
                (user_id,),
            )
            return [_to_record(r) for r in fetchall(cur)]

    def list_for_session(self, session_id: str) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM attendance WHERE session_id=%s", (session_id,))
            return [_to_record(r) for r in fetchall(cur)]

    def list_all(self) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM attendance ORDER BY check_in_time DESC")
            return [_to_record(r) for r in fetchall(cur)]
