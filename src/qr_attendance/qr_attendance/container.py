from __future__ import annotations

from dataclasses import dataclass

from .attendance.expiry import ExpiryEnforcer
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceLedger
from .database.connection import DBConfig, DatabaseConnection
from .principals.mysql_principal_repository import MySQLPrincipalRepository
from .principals.repository import PrincipalRepository
from .qr.codec import TokenCodec
from .sessions.mysql_session_repository import MySQLSessionRepository
from .sessions.repository import SessionRepository
from .sessions.service import SessionRegistry


@dataclass(frozen=True)
class Container:
    principals_repo: PrincipalRepository
    sessions_repo: SessionRepository
    attendance_repo: AttendanceRepository

    session_registry: SessionRegistry
    attendance_ledger: AttendanceLedger
    expiry_enforcer: ExpiryEnforcer
    token_codec: TokenCodec


def wire(
    *,
    principals_repo: PrincipalRepository,
    sessions_repo: SessionRepository,
    attendance_repo: AttendanceRepository,
) -> Container:
    """Build services over any repository implementations."""

    session_registry = SessionRegistry(sessions_repo)
    attendance_ledger = AttendanceLedger(attendance_repo, session_registry, principals_repo)
    expiry_enforcer = ExpiryEnforcer(session_registry, attendance_ledger, principals_repo)
    session_registry.set_expiry_listener(expiry_enforcer)

    return Container(
        principals_repo=principals_repo,
        sessions_repo=sessions_repo,
        attendance_repo=attendance_repo,
        session_registry=session_registry,
        attendance_ledger=attendance_ledger,
        expiry_enforcer=expiry_enforcer,
        token_codec=TokenCodec(),
    )


def build_container(*, db_config: dict) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))

    return wire(
        principals_repo=MySQLPrincipalRepository(conn),
        sessions_repo=MySQLSessionRepository(conn),
        attendance_repo=MySQLAttendanceRepository(conn),
    )
