from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Session
from .repository import SessionRepository

_COLUMNS = "session_id, name, created_by, created_at, expires_at, is_active, closed_at, backfilled_at"


def _to_session(r: dict) -> Session:
    return Session(
        session_id=str(r["session_id"]),
        name=r["name"],
        created_by=str(r["created_by"]),
        created_at=r["created_at"],
        expires_at=r["expires_at"],
        is_active=bool(r["is_active"]),
        closed_at=r.get("closed_at"),
        backfilled_at=r.get("backfilled_at"),
    )


class MySQLSessionRepository(SessionRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, session_id: str) -> Optional[Session]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM sessions WHERE session_id=%s", (session_id,))
            r = fetchone(cur)
            return _to_session(r) if r else None

    def get_latest_active(self) -> Optional[Session]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM sessions
                WHERE is_active=1
                ORDER BY created_at DESC
                LIMIT 1
                """
            )
            r = fetchone(cur)
            return _to_session(r) if r else None

    def list_recent(self, limit: int) -> Sequence[Session]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM sessions ORDER BY created_at DESC LIMIT %s",
                (int(limit),),
            )
            return [_to_session(r) for r in fetchall(cur)]

    def insert_active(self, session: Session) -> None:
        # uq_sessions_active_slot rejects a second active row (ER_DUP_ENTRY -> ConflictError).
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO sessions(session_id, name, created_by, created_at, expires_at, is_active)
                VALUES(%s,%s,%s,%s,%s,1)
                """,
                (
                    session.session_id,
                    session.name,
                    session.created_by,
                    session.created_at,
                    session.expires_at,
                ),
            )

    def deactivate(self, session_id: str, *, closed_at: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE sessions
                SET is_active=0, closed_at=%s
                WHERE session_id=%s AND is_active=1
                """,
                (closed_at, session_id),
            )
            return cur.rowcount > 0

    def list_lapsed_active(self, now: datetime) -> Sequence[Session]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM sessions WHERE is_active=1 AND expires_at <= %s",
                (now,),
            )
            return [_to_session(r) for r in fetchall(cur)]

    def list_pending_backfill(self) -> Sequence[Session]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM sessions
                WHERE is_active=0 AND backfilled_at IS NULL
                ORDER BY closed_at ASC
                """
            )
            return [_to_session(r) for r in fetchall(cur)]

    def mark_backfilled(self, session_id: str, *, at: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE sessions
                SET backfilled_at=%s
                WHERE session_id=%s AND is_active=0 AND backfilled_at IS NULL
                """,
                (at, session_id),
            )
            return cur.rowcount > 0
