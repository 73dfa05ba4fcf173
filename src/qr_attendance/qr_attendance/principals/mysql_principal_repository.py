from __future__ import annotations

from typing import Optional, Sequence

from ..core.enums import Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Principal
from .repository import PrincipalRepository


def _to_principal(r: dict) -> Principal:
    return Principal(
        id=str(r["user_id"]),
        username=r["username"],
        name=r["full_name"],
        role=Role(r["role"]),
    )


class MySQLPrincipalRepository(PrincipalRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, user_id: str) -> Optional[Principal]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT user_id, username, full_name, role
                FROM users
                WHERE user_id=%s AND is_active=1
                """,
                (str(user_id),),
            )
            r = fetchone(cur)
            return _to_principal(r) if r else None

    def list_students(self) -> Sequence[Principal]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT user_id, username, full_name, role
                FROM users
                WHERE role=%s AND is_active=1
                ORDER BY user_id
                """,
                (Role.STUDENT.value,),
            )
            return [_to_principal(r) for r in fetchall(cur)]
