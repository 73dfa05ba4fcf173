from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Dict, List, Optional

import mysql.connector
from mysql.connector import errorcode

from ..core.exceptions import ConflictError, TransientError
from .connection import DatabaseConnection

logger = logging.getLogger(__name__)

_TRANSIENT_ERRNOS = {
    errorcode.ER_LOCK_WAIT_TIMEOUT,
    errorcode.ER_LOCK_DEADLOCK,
    errorcode.CR_CONN_HOST_ERROR,
    errorcode.CR_SERVER_GONE_ERROR,
    errorcode.CR_SERVER_LOST,
}


def translate_error(exc: Exception) -> Exception:
    """Map connector errors onto the domain error taxonomy.

    Returns the original exception when there is no mapping.
    """

    if isinstance(exc, mysql.connector.IntegrityError) and exc.errno == errorcode.ER_DUP_ENTRY:
        return ConflictError(exc.msg or "Duplicate entry")
    if isinstance(exc, (mysql.connector.InterfaceError, mysql.connector.OperationalError)):
        return TransientError(f"Database unavailable: {exc}")
    if isinstance(exc, mysql.connector.Error) and exc.errno in _TRANSIENT_ERRNOS:
        return TransientError(f"Database busy: {exc}")
    return exc


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True):
    try:
        conn = conn_factory.connect()
    except mysql.connector.Error as exc:
        mapped = translate_error(exc)
        if mapped is exc:
            raise
        raise mapped from exc

    try:
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except mysql.connector.Error as exc:
        _rollback_quietly(conn)
        mapped = translate_error(exc)
        if mapped is exc:
            raise
        raise mapped from exc
    except Exception:
        _rollback_quietly(conn)
        raise
    finally:
        conn.close()


def _rollback_quietly(conn) -> None:
    try:
        conn.rollback()
    except mysql.connector.Error:
        # The connection is already gone; the server discards the transaction.
        logger.warning("rollback failed on a broken connection", exc_info=True)


def fetchone(cur) -> Optional[Dict[str, Any]]:
    row = cur.fetchone()
    return row if row else None


def fetchall(cur) -> List[Dict[str, Any]]:
    rows = cur.fetchall()
    return list(rows or [])
