from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Sequence

from ..common.datetime_utils import utc_now
from ..principals.repository import PrincipalRepository
from ..sessions.model import BackfillResult
from ..sessions.service import SessionRegistry
from .service import AttendanceLedger

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SweepResult:
    closed: int
    backfills: Sequence[BackfillResult]


class ExpiryEnforcer:
    """Close expired sessions and backfill ``absent`` rows for non-attendees.

    Backfill is idempotent through the attendance unique key, so running it
    twice for a session (a retry racing a late transition) inserts nothing
    new. Failures are logged and left pending for the next expiry check;
    they never propagate into the request that triggered the transition.
    """

    def __init__(self, registry: SessionRegistry, ledger: AttendanceLedger, principals: PrincipalRepository):
        self._registry = registry
        self._ledger = ledger
        self._principals = principals

    def on_expire(self, session_id: str, *, now: datetime | None = None) -> BackfillResult:
        created = 0
        try:
            session = self._registry.get(session_id)
            if session.is_active:
                logger.warning("backfill requested for still-active session %s; skipped", session_id)
                return BackfillResult(session_id=session_id, absentee_count=0, complete=False)

            at = session.closed_at or session.expires_at
            recorded = {r.user_id for r in self._ledger.get_for_session(session_id)}
            for student in self._principals.list_students():
                if student.id in recorded:
                    continue
                if self._ledger.materialize_absent(session_id, student.id, at=at):
                    created += 1

            self._registry.mark_backfilled(session_id, at=now or utc_now())
        except Exception:
            logger.exception("absentee backfill for session %s failed after %d rows; will retry", session_id, created)
            return BackfillResult(session_id=session_id, absentee_count=created, complete=False)

        logger.info("session %s: marked %d students absent", session_id, created)
        return BackfillResult(session_id=session_id, absentee_count=created, complete=True)

    def retry_pending(self) -> Sequence[BackfillResult]:
        try:
            pending = self._registry.list_pending_backfill()
        except Exception:
            logger.exception("could not list sessions with pending backfill")
            return []
        return [self.on_expire(s.session_id) for s in pending]

    def sweep(self, *, now: datetime | None = None) -> SweepResult:
        """Close every lapsed active session, then finish pending backfills."""

        now = now or utc_now()
        closed = 0
        for session in self._registry.list_lapsed_active(now):
            if self._registry.close_lapsed(session, now=now, retry_pending=False):
                closed += 1
        return SweepResult(closed=closed, backfills=self.retry_pending())
