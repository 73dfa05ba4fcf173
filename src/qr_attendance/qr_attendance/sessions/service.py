from __future__ import annotations

import logging
import uuid
from datetime import datetime, timedelta
from typing import Callable, Optional, Protocol, Sequence

from ..common.datetime_utils import utc_now
from ..common.validators import require_int_in_range, require_non_empty
from ..core.constants import (
    CREATE_ATTEMPTS,
    DEFAULT_SESSION_LIST_LIMIT,
    MAX_SESSION_LIST_LIMIT,
    MAX_SESSION_MINUTES,
    MIN_SESSION_MINUTES,
)
from ..core.exceptions import AuthorizationError, ConflictError, SessionNotFound, TransientError
from ..principals.model import Principal
from .model import BackfillResult, ExpiryOutcome, Session
from .repository import SessionRepository

logger = logging.getLogger(__name__)


class ExpiryListener(Protocol):
    """Receives terminal transitions. Implemented by ExpiryEnforcer."""

    def on_expire(self, session_id: str) -> BackfillResult:
        raise NotImplementedError

    def retry_pending(self) -> Sequence[BackfillResult]:
        raise NotImplementedError


def require_admin(principal: Principal) -> None:
    if principal is None or not principal.is_admin:
        raise AuthorizationError("Admin role required")


class SessionRegistry:
    """Use case: own the session lifecycle and the single-active invariant.

    Every path that closes a session (explicit expire, supersede on create,
    expire-on-read) goes through ``_terminate`` so the expiry listener fires
    exactly once per transition: the storage write is conditional and only
    the caller that flipped the row notifies the listener.
    """

    def __init__(
        self,
        sessions: SessionRepository,
        *,
        create_attempts: int = CREATE_ATTEMPTS,
        id_factory: Optional[Callable[[], str]] = None,
    ):
        self._sessions = sessions
        self._create_attempts = int(create_attempts)
        self._new_id = id_factory or (lambda: str(uuid.uuid4()))
        self._listener: Optional[ExpiryListener] = None

    def set_expiry_listener(self, listener: ExpiryListener) -> None:
        self._listener = listener

    def create(self, name: str, duration_minutes: int, requestor: Principal, *, now: datetime | None = None) -> Session:
        require_admin(requestor)
        name = require_non_empty(name, "name")
        duration = require_int_in_range(
            duration_minutes,
            "durationMinutes",
            minimum=MIN_SESSION_MINUTES,
            maximum=MAX_SESSION_MINUTES,
        )
        now = now or utc_now()

        session = Session(
            session_id=self._new_id(),
            name=name,
            created_by=requestor.id,
            created_at=now,
            expires_at=now + timedelta(minutes=duration),
        )

        for attempt in range(1, self._create_attempts + 1):
            # The deactivate write commits before the insert below is issued.
            current = self._sessions.get_latest_active()
            if current is not None:
                self._terminate(current, now=now)

            try:
                self._sessions.insert_active(session)
            except ConflictError:
                logger.info(
                    "session %s lost the active slot race (attempt %d/%d)",
                    session.session_id,
                    attempt,
                    self._create_attempts,
                )
                continue

            logger.info(
                "session %s %r opened by %s until %s",
                session.session_id,
                session.name,
                requestor.id,
                session.expires_at.isoformat(),
            )
            return session

        raise TransientError("Another session keeps taking the active slot; retry")

    def get(self, session_id: str) -> Session:
        session = self._sessions.get_by_id(session_id)
        if not session:
            raise SessionNotFound(f"Session {session_id} not found")
        return session

    def get_active(self, *, now: datetime | None = None) -> Optional[Session]:
        now = now or utc_now()
        current = self._sessions.get_latest_active()
        if current is None:
            return None
        if not current.has_lapsed(now):
            return current

        # Expire on read.
        self.close_lapsed(current, now=now)
        return None

    def expire(self, session_id: str, requestor: Principal, *, now: datetime | None = None) -> ExpiryOutcome:
        require_admin(requestor)
        now = now or utc_now()
        session = self.get(session_id)

        transitioned = False
        absentee_count = 0
        if session.is_active:
            transitioned, result = self._terminate(session, now=now)
            absentee_count += result.absentee_count if result else 0

        # A repeated expire is a no-op apart from finishing a pending backfill.
        for retried in self._retry_pending():
            if retried.session_id == session_id:
                absentee_count += retried.absentee_count

        updated = self.get(session_id)
        return ExpiryOutcome(
            session=updated,
            transitioned=transitioned,
            absentee_count=absentee_count,
            backfill_complete=not updated.backfill_pending,
        )

    def close_lapsed(self, session: Session, *, now: datetime | None = None, retry_pending: bool = True) -> bool:
        """Close a session found active past its expiry. Returns True if this call closed it."""

        now = now or utc_now()
        transitioned, _ = self._terminate(session, now=now)
        if retry_pending:
            self._retry_pending()
        return transitioned

    def list_sessions(self, requestor: Principal, *, limit: int = DEFAULT_SESSION_LIST_LIMIT) -> Sequence[Session]:
        require_admin(requestor)
        limit = require_int_in_range(limit, "limit", minimum=1, maximum=MAX_SESSION_LIST_LIMIT)
        return self._sessions.list_recent(limit)

    def list_lapsed_active(self, now: datetime) -> Sequence[Session]:
        return self._sessions.list_lapsed_active(now)

    def list_pending_backfill(self) -> Sequence[Session]:
        return self._sessions.list_pending_backfill()

    def mark_backfilled(self, session_id: str, *, at: datetime) -> bool:
        return self._sessions.mark_backfilled(session_id, at=at)

    def _terminate(self, session: Session, *, now: datetime) -> tuple[bool, Optional[BackfillResult]]:
        closed_at = min(now, session.expires_at)
        if not self._sessions.deactivate(session.session_id, closed_at=closed_at):
            # Someone else already performed this transition.
            return False, None

        logger.info("session %s closed at %s", session.session_id, closed_at.isoformat())
        if self._listener is None:
            return True, None
        return True, self._listener.on_expire(session.session_id)

    def _retry_pending(self) -> Sequence[BackfillResult]:
        if self._listener is None:
            return []
        return self._listener.retry_pending()
