from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from .model import Session


class SessionRepository(Protocol):
    """Persistence interface for sessions.

    Atomicity lives here, not in the services:
    - ``insert_active`` raises ConflictError when another active row exists.
    - ``deactivate`` is a conditional write; it returns True only for the
      caller that actually flipped the row.
    """

    def get_by_id(self, session_id: str) -> Optional[Session]:
        raise NotImplementedError

    def get_latest_active(self) -> Optional[Session]:
        raise NotImplementedError

    def list_recent(self, limit: int) -> Sequence[Session]:
        raise NotImplementedError

    def insert_active(self, session: Session) -> None:
        raise NotImplementedError

    def deactivate(self, session_id: str, *, closed_at: datetime) -> bool:
        raise NotImplementedError

    def list_lapsed_active(self, now: datetime) -> Sequence[Session]:
        raise NotImplementedError

    def list_pending_backfill(self) -> Sequence[Session]:
        raise NotImplementedError

    def mark_backfilled(self, session_id: str, *, at: datetime) -> bool:
        raise NotImplementedError
