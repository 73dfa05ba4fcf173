from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class Session:
    """Domain entity: an attendance session.

    At most one Session is active at any instant. Once ``is_active`` turns
    false it never becomes true again; reopening means a new id.
    """

    session_id: str
    name: str
    created_by: str
    created_at: datetime
    expires_at: datetime
    is_active: bool = True
    closed_at: Optional[datetime] = None
    backfilled_at: Optional[datetime] = None

    @property
    def duration_minutes(self) -> int:
        return int((self.expires_at - self.created_at).total_seconds() // 60)

    @property
    def date(self) -> str:
        return self.created_at.strftime("%Y-%m-%d")

    @property
    def time(self) -> str:
        return self.created_at.strftime("%H:%M")

    def has_lapsed(self, now: datetime) -> bool:
        return now >= self.expires_at

    @property
    def backfill_pending(self) -> bool:
        return not self.is_active and self.backfilled_at is None


@dataclass(frozen=True)
class ExpiryOutcome:
    """Result of an explicit expire call."""

    session: Session
    transitioned: bool
    absentee_count: int = 0
    backfill_complete: bool = True


@dataclass(frozen=True)
class BackfillResult:
    """Outcome of one absentee backfill pass for a closed session."""

    session_id: str
    absentee_count: int
    complete: bool
