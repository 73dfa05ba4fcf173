from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..common.datetime_utils import parse_iso


@dataclass(frozen=True)
class QRPayload:
    """Decoded scannable payload.

    Only ``session_id`` is trusted. Everything else is advisory and may be
    missing or stale; eligibility is always checked against live state.
    """

    session_id: str
    name: Optional[str] = None
    date: Optional[str] = None
    time: Optional[str] = None
    duration: Optional[int] = None
    generated_at: Optional[str] = None
    expires_at: Optional[str] = None

    def time_remaining(self, now: datetime) -> str:
        """Countdown label (m:ss) for the scanner UI; "0:00" when unknown or past."""

        if not self.expires_at:
            return "0:00"
        try:
            expires = parse_iso(self.expires_at)
        except ValueError:
            return "0:00"
        remaining = max(0, int((expires - now).total_seconds()))
        return f"{remaining // 60}:{remaining % 60:02d}"
