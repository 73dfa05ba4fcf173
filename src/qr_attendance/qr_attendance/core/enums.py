from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Principal role used for authorization."""

    ADMIN = "admin"
    STUDENT = "student"


class AttendanceStatus(str, Enum):
    """Stored outcome of a (session, user) pair."""

    PRESENT = "present"
    ABSENT = "absent"


class CheckInMethod(str, Enum):
    """How an attendance row came to exist."""

    QR = "qr"
    MANUAL = "manual"
    CODE = "code"
    SYSTEM = "system"
