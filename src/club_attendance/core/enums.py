from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Member role used for authorization."""

    ADMIN = "admin"
    MEMBER = "member"


class AttendanceType(str, Enum):
    """Kind of an attendance ledger event."""

    IN = "in"
    OUT = "out"

    def opposite(self) -> "AttendanceType":
        return AttendanceType.OUT if self is AttendanceType.IN else AttendanceType.IN


class LogoutRunStatus(str, Enum):
    SUCCESS = "success"
    ERROR = "error"


class KioskState(str, Enum):
    IDLE = "idle"
    INPUT = "input"
    PROCESSING = "processing"
    SUCCESS = "success"
    ERROR = "error"
    REGISTER = "register"
    QR = "qr"
