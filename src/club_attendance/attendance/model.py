from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import AttendanceType
from ..members.model import Member


@dataclass(frozen=True)
class AttendanceEvent:
    """Domain entity: one immutable ledger entry."""

    attendance_id: int
    member_id: int
    type: AttendanceType
    timestamp: datetime
    date: date
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class ToggleResult:
    member: Member
    type: AttendanceType
    message: str
    event: AttendanceEvent
    # True when a concurrent tap from the same prior state already toggled.
    duplicate: bool = False


@dataclass(frozen=True)
class SummaryRow:
    """Read-model for aggregation: one `in` event joined with its member."""

    date: date
    member_id: int
    team_id: Optional[int]
    team_name: Optional[str]
    generation: int
