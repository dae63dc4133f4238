from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import LogoutRunStatus


@dataclass(frozen=True)
class UserEditLogEntry:
    """Write-once record of one field changed by an administrator."""

    log_id: int
    editor_id: Optional[int]
    target_id: int
    field_name: str
    old_value: Optional[str]
    new_value: Optional[str]
    created_at: datetime


@dataclass(frozen=True)
class FieldChange:
    field_name: str
    old_value: Optional[str]
    new_value: Optional[str]


@dataclass(frozen=True)
class DailyLogoutLogEntry:
    log_id: int
    affected_count: int
    status: LogoutRunStatus
    executed_at: datetime
