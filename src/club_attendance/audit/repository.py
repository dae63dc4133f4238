from __future__ import annotations

from typing import Protocol, Sequence

from ..core.enums import LogoutRunStatus
from .model import DailyLogoutLogEntry, UserEditLogEntry


class AuditRepository(Protocol):
    def list_user_edits(self, *, limit: int = 200) -> Sequence[UserEditLogEntry]:
        raise NotImplementedError

    def record_logout_run(self, *, affected_count: int, status: LogoutRunStatus) -> int:
        raise NotImplementedError

    def list_logout_runs(self, *, limit: int = 200) -> Sequence[DailyLogoutLogEntry]:
        raise NotImplementedError
