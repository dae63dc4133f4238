from __future__ import annotations

from typing import Sequence

from ..database.mysql_base import store_errors
from .model import DailyLogoutLogEntry, UserEditLogEntry
from .repository import AuditRepository


class AuditService:
    """Read access to the write-once admin logs."""

    def __init__(self, audit: AuditRepository):
        self._audit = audit

    def user_edits(self, *, limit: int = 200) -> Sequence[UserEditLogEntry]:
        with store_errors("user_edits"):
            return self._audit.list_user_edits(limit=max(1, int(limit)))

    def logout_runs(self, *, limit: int = 200) -> Sequence[DailyLogoutLogEntry]:
        with store_errors("logout_runs"):
            return self._audit.list_logout_runs(limit=max(1, int(limit)))
