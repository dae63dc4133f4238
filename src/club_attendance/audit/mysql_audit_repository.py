from __future__ import annotations

from typing import Sequence

from ..core.enums import LogoutRunStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall
from .model import DailyLogoutLogEntry, UserEditLogEntry
from .repository import AuditRepository


class MySQLAuditRepository(AuditRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_user_edits(self, *, limit: int = 200) -> Sequence[UserEditLogEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT log_id, editor_id, target_id, field_name, old_value, new_value, created_at
                FROM user_edit_logs
                ORDER BY created_at DESC, log_id DESC
                LIMIT %s
                """,
                (int(limit),),
            )
            return [
                UserEditLogEntry(
                    log_id=int(r["log_id"]),
                    editor_id=r.get("editor_id"),
                    target_id=int(r["target_id"]),
                    field_name=r["field_name"],
                    old_value=r.get("old_value"),
                    new_value=r.get("new_value"),
                    created_at=r["created_at"],
                )
                for r in fetchall(cur)
            ]

    def record_logout_run(self, *, affected_count: int, status: LogoutRunStatus) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO daily_logout_logs(affected_count, status) VALUES(%s,%s)",
                (int(affected_count), status.value),
            )
            return int(cur.lastrowid)

    def list_logout_runs(self, *, limit: int = 200) -> Sequence[DailyLogoutLogEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT log_id, affected_count, status, executed_at
                FROM daily_logout_logs
                ORDER BY executed_at DESC, log_id DESC
                LIMIT %s
                """,
                (int(limit),),
            )
            return [
                DailyLogoutLogEntry(
                    log_id=int(r["log_id"]),
                    affected_count=int(r["affected_count"]),
                    status=LogoutRunStatus(r["status"]),
                    executed_at=r["executed_at"],
                )
                for r in fetchall(cur)
            ]
