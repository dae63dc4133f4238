from __future__ import annotations

from typing import Any, Mapping, Optional, Sequence

from ..audit.model import FieldChange
from ..core.enums import Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import EDITABLE_FIELDS, Member
from .repository import MemberRepository

_COLUMNS = """
    member_id, external_id, display_name, card_id, generation, student_number,
    team_id, role, is_active, joined_at, updated_at
"""


def row_to_member(r: Mapping[str, Any]) -> Member:
    return Member(
        member_id=int(r["member_id"]),
        external_id=r["external_id"],
        display_name=r["display_name"],
        card_id=r["card_id"],
        generation=int(r["generation"]),
        team_id=int(r["team_id"]) if r.get("team_id") is not None else None,
        role=Role(r["role"]),
        is_active=bool(r.get("is_active", True)),
        student_number=r.get("student_number"),
        joined_at=r.get("joined_at"),
        updated_at=r.get("updated_at"),
    )


class MySQLMemberRepository(MemberRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _get_one(self, column: str, value: Any) -> Optional[Member]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM members WHERE {column}=%s", (value,))
            row = fetchone(cur)
            return row_to_member(row) if row else None

    def get_by_id(self, member_id: int) -> Optional[Member]:
        return self._get_one("member_id", int(member_id))

    def get_by_card_id(self, card_id: str) -> Optional[Member]:
        return self._get_one("card_id", card_id)

    def get_by_external_id(self, external_id: str) -> Optional[Member]:
        return self._get_one("external_id", external_id)

    def get_by_display_name(self, display_name: str) -> Optional[Member]:
        return self._get_one("display_name", display_name)

    def list_all(self) -> Sequence[Member]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM members ORDER BY generation DESC, display_name ASC")
            return [row_to_member(r) for r in fetchall(cur)]

    def list_by_team(self, team_id: int) -> Sequence[Member]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM members WHERE team_id=%s AND is_active=1 ORDER BY generation DESC, display_name ASC",
                (int(team_id),),
            )
            return [row_to_member(r) for r in fetchall(cur)]

    def count_by_team(self, team_id: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT COUNT(*) AS n FROM members WHERE team_id=%s", (int(team_id),))
            row = fetchone(cur)
            return int(row["n"]) if row else 0

    def update_fields(
        self,
        member_id: int,
        fields: Mapping[str, Any],
        *,
        editor_id: Optional[int] = None,
        changes: Sequence[FieldChange] = (),
    ) -> bool:
        unknown = set(fields) - set(EDITABLE_FIELDS)
        if unknown:
            raise ValueError(f"Not editable: {sorted(unknown)}")
        if not fields:
            return False

        assignments = ", ".join(f"{name}=%s" for name in fields)
        params = [v.value if isinstance(v, Role) else v for v in fields.values()]
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"UPDATE members SET {assignments} WHERE member_id=%s", (*params, int(member_id)))
            updated = cur.rowcount > 0
            if updated and changes:
                cur.executemany(
                    """
                    INSERT INTO user_edit_logs(editor_id, target_id, field_name, old_value, new_value)
                    VALUES(%s,%s,%s,%s,%s)
                    """,
                    [(editor_id, int(member_id), c.field_name, c.old_value, c.new_value) for c in changes],
                )
            return updated
