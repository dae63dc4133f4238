from __future__ import annotations

from datetime import date, datetime
from typing import Any, Iterable, Mapping, Optional, Sequence

from ..core.enums import AttendanceType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, placeholders
from .model import AttendanceEvent, SummaryRow
from .repository import AttendanceRepository

_COLUMNS = "attendance_id, member_id, type, timestamp, date, created_at"

_LATEST_SQL = f"""
    SELECT {_COLUMNS}
    FROM attendances
    WHERE member_id=%s
    ORDER BY timestamp DESC, attendance_id DESC
    LIMIT 1
"""


def _to_event(r: Mapping[str, Any]) -> AttendanceEvent:
    return AttendanceEvent(
        attendance_id=int(r["attendance_id"]),
        member_id=int(r["member_id"]),
        type=AttendanceType(r["type"]),
        timestamp=r["timestamp"],
        date=r["date"],
        created_at=r.get("created_at"),
    )


def _insert(cur, *, member_id: int, type: AttendanceType, timestamp: datetime) -> AttendanceEvent:
    cur.execute(
        "INSERT INTO attendances(member_id, type, timestamp, date) VALUES(%s,%s,%s,%s)",
        (int(member_id), type.value, timestamp, timestamp.date()),
    )
    return AttendanceEvent(
        attendance_id=int(cur.lastrowid),
        member_id=int(member_id),
        type=type,
        timestamp=timestamp,
        date=timestamp.date(),
    )


def _latest_per_member_sql(where: str) -> str:
    return f"""
        SELECT {_COLUMNS}
        FROM (
            SELECT {_COLUMNS},
                   ROW_NUMBER() OVER (PARTITION BY member_id ORDER BY timestamp DESC, attendance_id DESC) AS rn
            FROM attendances
            {where}
        ) latest
        WHERE rn = 1
    """


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def latest_event_for(self, member_id: int) -> Optional[AttendanceEvent]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_LATEST_SQL, (int(member_id),))
            r = fetchone(cur)
            return _to_event(r) if r else None

    def latest_events_for(self, member_ids: Optional[Iterable[int]] = None) -> Mapping[int, AttendanceEvent]:
        params: tuple = ()
        where = ""
        if member_ids is not None:
            ids = [int(m) for m in member_ids]
            if not ids:
                return {}
            where = f"WHERE member_id IN ({placeholders(ids)})"
            params = tuple(ids)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_latest_per_member_sql(where), params)
            return {int(r["member_id"]): _to_event(r) for r in fetchall(cur)}

    def append_if_latest(
        self,
        *,
        member_id: int,
        expected_latest_id: Optional[int],
        type: AttendanceType,
        timestamp: datetime,
    ) -> Optional[AttendanceEvent]:
        with db_cursor(self._conn_factory) as (_, cur):
            # The member row lock serializes concurrent taps on the same card.
            cur.execute("SELECT member_id FROM members WHERE member_id=%s FOR UPDATE", (int(member_id),))
            if not fetchone(cur):
                return None

            cur.execute(_LATEST_SQL, (int(member_id),))
            current = fetchone(cur)
            current_id = int(current["attendance_id"]) if current else None
            if current_id != expected_latest_id:
                return None

            return _insert(cur, member_id=member_id, type=type, timestamp=timestamp)

    def append(self, *, member_id: int, type: AttendanceType, timestamp: datetime) -> AttendanceEvent:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT member_id FROM members WHERE member_id=%s FOR UPDATE", (int(member_id),))
            return _insert(cur, member_id=member_id, type=type, timestamp=timestamp)

    def logout_all_currently_in(self, *, timestamp: datetime) -> Sequence[int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT member_id FROM members FOR UPDATE")
            fetchall(cur)

            cur.execute(_latest_per_member_sql(""))
            ids = [int(r["member_id"]) for r in fetchall(cur) if r["type"] == AttendanceType.IN.value]
            if ids:
                cur.executemany(
                    "INSERT INTO attendances(member_id, type, timestamp, date) VALUES(%s,%s,%s,%s)",
                    [(member_id, AttendanceType.OUT.value, timestamp, timestamp.date()) for member_id in ids],
                )
            return ids

    def recent_for_member(self, member_id: int, limit: int) -> Sequence[AttendanceEvent]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendances
                WHERE member_id=%s
                ORDER BY timestamp DESC, attendance_id DESC
                LIMIT %s
                """,
                (int(member_id), int(limit)),
            )
            return [_to_event(r) for r in fetchall(cur)]

    def events_for_member_since(self, member_id: int, since: datetime) -> Sequence[AttendanceEvent]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendances
                WHERE member_id=%s AND timestamp >= %s
                ORDER BY timestamp ASC, attendance_id ASC
                """,
                (int(member_id), since),
            )
            return [_to_event(r) for r in fetchall(cur)]

    def in_events_between(
        self,
        *,
        start: date,
        end: date,
        member_ids: Optional[Iterable[int]] = None,
    ) -> Sequence[AttendanceEvent]:
        clauses = ["type=%s", "date BETWEEN %s AND %s"]
        params: list[object] = [AttendanceType.IN.value, start, end]

        if member_ids is not None:
            ids = [int(m) for m in member_ids]
            if not ids:
                return []
            clauses.append(f"member_id IN ({placeholders(ids)})")
            params.extend(ids)

        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM attendances WHERE {where} ORDER BY timestamp ASC, attendance_id ASC",
                tuple(params),
            )
            return [_to_event(r) for r in fetchall(cur)]

    def summary_rows(self, *, start: date, end: date) -> Sequence[SummaryRow]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT a.date, a.member_id, m.team_id, t.name AS team_name, m.generation
                FROM attendances a
                JOIN members m ON m.member_id = a.member_id
                LEFT JOIN teams t ON t.team_id = m.team_id
                WHERE a.type=%s AND a.date BETWEEN %s AND %s
                ORDER BY a.date ASC, a.timestamp ASC
                """,
                (AttendanceType.IN.value, start, end),
            )
            return [
                SummaryRow(
                    date=r["date"],
                    member_id=int(r["member_id"]),
                    team_id=int(r["team_id"]) if r.get("team_id") is not None else None,
                    team_name=r.get("team_name"),
                    generation=int(r["generation"]),
                )
                for r in fetchall(cur)
            ]

    def active_dates_between(self, *, start: date, end: date) -> set[date]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT DISTINCT date FROM attendances WHERE date BETWEEN %s AND %s", (start, end))
            return {r["date"] for r in fetchall(cur)}
