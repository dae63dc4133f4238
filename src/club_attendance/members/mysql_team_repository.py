from __future__ import annotations

from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .team_model import Team
from .team_repository import TeamRepository


class MySQLTeamRepository(TeamRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, team_id: int) -> Optional[Team]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT team_id, name FROM teams WHERE team_id=%s", (int(team_id),))
            r = fetchone(cur)
            return Team(team_id=int(r["team_id"]), name=r["name"]) if r else None

    def list_all(self) -> Sequence[Team]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT team_id, name FROM teams ORDER BY name")
            return [Team(team_id=int(r["team_id"]), name=r["name"]) for r in fetchall(cur)]

    def create(self, *, name: str) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("INSERT INTO teams(name) VALUES(%s)", (name,))
            return int(cur.lastrowid)

    def rename(self, *, team_id: int, name: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE teams SET name=%s WHERE team_id=%s", (name, int(team_id)))
            return cur.rowcount > 0

    def delete(self, *, team_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM teams WHERE team_id=%s", (int(team_id),))
            return cur.rowcount > 0
