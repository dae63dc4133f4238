from __future__ import annotations

from typing import Any, Mapping, Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Announcement
from .repository import AnnouncementRepository

_SELECT = """
    SELECT a.announcement_id, a.title, a.content, a.author_id, m.display_name AS author_name,
           a.is_active, a.is_current, a.created_at, a.updated_at
    FROM announcements a
    LEFT JOIN members m ON m.member_id = a.author_id
"""

_UPDATABLE = ("title", "content", "is_active", "is_current")


def _to_announcement(r: Mapping[str, Any]) -> Announcement:
    return Announcement(
        announcement_id=int(r["announcement_id"]),
        title=r["title"],
        content=r["content"],
        author_id=int(r["author_id"]) if r.get("author_id") is not None else None,
        author_name=r.get("author_name"),
        is_active=bool(r["is_active"]),
        is_current=bool(r["is_current"]),
        created_at=r.get("created_at"),
        updated_at=r.get("updated_at"),
    )


class MySQLAnnouncementRepository(AnnouncementRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, announcement_id: int) -> Optional[Announcement]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE a.announcement_id=%s", (int(announcement_id),))
            r = fetchone(cur)
            return _to_announcement(r) if r else None

    def get_current(self) -> Optional[Announcement]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                _SELECT + " WHERE a.is_current=1 AND a.is_active=1 ORDER BY a.updated_at DESC LIMIT 1"
            )
            r = fetchone(cur)
            return _to_announcement(r) if r else None

    def list_all(self) -> Sequence[Announcement]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " ORDER BY a.created_at DESC, a.announcement_id DESC")
            return [_to_announcement(r) for r in fetchall(cur)]

    def create(self, *, title: str, content: str, author_id: Optional[int], is_current: bool = False) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            if is_current:
                cur.execute("UPDATE announcements SET is_current=0 WHERE is_current=1")
            cur.execute(
                "INSERT INTO announcements(title, content, author_id, is_current) VALUES(%s,%s,%s,%s)",
                (title, content, author_id, 1 if is_current else 0),
            )
            return int(cur.lastrowid)

    def update(self, *, announcement_id: int, fields: Mapping[str, Any]) -> bool:
        cols = [k for k in _UPDATABLE if k in fields]
        if not cols:
            return False

        values = [int(bool(fields[k])) if k in ("is_active", "is_current") else fields[k] for k in cols]
        with db_cursor(self._conn_factory) as (_, cur):
            if fields.get("is_current"):
                cur.execute(
                    "UPDATE announcements SET is_current=0 WHERE is_current=1 AND announcement_id<>%s",
                    (int(announcement_id),),
                )
            cur.execute(
                f"UPDATE announcements SET {', '.join(f'{c}=%s' for c in cols)} WHERE announcement_id=%s",
                (*values, int(announcement_id)),
            )
            return cur.rowcount > 0

    def deactivate(self, *, announcement_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE announcements SET is_active=0, is_current=0 WHERE announcement_id=%s",
                (int(announcement_id),),
            )
            return cur.rowcount > 0
