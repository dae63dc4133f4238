from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping, Optional, Sequence

import mysql.connector

from ..core.exceptions import AlreadyRegistered, DuplicateIdentity
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, duplicate_key_name, fetchall, fetchone, is_duplicate_key
from ..members.model import Member
from ..members.mysql_member_repository import row_to_member
from .model import RegistrationDetails, TempRegistration
from .repository import RegistrationRepository

_COLUMNS = "registration_id, card_id, qr_token, created_at, expires_at, accessed_at, is_used"


def _to_registration(r: Mapping[str, Any]) -> TempRegistration:
    return TempRegistration(
        registration_id=int(r["registration_id"]),
        card_id=r["card_id"],
        token=r["qr_token"],
        created_at=r["created_at"],
        expires_at=r["expires_at"],
        accessed_at=r.get("accessed_at"),
        is_used=bool(r.get("is_used")),
    )


def _duplicate_error(exc: mysql.connector.Error) -> Exception:
    key = duplicate_key_name(exc)
    if key.endswith("card_id"):
        return AlreadyRegistered()
    if key.endswith("display_name"):
        return DuplicateIdentity(DuplicateIdentity.DISPLAY_NAME)
    return DuplicateIdentity(DuplicateIdentity.EXTERNAL_IDENTITY)


class MySQLRegistrationRepository(RegistrationRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def upsert_for_card(
        self,
        *,
        card_id: str,
        token: str,
        created_at: datetime,
        expires_at: datetime,
    ) -> TempRegistration:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO temp_registrations(card_id, qr_token, created_at, expires_at, accessed_at, is_used)
                VALUES(%s,%s,%s,%s,NULL,0)
                ON DUPLICATE KEY UPDATE
                    qr_token=VALUES(qr_token),
                    created_at=VALUES(created_at),
                    expires_at=VALUES(expires_at),
                    accessed_at=NULL,
                    is_used=0
                """,
                (card_id, token, created_at, expires_at),
            )
            cur.execute(f"SELECT {_COLUMNS} FROM temp_registrations WHERE card_id=%s", (card_id,))
            return _to_registration(fetchone(cur))

    def get_by_token(self, token: str) -> Optional[TempRegistration]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM temp_registrations WHERE qr_token=%s", (token,))
            r = fetchone(cur)
            return _to_registration(r) if r else None

    def mark_accessed(self, *, registration_id: int, accessed_at: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE temp_registrations SET accessed_at=%s WHERE registration_id=%s AND accessed_at IS NULL",
                (accessed_at, int(registration_id)),
            )
            return cur.rowcount > 0

    def complete(
        self,
        *,
        registration_id: int,
        external_id: str,
        details: RegistrationDetails,
    ) -> Optional[Member]:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    "UPDATE temp_registrations SET is_used=1 WHERE registration_id=%s AND is_used=0",
                    (int(registration_id),),
                )
                if cur.rowcount != 1:
                    return None

                cur.execute(
                    """
                    INSERT INTO members(external_id, display_name, card_id, generation, student_number, team_id, role)
                    SELECT %s, %s, card_id, %s, %s, %s, 'member'
                    FROM temp_registrations
                    WHERE registration_id=%s
                    """,
                    (
                        external_id,
                        details.display_name,
                        int(details.generation),
                        details.student_number,
                        int(details.team_id),
                        int(registration_id),
                    ),
                )
                member_id = int(cur.lastrowid)
                cur.execute(
                    """
                    SELECT member_id, external_id, display_name, card_id, generation, student_number,
                           team_id, role, is_active, joined_at, updated_at
                    FROM members WHERE member_id=%s
                    """,
                    (member_id,),
                )
                return row_to_member(fetchone(cur))
        except mysql.connector.IntegrityError as exc:
            if is_duplicate_key(exc):
                raise _duplicate_error(exc) from exc
            raise

    def list_all(self) -> Sequence[TempRegistration]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM temp_registrations ORDER BY created_at DESC")
            return [_to_registration(r) for r in fetchall(cur)]

    def delete(self, *, registration_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM temp_registrations WHERE registration_id=%s", (int(registration_id),))
            return cur.rowcount > 0
