from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional

import mysql.connector
from mysql.connector import errorcode

from ..core.exceptions import StoreUnavailable
from .connection import DatabaseConnection

logger = logging.getLogger(__name__)


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True):
    """One connection, one transaction: commit on success, rollback on error."""

    conn = conn_factory.connect()
    try:
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


@contextmanager
def store_errors(operation: str) -> Iterator[None]:
    """Translate driver failures into StoreUnavailable, logging the detail."""

    try:
        yield
    except mysql.connector.Error as exc:
        logger.exception("store failure during %s: %s", operation, exc)
        raise StoreUnavailable() from exc


def fetchone(cur) -> Optional[Dict[str, Any]]:
    row = cur.fetchone()
    return row if row else None


def fetchall(cur) -> List[Dict[str, Any]]:
    rows = cur.fetchall()
    return list(rows or [])


def is_duplicate_key(exc: BaseException) -> bool:
    return isinstance(exc, mysql.connector.IntegrityError) and getattr(exc, "errno", None) == errorcode.ER_DUP_ENTRY


def duplicate_key_name(exc: BaseException) -> str:
    """Name of the unique index named in a duplicate-key error message, or ''."""

    msg = getattr(exc, "msg", None) or str(exc)
    marker = "for key '"
    start = msg.find(marker)
    if start < 0:
        return ""
    key = msg[start + len(marker):].split("'", 1)[0]
    return key.rsplit(".", 1)[-1]


def placeholders(values) -> str:
    return ",".join(["%s"] * len(values))
