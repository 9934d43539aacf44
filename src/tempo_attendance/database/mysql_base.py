from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Dict, List, Optional

import mysql.connector

from ..core.exceptions import PersistenceError

logger = logging.getLogger(__name__)


@contextmanager
def db_cursor(conn_factory, *, dictionary: bool = True):
    """Connection + cursor for one unit of work; commit on success, rollback on error.

    Driver errors surface as ``PersistenceError``.
    """

    try:
        conn = conn_factory.connect()
    except mysql.connector.Error as exc:
        logger.exception("MySQL connect failed")
        raise PersistenceError(f"Database unavailable: {exc}") from exc

    try:
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except mysql.connector.Error as exc:
        conn.rollback()
        logger.exception("MySQL statement failed")
        raise PersistenceError(f"Database error: {exc}") from exc
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def fetchall(cur) -> List[Dict[str, Any]]:
    rows = cur.fetchall()
    return list(rows or [])


def normalize_mysql_datetime(value: Any) -> Optional[datetime]:
    """Normalize DATETIME values across connector implementations.

    mysql-connector can return DATETIME as:
    - datetime.datetime
    - string (e.g. '2026-02-01 08:30:00' or '2026-02-01 08:30:00.123')
    """

    if value is None:
        return None

    if isinstance(value, datetime):
        return value

    if isinstance(value, (bytes, bytearray)):
        value = value.decode("utf-8")

    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        return datetime.fromisoformat(text.replace(" ", "T", 1))

    raise TypeError(f"Unsupported MySQL DATETIME value type: {type(value)!r}")
