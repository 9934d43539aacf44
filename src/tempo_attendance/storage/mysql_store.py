from __future__ import annotations

from datetime import datetime
from typing import Dict, Optional, Sequence

from ..common.datetime_utils import day_bounds, now_local
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, normalize_mysql_datetime
from ..roster.model import Department, User
from ..shifts.model import Shift
from .repository import AttendanceStore


def _row_to_user(r: dict) -> User:
    rank = r.get("rank")
    return User(
        id=str(r["id"]),
        name=r["name"],
        color=r.get("color") or "",
        department=r.get("department") or None,
        employee_id=r.get("employee_id"),
        rank=int(rank) if rank is not None else None,
    )


def _row_to_shift(r: dict) -> Shift:
    return Shift(
        id=str(r["id"]),
        user_id=str(r["user_id"]),
        start_time=normalize_mysql_datetime(r["start_time"]),
        end_time=normalize_mysql_datetime(r.get("end_time")),
        note=r.get("note"),
    )


class MySQLAttendanceStore(AttendanceStore):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    # --- users ---

    def list_users(self) -> Sequence[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT id, name, color, department, employee_id, `rank`
                FROM users
                ORDER BY `rank`, name
                """
            )
            return [_row_to_user(r) for r in fetchall(cur)]

    def save_user(self, user: User) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO users(id, name, color, department, employee_id, `rank`)
                VALUES(%s,%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    name=VALUES(name), color=VALUES(color), department=VALUES(department),
                    employee_id=VALUES(employee_id), `rank`=VALUES(`rank`)
                """,
                (user.id, user.name, user.color, user.department, user.employee_id, user.rank),
            )

    def delete_user(self, user_id: str) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM shifts WHERE user_id=%s", (user_id,))
            cur.execute("DELETE FROM users WHERE id=%s", (user_id,))

    # --- departments ---

    def list_departments(self) -> Sequence[str]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT name, `rank` FROM departments ORDER BY `rank`, name")
            rows = [Department(name=r["name"], rank=int(r.get("rank") or 0)) for r in fetchall(cur)]
        return [d.name for d in sorted(rows, key=lambda d: (d.rank, d.name))]

    def save_departments(self, names: Sequence[str]) -> None:
        names = list(dict.fromkeys(names))
        rows = [Department(name=name, rank=position) for position, name in enumerate(names)]
        with db_cursor(self._conn_factory) as (_, cur):
            for dept in rows:
                cur.execute(
                    """
                    INSERT INTO departments(name, `rank`) VALUES(%s,%s)
                    ON DUPLICATE KEY UPDATE `rank`=VALUES(`rank`)
                    """,
                    (dept.name, dept.rank),
                )
            # Prune rows that are no longer listed (e.g. the old name after a rename).
            if names:
                placeholders = ",".join(["%s"] * len(names))
                cur.execute(f"DELETE FROM departments WHERE name NOT IN ({placeholders})", tuple(names))
            else:
                cur.execute("DELETE FROM departments")

    def delete_department(self, name: str) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM departments WHERE name=%s", (name,))

    # --- shifts ---

    def list_shifts(self, user_id: str) -> Sequence[Shift]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT id, user_id, start_time, end_time, note
                FROM shifts
                WHERE user_id=%s
                ORDER BY start_time DESC
                """,
                (user_id,),
            )
            return [_row_to_shift(r) for r in fetchall(cur)]

    def list_active_shifts(self, now: Optional[datetime] = None) -> Dict[str, Shift]:
        day_start, day_end = day_bounds(now or now_local())
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT id, user_id, start_time, end_time, note
                FROM shifts
                WHERE end_time IS NULL AND start_time >= %s AND start_time < %s
                ORDER BY start_time
                """,
                (day_start, day_end),
            )
            out: Dict[str, Shift] = {}
            for r in fetchall(cur):
                shift = _row_to_shift(r)
                out[shift.user_id] = shift
            return out

    def start_shift(self, user: User, shift: Shift) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO shifts(id, user_id, start_time, end_time, note)
                VALUES(%s,%s,%s,NULL,%s)
                ON DUPLICATE KEY UPDATE start_time=VALUES(start_time), end_time=NULL, note=VALUES(note)
                """,
                (shift.id, user.id, shift.start_time, shift.note),
            )

    def resume_shift(self, user: User, shift_id: str) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE shifts SET end_time=NULL WHERE id=%s AND user_id=%s",
                (shift_id, user.id),
            )

    def end_shift(self, user: User, shift: Shift) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE shifts SET end_time=%s WHERE id=%s AND user_id=%s",
                (shift.end_time, shift.id, user.id),
            )

    def add_shift(self, user: User, shift: Shift) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO shifts(id, user_id, start_time, end_time, note)
                VALUES(%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE start_time=VALUES(start_time), end_time=VALUES(end_time), note=VALUES(note)
                """,
                (shift.id, user.id, shift.start_time, shift.end_time, shift.note),
            )

    def delete_shift(self, user_id: str, shift_id: str) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM shifts WHERE id=%s AND user_id=%s", (shift_id, user_id))
