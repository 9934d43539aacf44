from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from ..common.datetime_utils import from_iso, is_same_day, now_local, to_iso
from ..core.constants import CURRENT_SHIFT_KEY_PREFIX, DEPARTMENTS_KEY, SHIFTS_KEY_PREFIX, USERS_KEY
from ..core.exceptions import PersistenceError
from ..roster.model import User
from ..shifts.model import Shift
from .kv import KeyValueStore
from .repository import AttendanceStore

logger = logging.getLogger(__name__)


def user_to_record(user: User) -> Dict[str, Any]:
    return {
        "id": user.id,
        "name": user.name,
        "color": user.color,
        "department": user.department,
        "employeeId": user.employee_id,
        "rank": user.rank,
    }


def user_from_record(r: Dict[str, Any]) -> User:
    rank = r.get("rank")
    return User(
        id=str(r["id"]),
        name=r.get("name") or "",
        color=r.get("color") or "",
        department=r.get("department") or None,
        employee_id=r.get("employeeId"),
        rank=int(rank) if rank is not None else None,
    )


def shift_to_record(shift: Shift) -> Dict[str, Any]:
    return {
        "id": shift.id,
        "userId": shift.user_id,
        "startTime": to_iso(shift.start_time),
        "endTime": to_iso(shift.end_time),
        "note": shift.note,
    }


def shift_from_record(r: Dict[str, Any], user_id: str) -> Shift:
    return Shift(
        id=str(r["id"]),
        user_id=str(r.get("userId") or user_id),
        start_time=from_iso(r["startTime"]),
        end_time=from_iso(r.get("endTime")),
        note=r.get("note"),
    )


def _newest_first(shifts: List[Shift]) -> List[Shift]:
    return sorted(shifts, key=lambda s: s.start_time, reverse=True)


class LocalAttendanceStore(AttendanceStore):
    """Store backed by flat key-value persistence.

    Layout: one key for the user list, one for the ordered department names, and per
    user one key for the history list plus one key for the open ("current") shift.
    """

    def __init__(self, kv: KeyValueStore):
        self._kv = kv

    # --- raw helpers ---

    def _load(self, key: str, default: Any) -> Any:
        raw = self._kv.get(key)
        if raw is None:
            return default
        try:
            return json.loads(raw)
        except ValueError as exc:
            raise PersistenceError(f"Corrupt value under {key!r}") from exc

    def _dump(self, key: str, value: Any) -> None:
        self._kv.set(key, json.dumps(value, ensure_ascii=False))

    def _history(self, user_id: str) -> List[Shift]:
        rows = self._load(f"{SHIFTS_KEY_PREFIX}{user_id}", [])
        return [shift_from_record(r, user_id) for r in rows]

    def _save_history(self, user_id: str, shifts: List[Shift]) -> None:
        self._dump(f"{SHIFTS_KEY_PREFIX}{user_id}", [shift_to_record(s) for s in _newest_first(shifts)])

    def _current(self, user_id: str) -> Optional[Shift]:
        row = self._load(f"{CURRENT_SHIFT_KEY_PREFIX}{user_id}", None)
        return shift_from_record(row, user_id) if row else None

    def _save_current(self, user_id: str, shift: Optional[Shift]) -> None:
        key = f"{CURRENT_SHIFT_KEY_PREFIX}{user_id}"
        if shift is None:
            self._kv.remove(key)
        else:
            self._dump(key, shift_to_record(shift))

    # --- users ---

    def list_users(self) -> Sequence[User]:
        return [user_from_record(r) for r in self._load(USERS_KEY, [])]

    def save_user(self, user: User) -> None:
        users = list(self.list_users())
        for i, u in enumerate(users):
            if u.id == user.id:
                users[i] = user
                break
        else:
            users.append(user)
        self._dump(USERS_KEY, [user_to_record(u) for u in users])

    def delete_user(self, user_id: str) -> None:
        users = [u for u in self.list_users() if u.id != user_id]
        self._dump(USERS_KEY, [user_to_record(u) for u in users])
        self._kv.remove(f"{SHIFTS_KEY_PREFIX}{user_id}")
        self._kv.remove(f"{CURRENT_SHIFT_KEY_PREFIX}{user_id}")

    # --- departments ---

    def list_departments(self) -> Sequence[str]:
        return [str(d) for d in self._load(DEPARTMENTS_KEY, [])]

    def save_departments(self, names: Sequence[str]) -> None:
        self._dump(DEPARTMENTS_KEY, list(dict.fromkeys(names)))

    def delete_department(self, name: str) -> None:
        self._dump(DEPARTMENTS_KEY, [d for d in self.list_departments() if d != name])

    # --- shifts ---

    def list_shifts(self, user_id: str) -> Sequence[Shift]:
        shifts = self._history(user_id)
        current = self._current(user_id)
        if current is not None:
            shifts = [current] + [s for s in shifts if s.id != current.id]
        return _newest_first(shifts)

    def list_active_shifts(self, now: Optional[datetime] = None) -> Dict[str, Shift]:
        now = now or now_local()
        out: Dict[str, Shift] = {}
        for user in self.list_users():
            current = self._current(user.id)
            if current is not None and current.is_open and is_same_day(current.start_time, now):
                out[user.id] = current
        return out

    def _demote_current(self, user_id: str, keep_id: str, history: List[Shift]) -> List[Shift]:
        # An older open shift leaves the current slot but stays in history, end time empty.
        current = self._current(user_id)
        if current is not None and current.id != keep_id:
            logger.info("Moving open shift %s of user %s into history", current.id, user_id)
            history = [current] + [s for s in history if s.id != current.id]
        return history

    def start_shift(self, user: User, shift: Shift) -> None:
        history = self._demote_current(user.id, shift.id, self._history(user.id))
        history = [s for s in history if s.id != shift.id]
        self._save_history(user.id, history)
        self._save_current(user.id, shift.reopened())

    def resume_shift(self, user: User, shift_id: str) -> None:
        current = self._current(user.id)
        if current is not None and current.id == shift_id:
            self._save_current(user.id, current.reopened())
            return

        history = self._history(user.id)
        target = next((s for s in history if s.id == shift_id), None)
        if target is None:
            logger.warning("resume_shift: shift %s not found for user %s", shift_id, user.id)
            return

        history = self._demote_current(user.id, shift_id, history)
        self._save_history(user.id, [s for s in history if s.id != shift_id])
        self._save_current(user.id, target.reopened())

    def end_shift(self, user: User, shift: Shift) -> None:
        history = [shift] + [s for s in self._history(user.id) if s.id != shift.id]
        self._save_history(user.id, history)
        current = self._current(user.id)
        if current is not None and current.id == shift.id:
            self._save_current(user.id, None)

    def add_shift(self, user: User, shift: Shift) -> None:
        history = [shift] + [s for s in self._history(user.id) if s.id != shift.id]
        self._save_history(user.id, history)

    def delete_shift(self, user_id: str, shift_id: str) -> None:
        current = self._current(user_id)
        if current is not None and current.id == shift_id:
            self._save_current(user_id, None)
            return

        history = self._history(user_id)
        remaining = [s for s in history if s.id != shift_id]
        if len(remaining) != len(history):
            self._save_history(user_id, remaining)
