from __future__ import annotations

import threading
from datetime import datetime
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from ..common.datetime_utils import is_same_day
from .model import Shift

Listener = Callable[["ActiveShiftIndex"], None]


def select_active(shifts: Iterable[Shift], now: datetime) -> Optional[Shift]:
    """The open shift that started on ``now``'s day, newest first if several."""
    candidates = [s for s in shifts if s.is_open and is_same_day(s.start_time, now)]
    if not candidates:
        return None
    return max(candidates, key=lambda s: s.start_time)


class ActiveShiftIndex:
    """User id -> currently open shift.

    A cached projection of the shift collection, never a source of truth: it can
    always be rebuilt with :meth:`rebuild`. Holds at most one entry per user by
    construction (a mapping keyed by user id).
    """

    def __init__(self):
        self._entries: Dict[str, Shift] = {}
        self._lock = threading.RLock()
        self._listeners: List[Listener] = []

    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    def get(self, user_id: str) -> Optional[Shift]:
        with self._lock:
            return self._entries.get(user_id)

    def __contains__(self, user_id: object) -> bool:
        with self._lock:
            return user_id in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def items(self) -> List[Tuple[str, Shift]]:
        with self._lock:
            return list(self._entries.items())

    def snapshot(self) -> Dict[str, Shift]:
        with self._lock:
            return dict(self._entries)

    def set(self, user_id: str, shift: Shift) -> None:
        with self._lock:
            self._entries[user_id] = shift
        self._notify()

    def remove(self, user_id: str) -> bool:
        with self._lock:
            removed = self._entries.pop(user_id, None) is not None
        if removed:
            self._notify()
        return removed

    def remove_many(self, user_ids: Iterable[str]) -> List[str]:
        with self._lock:
            removed = [uid for uid in user_ids if self._entries.pop(uid, None) is not None]
        if removed:
            self._notify()
        return removed

    def replace_all(self, entries: Mapping[str, Shift]) -> None:
        with self._lock:
            self._entries = dict(entries)
        self._notify()

    def rebuild(self, shifts_by_user: Mapping[str, Sequence[Shift]], now: datetime) -> None:
        """Recompute every entry from the full shift history of each user."""
        entries: Dict[str, Shift] = {}
        for user_id, shifts in shifts_by_user.items():
            active = select_active(shifts, now)
            if active is not None:
                entries[user_id] = active
        self.replace_all(entries)

    def matches(self, shifts_by_user: Mapping[str, Sequence[Shift]], now: datetime) -> bool:
        """True when the cached entries equal what :meth:`rebuild` would produce."""
        expected = {}
        for user_id, shifts in shifts_by_user.items():
            active = select_active(shifts, now)
            if active is not None:
                expected[user_id] = active.id
        with self._lock:
            actual = {uid: s.id for uid, s in self._entries.items()}
        return actual == expected
