from __future__ import annotations

import logging
import uuid
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional, Sequence

from ..auth.model import SessionContext
from ..auth.service import require_admin
from ..common.datetime_utils import is_same_day, now_local
from ..common.validators import require_end_after_start
from ..core.enums import ShiftState
from ..core.exceptions import PersistenceError, ValidationError
from ..core.result import OperationResult
from ..roster.model import User
from ..storage.repository import AttendanceStore
from .active_index import ActiveShiftIndex
from .model import Shift

logger = logging.getLogger(__name__)


class ShiftLifecycleEngine:
    """Clock-in / resume / clock-out for one user at a time.

    Dispatch is gated on the active-shift index, not re-validated against the store.
    Callers serialize operations per user.
    """

    def __init__(
        self,
        store: AttendanceStore,
        index: ActiveShiftIndex | None = None,
        *,
        clock: Callable[[], datetime] = now_local,
    ):
        self._store = store
        self._index = index if index is not None else ActiveShiftIndex()
        self._clock = clock
        self._history: Dict[str, List[Shift]] = {}

    @property
    def index(self) -> ActiveShiftIndex:
        return self._index

    # --- active index ---

    def load_active(self, now: datetime | None = None) -> Dict[str, Shift]:
        now = now or self._clock()
        entries = self._store.list_active_shifts(now)
        self._index.replace_all(entries)
        return entries

    def rebuild_active_index(self, users: Sequence[User], now: datetime | None = None) -> None:
        now = now or self._clock()
        self._index.rebuild({u.id: self._store.list_shifts(u.id) for u in users}, now)

    def state_of(self, user_id: str, now: datetime | None = None) -> ShiftState:
        active = self._index.get(user_id)
        if active is None:
            return ShiftState.OUT
        now = now or self._clock()
        return ShiftState.WORKING if is_same_day(active.start_time, now) else ShiftState.STALE

    def elapsed(self, user_id: str, now: datetime | None = None) -> timedelta:
        active = self._index.get(user_id)
        if active is None:
            return timedelta(0)
        return active.duration(now or self._clock())

    # --- displayed history ---

    def _visible(self, user_id: str) -> List[Shift]:
        # The shift shown as active is not part of the displayed history.
        active = self._index.get(user_id)
        return [s for s in self._history[user_id] if active is None or s.id != active.id]

    def load_history(self, user_id: str) -> List[Shift]:
        self._history[user_id] = list(self._store.list_shifts(user_id))
        return self._visible(user_id)

    def history(self, user_id: str) -> List[Shift]:
        if user_id not in self._history:
            return self.load_history(user_id)
        return self._visible(user_id)

    def forget_history(self, user_id: str) -> None:
        self._history.pop(user_id, None)

    def _drop_from_history(self, user_id: str, shift_id: str) -> None:
        if user_id in self._history:
            self._history[user_id] = [s for s in self._history[user_id] if s.id != shift_id]

    def _put_in_history(self, user_id: str, shift: Shift) -> None:
        if user_id not in self._history:
            return
        shifts = self._history[user_id]
        for i, s in enumerate(shifts):
            if s.id == shift.id:
                shifts[i] = shift
                return
        shifts.insert(0, shift)

    # --- transitions ---

    def clock_in(self, user: User, now: datetime | None = None) -> OperationResult:
        now = now or self._clock()
        state = self.state_of(user.id, now)
        if state == ShiftState.WORKING:
            raise ValidationError("Employee is already clocked in")
        if state == ShiftState.STALE:
            # Yesterday's open shift stays in history untouched; it only leaves the index.
            self._index.remove(user.id)

        try:
            past = self._store.list_shifts(user.id)
        except PersistenceError as exc:
            logger.exception("Clock-in for %s failed while reading history", user.id)
            return OperationResult.failure(exc)

        today_shift = next((s for s in past if is_same_day(s.start_time, now)), None)
        try:
            if today_shift is not None:
                shift = today_shift.reopened()
                self._put_in_history(user.id, shift)
                self._store.resume_shift(user, shift.id)
                logger.info("Resumed shift %s for %s", shift.id, user.id)
            else:
                shift = Shift(id=str(uuid.uuid4()), user_id=user.id, start_time=now)
                self._put_in_history(user.id, shift)
                self._store.start_shift(user, shift)
                logger.info("Started shift %s for %s", shift.id, user.id)
        except PersistenceError as exc:
            logger.exception("Clock-in for %s failed", user.id)
            return OperationResult.failure(exc)

        self._index.set(user.id, shift)
        return OperationResult.success(shift)

    def clock_out(self, user: User, now: datetime | None = None) -> OperationResult:
        now = now or self._clock()
        active = self._index.get(user.id)
        if active is None:
            raise ValidationError("Employee is not clocked in")

        completed = active.closed_at(now)
        self._put_in_history(user.id, completed)

        try:
            self._store.end_shift(user, completed)
        except PersistenceError as exc:
            logger.exception("Clock-out for %s failed", user.id)
            return OperationResult.failure(exc, completed)

        # Only after the completed record is durable.
        self._index.remove(user.id)
        logger.info("Ended shift %s for %s", completed.id, user.id)
        return OperationResult.success(completed)

    def toggle(self, user: User, now: datetime | None = None) -> OperationResult:
        now = now or self._clock()
        if self.state_of(user.id, now) == ShiftState.WORKING:
            return self.clock_out(user, now)
        return self.clock_in(user, now)

    # --- admin corrections ---

    def add_manual_entry(
        self,
        session: SessionContext,
        user: User,
        start_time: datetime | None,
        end_time: datetime | None,
        note: Optional[str] = None,
    ) -> OperationResult:
        require_admin(session)
        require_end_after_start(start_time, end_time)

        shift = Shift(
            id=str(uuid.uuid4()),
            user_id=user.id,
            start_time=start_time,
            end_time=end_time,
            note=(note or "").strip() or None,
        )
        if user.id in self._history:
            self._history[user.id] = sorted(
                self._history[user.id] + [shift], key=lambda s: s.start_time, reverse=True
            )

        try:
            self._store.add_shift(user, shift)
        except PersistenceError as exc:
            logger.exception("Manual entry for %s failed", user.id)
            return OperationResult.failure(exc, shift)
        return OperationResult.success(shift)

    def delete_shift(self, session: SessionContext, user_id: str, shift_id: str) -> OperationResult:
        require_admin(session)
        self._drop_from_history(user_id, shift_id)
        active = self._index.get(user_id)
        if active is not None and active.id == shift_id:
            self._index.remove(user_id)

        try:
            self._store.delete_shift(user_id, shift_id)
        except PersistenceError as exc:
            logger.exception("Deleting shift %s failed", shift_id)
            return OperationResult.failure(exc)
        logger.info("Deleted shift %s of %s", shift_id, user_id)
        return OperationResult.success(shift_id)
