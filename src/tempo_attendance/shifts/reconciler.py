from __future__ import annotations

import logging
import threading
from datetime import datetime
from typing import Callable, List, Optional

from ..common.datetime_utils import is_same_day, now_local
from ..core.constants import STALE_CHECK_INTERVAL_SECONDS
from .active_index import ActiveShiftIndex

logger = logging.getLogger(__name__)


class StalenessReconciler:
    """Drops index entries whose shift did not start today.

    Models an employee who forgot to clock out: the status resets to "Out" while the
    shift record itself (end time still empty) stays in history untouched. Runs every
    ``interval`` seconds and once right after each index change.
    """

    def __init__(
        self,
        index: ActiveShiftIndex,
        *,
        interval: float = STALE_CHECK_INTERVAL_SECONDS,
        clock: Callable[[], datetime] = now_local,
    ):
        self._index = index
        self._interval = float(interval)
        self._clock = clock
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._running = threading.local()
        index.subscribe(self._on_index_change)

    def reconcile(self, now: datetime | None = None) -> List[str]:
        now = now or self._clock()
        stale = [uid for uid, shift in self._index.items() if not is_same_day(shift.start_time, now)]
        if not stale:
            return []

        removed = self._index.remove_many(stale)
        for user_id in removed:
            logger.info("Shift of %s is from a previous day; status reset to out", user_id)
        return removed

    def _on_index_change(self, _index: ActiveShiftIndex) -> None:
        if getattr(self._running, "active", False):
            return
        self._running.active = True
        try:
            self.reconcile()
        finally:
            self._running.active = False

    # --- periodic loop ---

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.is_running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._loop, name="staleness-reconciler", daemon=True)
        self._thread.start()

    def stop(self, timeout: float | None = None) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    def _loop(self) -> None:
        while not self._stop.wait(self._interval):
            try:
                self.reconcile()
            except Exception:
                logger.exception("Staleness check failed")
