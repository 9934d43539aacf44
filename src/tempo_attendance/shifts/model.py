from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from typing import Optional


@dataclass(frozen=True)
class Shift:
    """Thực thể miền (domain): một ca làm việc của nhân viên.

    ``end_time is None`` means the shift is still open.
    """

    id: str
    user_id: str
    start_time: datetime
    end_time: Optional[datetime] = None
    note: Optional[str] = None

    @property
    def is_open(self) -> bool:
        return self.end_time is None

    def duration(self, now: datetime) -> timedelta:
        end = self.end_time if self.end_time is not None else now
        return max(timedelta(0), end - self.start_time)

    def reopened(self) -> "Shift":
        return replace(self, end_time=None)

    def closed_at(self, end_time: datetime) -> "Shift":
        return replace(self, end_time=end_time)
