from __future__ import annotations

from enum import Enum


class ShiftState(str, Enum):
    """Trạng thái hiển thị của một nhân viên."""

    OUT = "OUT"
    WORKING = "WORKING"
    STALE = "STALE"


class HistoryStatus(str, Enum):
    """How a shift row is rendered in history and exports."""

    COMPLETE = "COMPLETE"
    ACTIVE = "ACTIVE"
    MISSING = "MISSING"


class MoveDirection(str, Enum):
    PREV = "prev"
    NEXT = "next"


class StorageBackend(str, Enum):
    MYSQL = "mysql"
    LOCAL = "local"
