from __future__ import annotations

from datetime import datetime

import pytest

from tempo_attendance.auth.model import SessionContext
from tempo_attendance.roster.model import User
from tempo_attendance.storage.kv import MemoryKeyValueStore
from tempo_attendance.storage.local_store import LocalAttendanceStore


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2026, 2, 2, 9, 0, 0)


@pytest.fixture
def kv() -> MemoryKeyValueStore:
    return MemoryKeyValueStore()


@pytest.fixture
def store(kv) -> LocalAttendanceStore:
    return LocalAttendanceStore(kv)


@pytest.fixture
def admin() -> SessionContext:
    return SessionContext(is_admin=True)


@pytest.fixture
def guest() -> SessionContext:
    return SessionContext(is_admin=False)


def make_user(user_id: str, *, department: str | None = "X", rank: int | None = None, name: str | None = None) -> User:
    return User(
        id=user_id,
        name=name or user_id.upper(),
        color="#3b82f6",
        department=department,
        employee_id="1000",
        rank=rank,
    )


class MovableClock:
    """Callable clock whose ``now`` a test can move forward."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now
