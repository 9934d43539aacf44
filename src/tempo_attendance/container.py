from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from .auth.service import AdminAuthService
from .common.datetime_utils import now_local
from .core.constants import STALE_CHECK_INTERVAL_SECONDS
from .core.enums import StorageBackend
from .database.connection import DBConfig, DatabaseConnection
from .reports.service import ReportService
from .roster.service import RosterService
from .shifts.active_index import ActiveShiftIndex
from .shifts.reconciler import StalenessReconciler
from .shifts.service import ShiftLifecycleEngine
from .storage.kv import JsonFileKeyValueStore, MemoryKeyValueStore
from .storage.local_store import LocalAttendanceStore
from .storage.mysql_store import MySQLAttendanceStore
from .storage.repository import AttendanceStore


@dataclass(frozen=True)
class Container:
    store: AttendanceStore
    active_index: ActiveShiftIndex

    auth_service: AdminAuthService
    roster_service: RosterService
    shift_engine: ShiftLifecycleEngine
    reconciler: StalenessReconciler
    report_service: ReportService


def build_store(
    backend: str | StorageBackend,
    *,
    db_config: Optional[dict] = None,
    local_store_path: Optional[str] = None,
) -> AttendanceStore:
    backend = StorageBackend(str(getattr(backend, "value", backend)).lower())
    if backend == StorageBackend.MYSQL:
        conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config or {}))
        return MySQLAttendanceStore(conn)

    kv = JsonFileKeyValueStore(local_store_path) if local_store_path else MemoryKeyValueStore()
    return LocalAttendanceStore(kv)


def build_container(
    *,
    backend: str | StorageBackend = StorageBackend.LOCAL,
    db_config: Optional[dict] = None,
    local_store_path: Optional[str] = None,
    admin_pin: str = "1234",
    stale_check_interval: float = STALE_CHECK_INTERVAL_SECONDS,
    clock: Callable[[], datetime] = now_local,
    store: Optional[AttendanceStore] = None,
) -> Container:
    store = store or build_store(backend, db_config=db_config, local_store_path=local_store_path)

    active_index = ActiveShiftIndex()
    reconciler = StalenessReconciler(active_index, interval=stale_check_interval, clock=clock)

    return Container(
        store=store,
        active_index=active_index,
        auth_service=AdminAuthService(admin_pin),
        roster_service=RosterService(store, active_index),
        shift_engine=ShiftLifecycleEngine(store, active_index, clock=clock),
        reconciler=reconciler,
        report_service=ReportService(store),
    )
