from __future__ import annotations

import csv
import io
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Dict, List, Optional, Sequence

from ..common.datetime_utils import is_same_day, now_local
from ..common.formatting import format_csv_date, format_duration, format_time
from ..core.constants import WEEK_DAYS
from ..core.enums import HistoryStatus
from ..roster.model import User
from ..shifts.model import Shift
from ..storage.repository import AttendanceStore

CSV_BOM = "\ufeff"


@dataclass(frozen=True)
class ShiftReportRow:
    """Read-model phục vụ báo cáo/xuất file."""

    shift: Shift
    user_name: str
    employee_id: Optional[str]
    department: str


def history_status(shift: Shift, now: datetime) -> HistoryStatus:
    if shift.end_time is not None:
        return HistoryStatus.COMPLETE
    if is_same_day(shift.start_time, now):
        return HistoryStatus.ACTIVE
    return HistoryStatus.MISSING


def end_label(shift: Shift, now: datetime) -> str:
    status = history_status(shift, now)
    if status == HistoryStatus.COMPLETE:
        return format_time(shift.end_time)
    return "Active" if status == HistoryStatus.ACTIVE else "Missing"


def duration_label(shift: Shift) -> str:
    return format_duration(shift.duration(shift.end_time)) if shift.end_time else "-"


class ReportService:
    def __init__(self, store: AttendanceStore):
        self._store = store

    def enriched_shifts(
        self,
        users: Sequence[User],
        *,
        department: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        search: Optional[str] = None,
    ) -> List[ShiftReportRow]:
        needle = (search or "").strip().lower()
        rows: List[ShiftReportRow] = []

        for user in users:
            if department and user.department_or_default != department:
                continue
            if needle and needle not in user.name.lower() and needle not in (user.employee_id or "").lower():
                continue

            for shift in self._store.list_shifts(user.id):
                day = shift.start_time.date()
                if start_date and day < start_date:
                    continue
                if end_date and day > end_date:
                    continue
                rows.append(
                    ShiftReportRow(
                        shift=shift,
                        user_name=user.name,
                        employee_id=user.employee_id,
                        department=user.department_or_default,
                    )
                )

        rows.sort(key=lambda r: r.shift.start_time, reverse=True)
        return rows

    def week_hours(self, shifts: Sequence[Shift], today: Optional[date] = None) -> List[Dict[str, object]]:
        """Completed hours per day over the last 7 days, oldest day first."""
        today = today or now_local().date()
        days = [today - timedelta(days=offset) for offset in range(WEEK_DAYS - 1, -1, -1)]
        totals: Dict[date, float] = {d: 0.0 for d in days}

        for shift in shifts:
            if shift.end_time is None:
                continue
            day = shift.start_time.date()
            if day in totals:
                totals[day] += shift.duration(shift.end_time).total_seconds() / 3600

        return [{"date": d.isoformat(), "name": d.strftime("%a"), "hours": round(totals[d], 2)} for d in days]

    def export_csv(self, rows: Sequence[ShiftReportRow], now: Optional[datetime] = None) -> str:
        now = now or now_local()
        out = io.StringIO()
        writer = csv.writer(out, quoting=csv.QUOTE_ALL, lineterminator="\n")
        writer.writerow(["Employee Name", "ID", "Department", "Date", "Start Time", "End Time", "Duration"])
        for r in rows:
            writer.writerow(
                [
                    r.user_name,
                    r.employee_id or "",
                    r.department,
                    format_csv_date(r.shift.start_time),
                    format_time(r.shift.start_time),
                    end_label(r.shift, now),
                    duration_label(r.shift),
                ]
            )
        return CSV_BOM + out.getvalue()

    def export_user_csv(self, shifts: Sequence[Shift], now: Optional[datetime] = None) -> str:
        now = now or now_local()
        out = io.StringIO()
        writer = csv.writer(out, quoting=csv.QUOTE_ALL, lineterminator="\n")
        writer.writerow(["Date", "Start Time", "End Time", "Duration", "Note"])
        for shift in shifts:
            writer.writerow(
                [
                    format_csv_date(shift.start_time),
                    format_time(shift.start_time),
                    end_label(shift, now),
                    duration_label(shift),
                    shift.note or "",
                ]
            )
        return CSV_BOM + out.getvalue()
