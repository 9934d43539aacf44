from __future__ import annotations

from datetime import date, datetime, time, timedelta
from typing import Optional, Tuple


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def parse_iso_datetime(value: str) -> datetime:
    """Parse an ISO 8601 local timestamp (``YYYY-MM-DDTHH:MM[:SS]``)."""
    return datetime.fromisoformat(value)


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mock easier.
    """
    return datetime.now()


def is_same_day(a: datetime, b: datetime) -> bool:
    """Same local calendar date (year, month, day), not a rolling 24h window."""
    return (a.year, a.month, a.day) == (b.year, b.month, b.day)


def day_bounds(moment: datetime) -> Tuple[datetime, datetime]:
    """Half-open [start, end) range covering the local day of ``moment``."""
    start = datetime.combine(moment.date(), time.min)
    return start, start + timedelta(days=1)


def to_iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def from_iso(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None
