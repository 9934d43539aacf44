from __future__ import annotations

import random
from datetime import datetime, timedelta

from ..core.constants import ACCENT_COLORS


def format_duration(value: timedelta) -> str:
    """HH:MM:SS, negative durations clamp to zero."""
    total_seconds = max(0, int(value.total_seconds()))
    hours, rest = divmod(total_seconds, 3600)
    minutes, seconds = divmod(rest, 60)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"


def format_csv_date(value: datetime) -> str:
    return value.strftime("%Y/%m/%d")


def format_time(value: datetime) -> str:
    return value.strftime("%H:%M")


def random_color() -> str:
    return random.choice(ACCENT_COLORS)


def random_employee_id() -> str:
    return str(random.randint(1000, 9999))
