from __future__ import annotations

from datetime import datetime
from typing import Optional

from ..core.exceptions import ValidationError


def require_non_empty(value: Optional[str], field_name: str) -> str:
    if not value or not value.strip():
        raise ValidationError(f"{field_name} is required")
    return value.strip()


def require_end_after_start(start: Optional[datetime], end: Optional[datetime]) -> None:
    if start is None or end is None:
        raise ValidationError("Please select both start and end times.")
    if end <= start:
        raise ValidationError("End time must be after start time.")
