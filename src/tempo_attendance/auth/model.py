from __future__ import annotations

from dataclasses import dataclass

from ..core.constants import ALL_DEPARTMENTS


@dataclass
class SessionContext:
    """Per-client state handed to operations: admin capability and the viewed department."""

    is_admin: bool = False
    selected_department: str = ALL_DEPARTMENTS

    @property
    def is_viewing_all(self) -> bool:
        return self.selected_department == ALL_DEPARTMENTS
