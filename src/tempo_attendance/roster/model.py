from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.constants import DEFAULT_DEPARTMENT


@dataclass(frozen=True)
class User:
    """Thực thể miền (domain): nhân viên trong roster.

    Lưu ý: Đây là đối tượng dữ liệu thuần (không chứa code truy cập DB).
    """

    id: str
    name: str
    color: str
    department: Optional[str] = None
    employee_id: Optional[str] = None
    rank: Optional[int] = None

    @property
    def department_or_default(self) -> str:
        return self.department or DEFAULT_DEPARTMENT

    @property
    def sort_rank(self) -> int:
        return self.rank or 0


@dataclass(frozen=True)
class Department:
    name: str
    rank: int
