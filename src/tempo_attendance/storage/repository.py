from __future__ import annotations

from datetime import datetime
from typing import Dict, Optional, Protocol, Sequence

from ..roster.model import User
from ..shifts.model import Shift


class AttendanceStore(Protocol):
    """Giao diện persistence cho Users, Departments và Shifts.

    Lưu ý (DIP): tầng service phụ thuộc vào interface này, không phụ thuộc trực tiếp DB cụ thể.

    Contract shared by every backend:

    - ``save_user`` upserts by id; ``delete_user`` also removes every shift of that user.
    - ``save_departments`` makes the stored set exactly ``names`` (upsert-and-prune),
      ranks follow list positions.
    - ``list_shifts`` is newest-start-first and includes the open shift, if any.
    - ``list_active_shifts`` keeps only open shifts started on ``now``'s local day.
    - ``start_shift`` is an idempotent upsert by shift id.
    - Calls complete before returning; failures raise ``PersistenceError``.
    """

    def list_users(self) -> Sequence[User]:
        raise NotImplementedError

    def save_user(self, user: User) -> None:
        raise NotImplementedError

    def delete_user(self, user_id: str) -> None:
        raise NotImplementedError

    def list_departments(self) -> Sequence[str]:
        raise NotImplementedError

    def save_departments(self, names: Sequence[str]) -> None:
        raise NotImplementedError

    def delete_department(self, name: str) -> None:
        raise NotImplementedError

    def list_shifts(self, user_id: str) -> Sequence[Shift]:
        raise NotImplementedError

    def list_active_shifts(self, now: Optional[datetime] = None) -> Dict[str, Shift]:
        raise NotImplementedError

    def start_shift(self, user: User, shift: Shift) -> None:
        raise NotImplementedError

    def resume_shift(self, user: User, shift_id: str) -> None:
        raise NotImplementedError

    def end_shift(self, user: User, shift: Shift) -> None:
        raise NotImplementedError

    def add_shift(self, user: User, shift: Shift) -> None:
        """Insert a closed shift straight into history (manual entry)."""

        raise NotImplementedError

    def delete_shift(self, user_id: str, shift_id: str) -> None:
        raise NotImplementedError
