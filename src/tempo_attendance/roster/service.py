from __future__ import annotations

import logging
import uuid
from dataclasses import replace
from typing import Callable, List, Optional, Sequence

from ..auth.model import SessionContext
from ..auth.service import require_admin
from ..common.formatting import random_color, random_employee_id
from ..common.validators import require_non_empty
from ..core.constants import ALL_DEPARTMENTS, DEFAULT_DEPARTMENT
from ..core.enums import MoveDirection
from ..core.exceptions import PersistenceError, ValidationError
from ..core.result import OperationResult
from ..shifts.active_index import ActiveShiftIndex
from ..storage.repository import AttendanceStore
from . import ranking
from .model import User

logger = logging.getLogger(__name__)


class RosterService:
    """Use case: manage users and departments (admin).

    State is updated in memory first, then written through the store. A failed write
    is logged and reported in the returned ``OperationResult``; memory is not rolled back.
    """

    def __init__(self, store: AttendanceStore, active_index: Optional[ActiveShiftIndex] = None):
        self._store = store
        self._active = active_index
        self._users: List[User] = []
        self._departments: List[str] = []

    # --- read side ---

    @property
    def users(self) -> List[User]:
        return list(self._users)

    @property
    def departments(self) -> List[str]:
        return list(self._departments)

    def get_user(self, user_id: str) -> Optional[User]:
        return next((u for u in self._users if u.id == user_id), None)

    def require_user(self, user_id: str) -> User:
        user = self.get_user(user_id)
        if user is None:
            raise ValidationError("Employee not found")
        return user

    def users_in(self, department: str) -> List[User]:
        if department == ALL_DEPARTMENTS:
            return self.users
        return ranking.department_members(self._users, department)

    def display_departments(self) -> List[str]:
        """Configured departments, then names that only appear on users."""
        names = list(self._departments)
        for user in self._users:
            if user.department_or_default not in names:
                names.append(user.department_or_default)
        return names

    def load(self) -> None:
        users = {u.id: u for u in self._store.list_users()}
        self._users = ranking.sort_by_rank(list(users.values()))
        self._departments = list(dict.fromkeys(self._store.list_departments()))
        logger.info("Roster loaded: %d users, %d departments", len(self._users), len(self._departments))

    # --- helpers ---

    def _write(self, description: str, writes: Sequence[Callable[[], None]], value=None) -> OperationResult:
        try:
            for write in writes:
                write()
        except PersistenceError as exc:
            logger.exception("Failed to persist %s", description)
            return OperationResult.failure(exc, value)
        return OperationResult.success(value)

    def _save_users(self, users: Sequence[User]) -> List[Callable[[], None]]:
        return [lambda u=u: self._store.save_user(u) for u in users]

    # --- users ---

    def add_user(self, session: SessionContext, name: str, department: Optional[str] = None) -> OperationResult:
        require_admin(session)
        name = require_non_empty(name, "Name")

        if department:
            dept = department.strip()
        elif not session.is_viewing_all:
            dept = session.selected_department
        else:
            dept = self._departments[0] if self._departments else DEFAULT_DEPARTMENT

        max_rank = max((u.sort_rank for u in self._users), default=0)
        user = User(
            id=str(uuid.uuid4()),
            name=name,
            color=random_color(),
            department=dept,
            employee_id=random_employee_id(),
            rank=max_rank + 1,
        )
        self._users.append(user)
        logger.info("Added employee %s (%s) to %s", user.name, user.id, dept)
        return self._write(f"new user {user.id}", self._save_users([user]), user)

    def update_user(self, session: SessionContext, user: User) -> OperationResult:
        require_admin(session)
        require_non_empty(user.name, "Name")
        index = next((i for i, u in enumerate(self._users) if u.id == user.id), None)
        if index is None:
            raise ValidationError("Employee not found")

        self._users[index] = user
        return self._write(f"user {user.id}", self._save_users([user]), user)

    def delete_user(self, session: SessionContext, user_id: str) -> OperationResult:
        require_admin(session)
        user = self.require_user(user_id)

        self._users = [u for u in self._users if u.id != user_id]
        if self._active is not None:
            self._active.remove(user_id)
        logger.info("Deleted employee %s (%s)", user.name, user_id)
        return self._write(f"deletion of user {user_id}", [lambda: self._store.delete_user(user_id)], user)

    def move_user(self, session: SessionContext, user_id: str, direction: MoveDirection) -> OperationResult:
        require_admin(session)
        self.require_user(user_id)

        move = ranking.move_user(self._users, user_id, direction)
        if move is None:
            return OperationResult.success([])

        self._users = move.users
        return self._write(f"rank order of {user_id}", self._save_users(move.changed), move.changed)

    # --- departments ---

    def add_department(self, session: SessionContext, name: str) -> OperationResult:
        require_admin(session)
        name = require_non_empty(name, "Department name")
        if name in self._departments:
            return OperationResult.success(False)

        self._departments.append(name)
        names = list(self._departments)
        return self._write("departments", [lambda: self._store.save_departments(names)], True)

    def rename_department(self, session: SessionContext, old_name: str, new_name: str) -> OperationResult:
        require_admin(session)
        new_name = require_non_empty(new_name, "Department name")
        if new_name in self._departments or old_name not in self.display_departments():
            return OperationResult.success(False)

        self._departments = [new_name if d == old_name else d for d in self._departments]
        affected = [replace(u, department=new_name) for u in self._users if u.department == old_name]
        by_id = {u.id: u for u in affected}
        self._users = [by_id.get(u.id, u) for u in self._users]

        if session.selected_department == old_name:
            session.selected_department = new_name

        names = list(self._departments)
        logger.info("Renamed department %r -> %r (%d users)", old_name, new_name, len(affected))
        writes = [lambda: self._store.save_departments(names), lambda: self._store.delete_department(old_name)]
        return self._write(f"rename of {old_name!r}", writes + self._save_users(affected), True)

    def delete_department(self, session: SessionContext, name: str) -> OperationResult:
        require_admin(session)
        if name not in self.display_departments():
            return OperationResult.success(None)

        self._departments = [d for d in self._departments if d != name]
        fallback = self._departments[0] if self._departments else DEFAULT_DEPARTMENT
        affected = [replace(u, department=fallback) for u in self._users if u.department == name]
        by_id = {u.id: u for u in affected}
        self._users = [by_id.get(u.id, u) for u in self._users]

        if session.selected_department == name:
            session.selected_department = ALL_DEPARTMENTS

        names = list(self._departments)
        logger.info("Deleted department %r, %d users moved to %r", name, len(affected), fallback)
        writes = [lambda: self._store.save_departments(names), lambda: self._store.delete_department(name)]
        return self._write(f"deletion of {name!r}", writes + self._save_users(affected), fallback)

    def reorder_departments(self, session: SessionContext, names: Sequence[str]) -> OperationResult:
        require_admin(session)
        self._departments = list(dict.fromkeys(names))
        ordered = list(self._departments)
        return self._write("department order", [lambda: self._store.save_departments(ordered)], ordered)
