from __future__ import annotations

from datetime import datetime

import pytest

from tempo_attendance.core.constants import ALL_DEPARTMENTS, DEFAULT_DEPARTMENT
from tempo_attendance.core.enums import MoveDirection
from tempo_attendance.core.exceptions import AuthorizationError, PersistenceError, ValidationError
from tempo_attendance.roster.service import RosterService
from tempo_attendance.shifts.active_index import ActiveShiftIndex
from tempo_attendance.shifts.model import Shift

from conftest import make_user


class FailingWrites:
    """Reads delegate to a real store; every write fails."""

    def __init__(self, inner):
        self._inner = inner

    def __getattr__(self, name):
        if name.startswith(("list_",)):
            return getattr(self._inner, name)

        def _fail(*args, **kwargs):
            raise PersistenceError("disk full")

        return _fail


def _seed(store, users, departments):
    for u in users:
        store.save_user(u)
    store.save_departments(departments)
    roster = RosterService(store)
    roster.load()
    return roster


def test_load_dedupes_and_sorts_by_rank(store):
    roster = _seed(store, [make_user("b", rank=2), make_user("a", rank=1)], ["X", "X", "Y"])

    assert [u.id for u in roster.users] == ["a", "b"]
    assert roster.departments == ["X", "Y"]


def test_add_user_assigns_next_rank_and_defaults(store, admin):
    roster = _seed(store, [make_user("a", rank=4), make_user("b", department="Y", rank=9)], ["X", "Y"])

    result = roster.add_user(admin, "  New Person  ")

    assert result.ok
    user = result.value
    assert user.name == "New Person"
    assert user.rank == 10
    assert user.department == "X"
    assert len(user.employee_id) == 4
    assert user.color.startswith("#")
    assert [u.id for u in store.list_users()][-1] == user.id


def test_add_user_uses_viewed_department(store, admin):
    roster = _seed(store, [], ["X", "Y"])
    admin.selected_department = "Y"

    assert roster.add_user(admin, "Sam").value.department == "Y"


def test_add_user_without_departments_falls_back_to_general(store, admin):
    roster = _seed(store, [], [])

    assert roster.add_user(admin, "Sam").value.department == DEFAULT_DEPARTMENT


def test_add_user_rejects_blank_name_and_non_admin(store, admin, guest):
    roster = _seed(store, [], [])

    with pytest.raises(ValidationError):
        roster.add_user(admin, "   ")
    with pytest.raises(AuthorizationError):
        roster.add_user(guest, "Sam")
    assert roster.users == []


def test_rename_cascades_and_redirects_view(store, admin):
    users = [make_user("a", rank=1), make_user("b", rank=2), make_user("c", department="Y", rank=3)]
    roster = _seed(store, users, ["X", "Y"])
    admin.selected_department = "X"

    result = roster.rename_department(admin, "X", "Engineering")

    assert result.ok and result.value is True
    assert roster.departments == ["Engineering", "Y"]
    assert store.list_departments() == ["Engineering", "Y"]
    stored = {u.id: u.department for u in store.list_users()}
    assert stored == {"a": "Engineering", "b": "Engineering", "c": "Y"}
    assert admin.selected_department == "Engineering"


def test_rename_to_existing_name_is_noop(store, admin):
    roster = _seed(store, [make_user("a", rank=1)], ["X", "Y"])

    result = roster.rename_department(admin, "X", "Y")

    assert result.ok and result.value is False
    assert roster.departments == ["X", "Y"]
    assert roster.get_user("a").department == "X"


def test_rename_department_known_only_from_users(store, admin):
    users = [make_user("a", department="Legacy", rank=1), make_user("b", department="Ops", rank=2)]
    roster = _seed(store, users, ["Ops"])

    result = roster.rename_department(admin, "Legacy", "Sales")

    assert result.value is True
    assert roster.get_user("a").department == "Sales"
    assert {u.id: u.department for u in store.list_users()} == {"a": "Sales", "b": "Ops"}
    assert roster.departments == ["Ops"]
    assert roster.display_departments() == ["Ops", "Sales"]


def test_rename_unknown_department_is_noop(store, admin):
    roster = _seed(store, [make_user("a", rank=1)], ["X"])

    assert roster.rename_department(admin, "Nowhere", "Sales").value is False
    assert roster.get_user("a").department == "X"


def test_add_existing_department_is_noop(store, admin):
    roster = _seed(store, [], ["X"])

    assert roster.add_department(admin, "X").value is False
    assert roster.add_department(admin, "Z").value is True
    assert store.list_departments() == ["X", "Z"]


def test_delete_department_reassigns_every_member(store, admin):
    users = [make_user(f"u{i}", rank=i) for i in range(1, 6)] + [make_user("y", department="Y", rank=6)]
    roster = _seed(store, users, ["Y", "X"])
    admin.selected_department = "X"

    result = roster.delete_department(admin, "X")

    assert result.value == "Y"
    assert all(u.department != "X" for u in roster.users)
    assert all(u.department != "X" for u in store.list_users())
    assert sum(1 for u in store.list_users() if u.department == "Y") == 6
    assert store.list_departments() == ["Y"]
    assert admin.selected_department == ALL_DEPARTMENTS


def test_delete_last_department_falls_back_to_general(store, admin):
    roster = _seed(store, [make_user("a", rank=1)], ["X"])

    roster.delete_department(admin, "X")

    assert roster.get_user("a").department == DEFAULT_DEPARTMENT


def test_delete_department_known_only_from_users(store, admin):
    roster = _seed(store, [make_user("a", department="Legacy", rank=1), make_user("b", department="Legacy", rank=2)], ["Ops"])

    result = roster.delete_department(admin, "Legacy")

    assert result.value == "Ops"
    assert [u.department for u in store.list_users()] == ["Ops", "Ops"]
    assert roster.departments == ["Ops"]


def test_reorder_departments_replaces_list(store, admin):
    roster = _seed(store, [], ["A", "B", "C"])

    roster.reorder_departments(admin, ["C", "A", "B"])

    assert roster.departments == ["C", "A", "B"]
    assert store.list_departments() == ["C", "A", "B"]


def test_move_user_persists_only_changed_ranks(store, admin):
    roster = _seed(store, [make_user("a", rank=1), make_user("b", rank=2), make_user("c", rank=3)], ["X"])

    result = roster.move_user(admin, "b", MoveDirection.PREV)

    assert sorted(u.id for u in result.value) == ["a", "b"]
    assert {u.id: u.rank for u in store.list_users()} == {"a": 2, "b": 1, "c": 3}
    assert [u.id for u in roster.users] == ["b", "a", "c"]


def test_delete_user_clears_active_entry_and_history(store, admin):
    index = ActiveShiftIndex()
    a = make_user("a", rank=1)
    store.save_user(a)
    store.start_shift(a, Shift(id="s", user_id="a", start_time=datetime(2026, 2, 2, 9)))
    index.set("a", Shift(id="s", user_id="a", start_time=datetime(2026, 2, 2, 9)))
    roster = RosterService(store, index)
    roster.load()

    roster.delete_user(admin, "a")

    assert "a" not in index
    assert store.list_shifts("a") == []
    assert roster.users == []


def test_display_departments_include_user_only_names(store):
    roster = _seed(store, [make_user("a", department="Ghost", rank=1), make_user("b", department=None, rank=2)], ["X"])

    assert roster.display_departments() == ["X", "Ghost", DEFAULT_DEPARTMENT]


def test_failed_write_is_reported_without_rollback(store, admin):
    roster = RosterService(FailingWrites(store))
    roster.load()

    result = roster.add_department(admin, "X")

    assert not result.ok
    assert isinstance(result.error, PersistenceError)
    assert roster.departments == ["X"]
