from tempo_attendance.core.enums import MoveDirection
from tempo_attendance.roster import ranking

from conftest import make_user


def _ranks(users, department="X"):
    return [(u.id, u.rank) for u in ranking.department_members(users, department)]


def test_move_prev_swaps_with_neighbour():
    users = [make_user("a", rank=1), make_user("b", rank=2), make_user("c", rank=3)]

    move = ranking.move_user(users, "b", MoveDirection.PREV)

    assert _ranks(move.users) == [("b", 1), ("a", 2), ("c", 3)]
    assert {u.id for u in move.changed} == {"a", "b"}


def test_move_out_of_bounds_is_noop():
    users = [make_user("a", rank=1), make_user("b", rank=2)]

    assert ranking.move_user(users, "a", MoveDirection.PREV) is None
    assert ranking.move_user(users, "b", MoveDirection.NEXT) is None


def test_unknown_user_is_noop():
    assert ranking.move_user([make_user("a", rank=1)], "zzz", MoveDirection.NEXT) is None


def test_move_and_back_restores_dense_ranks():
    users = [make_user("a", rank=1), make_user("b", rank=2), make_user("c", rank=3)]

    there = ranking.move_user(users, "a", MoveDirection.NEXT)
    back = ranking.move_user(there.users, "a", MoveDirection.PREV)

    assert _ranks(back.users) == [("a", 1), ("b", 2), ("c", 3)]


def test_renormalization_heals_gaps_duplicates_and_missing_ranks():
    users = [make_user("a", rank=7), make_user("b", rank=7), make_user("c", rank=None), make_user("d", rank=40)]

    move = ranking.move_user(users, "d", MoveDirection.PREV)

    ranks = [r for _, r in _ranks(move.users)]
    assert ranks == [1, 2, 3, 4]
    assert [uid for uid, _ in _ranks(move.users)] == ["c", "a", "d", "b"]


def test_only_the_subjects_department_is_touched():
    users = [
        make_user("a", rank=1),
        make_user("b", rank=2),
        make_user("o1", department="Other", rank=5),
        make_user("o2", department="Other", rank=9),
    ]

    move = ranking.move_user(users, "b", MoveDirection.PREV)

    assert {u.id for u in move.changed} == {"a", "b"}
    others = {u.id: u.rank for u in move.users if u.department == "Other"}
    assert others == {"o1": 5, "o2": 9}
    assert [u.rank for u in move.users] == sorted(u.rank for u in move.users)


def test_missing_department_groups_with_general():
    users = [make_user("a", department=None, rank=1), make_user("b", department="General", rank=2)]

    move = ranking.move_user(users, "b", MoveDirection.PREV)

    assert [u.id for u in ranking.department_members(move.users, "General")] == ["b", "a"]


def test_unchanged_ranks_are_not_reported():
    users = [make_user("a", rank=1), make_user("b", rank=2), make_user("c", rank=3)]

    move = ranking.move_user(users, "c", MoveDirection.PREV)

    assert {u.id for u in move.changed} == {"b", "c"}
