"""Department-scoped rank reordering.

Moving a user swaps it with its neighbour inside its department, then every user
of that department gets a fresh dense rank 1..N in list order. Inconsistent or
missing ranks are healed on every move, so no separate repair pass is needed.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import List, Optional, Sequence

from ..core.enums import MoveDirection
from .model import User


@dataclass(frozen=True)
class RankMove:
    users: List[User]
    changed: List[User]


def sort_by_rank(users: Sequence[User]) -> List[User]:
    return sorted(users, key=lambda u: u.sort_rank)


def department_members(users: Sequence[User], department: str) -> List[User]:
    return sort_by_rank([u for u in users if u.department_or_default == department])


def renormalize(users: Sequence[User]) -> List[User]:
    return [replace(u, rank=position) for position, u in enumerate(users, start=1)]


def move_user(users: Sequence[User], user_id: str, direction: MoveDirection) -> Optional[RankMove]:
    """Return the re-ranked roster, or ``None`` when the move is out of bounds."""

    subject = next((u for u in users if u.id == user_id), None)
    if subject is None:
        return None

    members = department_members(users, subject.department_or_default)
    index = next(i for i, u in enumerate(members) if u.id == user_id)
    target = index - 1 if MoveDirection(direction) == MoveDirection.PREV else index + 1
    if target < 0 or target >= len(members):
        return None

    members[index], members[target] = members[target], members[index]
    renumbered = {u.id: u for u in renormalize(members)}

    before = {u.id: u.rank for u in users}
    merged = sort_by_rank([renumbered.get(u.id, u) for u in users])
    changed = [u for u in renumbered.values() if before.get(u.id) != u.rank]
    return RankMove(users=merged, changed=changed)
