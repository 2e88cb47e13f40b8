"""Assignment engine: pure pairing logic, no I/O.

Members are shuffled with Fisher-Yates and then linked into one cycle:
the member at position k gives to the member at position (k + 1) mod n.
For n >= 2 nobody draws themselves.
"""

from __future__ import annotations

import random
from collections.abc import Sequence

from santa.errors import InsufficientMembers

MIN_MEMBERS = 2

_system_random = random.SystemRandom()


def shuffle_members(member_ids: Sequence[int], rng: random.Random | None = None) -> list[int]:
    """Return a shuffled copy of member_ids (Fisher-Yates)."""
    rng = rng or _system_random
    shuffled = list(member_ids)
    for i in range(len(shuffled) - 1, 0, -1):
        j = rng.randint(0, i)
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled


def build_cycle(member_ids: Sequence[int], rng: random.Random | None = None) -> list[tuple[int, int]]:
    """
    Pair every member with a receiver.

    Returns (giver_id, receiver_id) tuples in cycle order. Every member
    appears exactly once as giver and once as receiver.

    Raises:
        InsufficientMembers: Fewer than two members.
    """
    if len(member_ids) < MIN_MEMBERS:
        raise InsufficientMembers
    if len(set(member_ids)) != len(member_ids):
        msg = "member_ids must be unique"
        raise ValueError(msg)

    order = shuffle_members(member_ids, rng)
    n = len(order)
    return [(order[k], order[(k + 1) % n]) for k in range(n)]
