"""Next-member selection for the duty rotation.

``pick_next`` is a pure function over a snapshot of the group and the log:
it never mutates the log. When every eligible member already served, the
returned :class:`Pick` carries ``reset=True`` and the caller is expected to
clear ``served`` before appending the pick.

Selection shuffles the *whole* member set and takes the first available
member of that permutation. Filtering a uniform permutation keeps the choice
uniform over the available subset.

On reset the pick is drawn from all members, ignored ones included. That
mirrors the deployed behavior and is kept until someone confirms whether
ignored members should be excluded there as well.
"""
from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Iterable, Optional

from dutybot.core.errors import RotationError

from .models import Member, RotationLog


@dataclass(frozen=True, slots=True)
class Pick:
    """Result of a selection: the member and whether the rotation restarted."""

    member: Member
    reset: bool = False


def pick_next(
    all_members: Iterable[Member],
    log: RotationLog,
    rng: Optional[random.Random] = None,
) -> Pick:
    members = sorted(set(all_members), key=lambda member: member.sort_key)
    if not members:
        raise RotationError("Cannot pick from a group without members")
    generator = rng or random.SystemRandom()

    available = log.available(members)
    if not available:
        return Pick(member=generator.choice(members), reset=True)

    generator.shuffle(members)
    for member in members:
        if member in available:
            return Pick(member=member)
    raise RotationError("No available member found in permutation")  # pragma: no cover


__all__ = ["Pick", "pick_next"]
