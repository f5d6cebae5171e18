from __future__ import annotations

import random
from collections import Counter

import pytest

from dutybot.core.errors import RotationError
from dutybot.rotation.models import Member, RotationLog, ServedSet
from dutybot.rotation.selector import pick_next


def test_pick_never_returns_served_or_ignored_while_available() -> None:
    members = [Member(uuid=f"m{i}") for i in range(8)]
    log = RotationLog(served=ServedSet(members[:3]), ignored={members[3], members[4]})
    rng = random.Random(7)
    for _ in range(200):
        pick = pick_next(members, log, rng)
        assert pick.reset is False
        assert pick.member in members[5:]


def test_pick_is_pure(alice, bob, members) -> None:
    log = RotationLog(served=ServedSet([alice]), ignored={bob})
    pick_next(members, log, random.Random(1))
    assert log.served == [alice]
    assert log.ignored == {bob}


def test_pick_signals_reset_when_everybody_served(alice, bob, carol, members) -> None:
    log = RotationLog(served=ServedSet([alice, bob, carol]))
    pick = pick_next(members, log, random.Random(3))
    assert pick.reset is True
    assert pick.member in members
    assert len(log.served) == 3


def test_reset_counts_ignored_members_as_exhausted(alice, bob, carol, members) -> None:
    log = RotationLog(served=ServedSet([alice, bob]), ignored={carol})
    assert pick_next(members, log, random.Random(3)).reset is True


def test_reset_may_pick_ignored_member(alice, bob, carol, members) -> None:
    log = RotationLog(served=ServedSet([alice, bob]), ignored={carol})
    picks = {pick_next(members, log, random.Random(seed)).member for seed in range(50)}
    assert carol in picks


def test_pick_is_roughly_uniform_over_available() -> None:
    members = [Member(uuid=f"m{i}") for i in range(6)]
    log = RotationLog(served=ServedSet(members[:2]))
    rng = random.Random(42)
    counts = Counter(pick_next(members, log, rng).member for _ in range(4000))
    assert set(counts) == set(members[2:])
    for value in counts.values():
        assert 850 < value < 1150


def test_pick_is_reproducible_with_seed(members) -> None:
    log = RotationLog()
    first = pick_next(members, log, random.Random(99)).member
    second = pick_next(set(members), log, random.Random(99)).member
    assert first == second


def test_pick_from_empty_group_raises() -> None:
    with pytest.raises(RotationError):
        pick_next([], RotationLog())
