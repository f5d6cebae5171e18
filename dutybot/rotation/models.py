"""Datamodels describing group members and the rotation log.

A :class:`RotationLog` records who already served in the current rotation
(``served``, most recent last) and who is excluded for good (``ignored``).
``served`` is a :class:`ServedSet`: an insertion-ordered set that refuses
duplicates, so "nobody serves twice per rotation" holds by construction.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Iterable, Iterator, Optional, Set

from dutybot.core.errors import RotationError


@dataclass(frozen=True, slots=True)
class Member:
    """Identity of a group member.

    Equality compares both fields; an unset field only equals another unset
    field. At least one identifier is required.
    """

    number: Optional[str] = None
    uuid: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.number and not self.uuid:
            raise ValueError("Member needs a number or a uuid")

    @property
    def sort_key(self) -> tuple[str, str]:
        return (self.uuid or "", self.number or "")

    @property
    def recipient(self) -> str:
        """Identifier used when addressing this member on the transport."""

        return self.uuid or self.number or ""

    def same_identity(self, other: "Member") -> bool:
        """Lenient comparison: uuid when both carry one, otherwise number."""

        if self.uuid and other.uuid:
            return self.uuid == other.uuid
        if self.number and other.number:
            return self.number == other.number
        return False

    def to_dict(self) -> Dict[str, str]:
        payload: Dict[str, str] = {}
        if self.number:
            payload["number"] = self.number
        if self.uuid:
            payload["uuid"] = self.uuid
        return payload

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "Member":
        return cls(number=payload.get("number") or None, uuid=payload.get("uuid") or None)


class ServedSet:
    """Insertion-ordered set of members with stack-like access to the tail."""

    __slots__ = ("_items",)

    def __init__(self, members: Iterable[Member] = ()) -> None:
        self._items: Dict[Member, None] = {}
        for member in members:
            self._items.setdefault(member, None)

    def __contains__(self, member: object) -> bool:
        return member in self._items

    def __iter__(self) -> Iterator[Member]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __bool__(self) -> bool:
        return bool(self._items)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ServedSet):
            return list(self._items) == list(other._items)
        if isinstance(other, (list, tuple)):
            return list(self._items) == list(other)
        return NotImplemented

    def __repr__(self) -> str:
        return f"ServedSet({list(self._items)!r})"

    @property
    def last(self) -> Optional[Member]:
        if not self._items:
            return None
        return next(reversed(self._items))

    def append(self, member: Member) -> None:
        if member in self._items:
            raise RotationError(f"{member} already served in this rotation")
        self._items[member] = None

    def add(self, member: Member) -> bool:
        """Append ``member`` unless present; return whether it was added."""

        if member in self._items:
            return False
        self._items[member] = None
        return True

    def pop_last(self) -> Optional[Member]:
        if not self._items:
            return None
        member, _ = self._items.popitem()
        return member

    def remove(self, member: Member) -> bool:
        if member not in self._items:
            return False
        del self._items[member]
        return True

    def clear(self) -> None:
        self._items.clear()


@dataclass(slots=True)
class RotationLog:
    """Per-group rotation state persisted after every mutation."""

    served: ServedSet = field(default_factory=ServedSet)
    ignored: Set[Member] = field(default_factory=set)

    def available(self, members: Iterable[Member]) -> FrozenSet[Member]:
        """Members that may be picked without restarting the rotation."""

        return frozenset(m for m in members if m not in self.ignored and m not in self.served)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ignored": [member.to_dict() for member in sorted(self.ignored, key=lambda m: m.sort_key)],
            "served": [member.to_dict() for member in self.served],
        }

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "RotationLog":
        """Parse the stored document; accepts the legacy camelCase keys too."""

        served_raw = payload.get("served", payload.get("servedMembers")) or []
        ignored_raw = payload.get("ignored", payload.get("ignoredMembers")) or []
        return cls(
            served=ServedSet(Member.from_dict(entry) for entry in served_raw),
            ignored={Member.from_dict(entry) for entry in ignored_raw},
        )


@dataclass(frozen=True, slots=True)
class GroupContext:
    """Group identifier, title and the full current member set."""

    group_id: str
    members: FrozenSet[Member]
    title: str = ""

    def canonical(self, member: Member) -> Member:
        """Return the group's own record for ``member`` (falls back to ``member``)."""

        if member in self.members:
            return member
        for candidate in self.members:
            if candidate.same_identity(member):
                return candidate
        return member


__all__ = ["GroupContext", "Member", "RotationLog", "ServedSet"]
