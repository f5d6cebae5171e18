"""Messaging channel contract and the message types that cross it.

The rotation logic talks to the messenger only through
:class:`MessagingChannel`. ``receive`` returns an explicit
:data:`ReceiveResult` instead of raising for timeouts, so the cycle driver
can tell "nothing arrived" apart from "the transport broke".
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Protocol, Sequence, Tuple, Union

from dutybot.core.enums import SendStatus
from dutybot.rotation.models import GroupContext, Member


@dataclass(frozen=True, slots=True)
class MentionSpan:
    """A member referenced at ``start`` for ``length`` characters of a text."""

    member: Member
    start: int
    length: int


@dataclass(frozen=True, slots=True)
class OutgoingMessage:
    text: str
    mentions: Tuple[MentionSpan, ...] = ()


@dataclass(frozen=True, slots=True)
class InboundEvent:
    """One received envelope, reduced to what the command handling needs."""

    delivered_at: datetime
    group_id: Optional[str] = None
    body: Optional[str] = None
    mentions: Tuple[MentionSpan, ...] = ()
    sender: Optional[Member] = None


@dataclass(frozen=True, slots=True)
class RecipientResult:
    recipient: Member
    status: SendStatus

    @property
    def ok(self) -> bool:
        return self.status is SendStatus.SUCCESS


@dataclass(slots=True)
class SendResult:
    timestamp: Optional[int] = None
    results: List[RecipientResult] = field(default_factory=list)

    @property
    def failures(self) -> List[RecipientResult]:
        return [result for result in self.results if not result.ok]


@dataclass(frozen=True, slots=True)
class ReceiveOk:
    events: Tuple[InboundEvent, ...] = ()


@dataclass(frozen=True, slots=True)
class ReceiveTimeout:
    pass


@dataclass(frozen=True, slots=True)
class ReceiveTransportError:
    reason: str


ReceiveResult = Union[ReceiveOk, ReceiveTimeout, ReceiveTransportError]


class MessagingChannel(Protocol):
    """Abstract transport: send to a group, poll for inbound events, list groups."""

    def send(self, group_id: str, message: OutgoingMessage) -> SendResult:
        """Deliver ``message`` to the group.

        Raises :class:`~dutybot.core.errors.UserError` when the group refuses
        the message and :class:`~dutybot.core.errors.ChannelError` on
        transport failures.
        """

    def receive(self, timeout: float, max_count: int) -> ReceiveResult:
        """Block up to ``timeout`` seconds; ``max_count=-1`` means no limit."""

    def list_groups(self) -> Sequence[GroupContext]:
        """Return every group the account belongs to."""


__all__ = [
    "InboundEvent",
    "MentionSpan",
    "MessagingChannel",
    "OutgoingMessage",
    "ReceiveOk",
    "ReceiveResult",
    "ReceiveTimeout",
    "ReceiveTransportError",
    "RecipientResult",
    "SendResult",
]
