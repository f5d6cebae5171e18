from __future__ import annotations

import random
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, List

import pytest

from dutybot.config.models import AppConfig, WatchConfig
from dutybot.interfaces.channel import (
    InboundEvent,
    MentionSpan,
    OutgoingMessage,
    ReceiveResult,
    ReceiveTimeout,
    SendResult,
)
from dutybot.rotation.log_store import RotationLogStore
from dutybot.rotation.models import GroupContext, Member

GROUP_ID = "Z3JvdXAtb25l"
OTHER_GROUP_ID = "Z3JvdXAtdHdv"
NOW = datetime(2024, 3, 4, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def alice() -> Member:
    return Member(number="+491701111111", uuid="aaaaaaaa-0000-0000-0000-000000000001")


@pytest.fixture
def bob() -> Member:
    return Member(number="+491702222222", uuid="bbbbbbbb-0000-0000-0000-000000000002")


@pytest.fixture
def carol() -> Member:
    return Member(number="+491703333333", uuid="cccccccc-0000-0000-0000-000000000003")


@pytest.fixture
def members(alice: Member, bob: Member, carol: Member) -> frozenset[Member]:
    return frozenset({alice, bob, carol})


@pytest.fixture
def group(members: frozenset[Member]) -> GroupContext:
    return GroupContext(group_id=GROUP_ID, members=members, title="Mittagessen")


@pytest.fixture
def app_config() -> AppConfig:
    return AppConfig(watch=WatchConfig(receive_timeout_sec=0.1, sleep_interval_sec=0))


@pytest.fixture
def store(tmp_path: Path) -> RotationLogStore:
    return RotationLogStore(tmp_path / "rotation")


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)


class FakeChannel:
    def __init__(self, groups: List[GroupContext] | None = None) -> None:
        self.groups = list(groups or [])
        self.sent: list[tuple[str, OutgoingMessage]] = []
        self.inbox: list[ReceiveResult] = []
        self.receive_calls: list[tuple[float, int]] = []

    def send(self, group_id: str, message: OutgoingMessage) -> SendResult:
        self.sent.append((group_id, message))
        return SendResult(timestamp=len(self.sent))

    def receive(self, timeout: float, max_count: int) -> ReceiveResult:
        self.receive_calls.append((timeout, max_count))
        if self.inbox:
            return self.inbox.pop(0)
        return ReceiveTimeout()

    def list_groups(self) -> list[GroupContext]:
        return list(self.groups)

    @property
    def texts(self) -> list[str]:
        return [message.text for _, message in self.sent]


@pytest.fixture
def fake_channel(group: GroupContext) -> FakeChannel:
    return FakeChannel([group])


@pytest.fixture
def event_factory() -> Callable[..., InboundEvent]:
    def _factory(
        body: str | None,
        *,
        mentions: tuple[tuple[Member, int], ...] = (),
        group_id: str | None = GROUP_ID,
        delivered_at: datetime = datetime(2024, 3, 4, 10, 0, tzinfo=timezone.utc),
    ) -> InboundEvent:
        spans = tuple(MentionSpan(member=member, start=start, length=1) for member, start in mentions)
        return InboundEvent(delivered_at=delivered_at, group_id=group_id, body=body, mentions=spans)

    return _factory
