"""Announce + Watch loop for one group.

``CycleDriver.run(cycles)`` announces the next member once, then polls the
group ``cycles`` times. Every poll blocks on ``channel.receive`` for at most
the configured timeout, handles the received commands in arrival order and
sleeps a fixed interval. The loop has no cancellation besides the cycle
count. Every log mutation is persisted before the corresponding reply goes
out.
"""
from __future__ import annotations

import logging
import random
import time
from datetime import datetime
from typing import Callable, Optional

from dutybot.commands.interpreter import CommandInterpreter, render_mentions
from dutybot.config.models import AppConfig
from dutybot.core.errors import UnexpectedError, UserError
from dutybot.core.time_utils import daily_cutoff, now_utc
from dutybot.interfaces.channel import (
    InboundEvent,
    MessagingChannel,
    OutgoingMessage,
    ReceiveOk,
    ReceiveTimeout,
    SendResult,
)
from dutybot.rotation.log_store import RotationLogStore
from dutybot.rotation.models import GroupContext, Member, RotationLog
from dutybot.rotation.selector import pick_next

LOGGER = logging.getLogger(__name__)

SendListener = Callable[[OutgoingMessage, SendResult], None]


class CycleDriver:
    """Owns the rotation log of one group for the duration of an invocation."""

    def __init__(
        self,
        *,
        config: AppConfig,
        channel: MessagingChannel,
        store: RotationLogStore,
        group: GroupContext,
        message_template: str,
        ignore_before_hour: Optional[int] = None,
        rng: Optional[random.Random] = None,
        clock: Callable[[], datetime] = now_utc,
        sleep: Callable[[float], None] = time.sleep,
        on_send: Optional[SendListener] = None,
        logger: logging.Logger | None = None,
    ) -> None:
        placeholder = config.bot.mention_placeholder
        if placeholder not in message_template:
            raise UserError(f"Message text must contain the literal string '{placeholder}'")
        self._config = config
        self._channel = channel
        self._store = store
        self._group = group
        self._template = message_template
        self._placeholder = placeholder
        self._ignore_before = (
            config.bot.ignore_before_hour if ignore_before_hour is None else ignore_before_hour
        )
        self._rng = rng
        self._clock = clock
        self._sleep = sleep
        self._on_send = on_send
        self._logger = logger or LOGGER
        self._interpreter = CommandInterpreter(
            bot=config.bot,
            commands=config.commands,
            replies=config.replies,
        )
        self._log: RotationLog | None = None

    @property
    def log(self) -> RotationLog:
        if self._log is None:
            self._log = self._store.load(self._group.group_id)
        return self._log

    # ------------------------------------------------------------------
    # Phases
    # ------------------------------------------------------------------
    def run(self, cycles: int) -> RotationLog:
        if cycles < 0:
            raise UserError("Number of receive cycles must be a non-negative integer")
        self.announce()
        remaining = cycles
        while remaining > 0:
            self.watch_once()
            remaining -= 1
            self._logger.debug("Watch cycle finished", extra={"remaining_cycles": remaining})
            if remaining > 0:
                self._sleep(self._config.watch.sleep_interval_sec)
        return self.log

    def announce(self) -> Member:
        """Pick the next member, persist the log and notify the group."""

        log = self.log
        pick = pick_next(self._group.members, log, self._rng)
        if pick.reset:
            self._logger.info("Rotation exhausted, starting over", extra={"group_id": self._group.group_id})
            log.served.clear()
        log.served.append(pick.member)
        self._persist()
        self._logger.info("Next member picked", extra={"member": pick.member.recipient})
        self._send(render_mentions(self._template, {self._placeholder: pick.member}, self._config.replies.signature))
        return pick.member

    def watch_once(self) -> int:
        """Run one bounded receive and handle the commands; returns the number handled."""

        watch = self._config.watch
        result = self._channel.receive(watch.receive_timeout_sec, watch.max_messages)
        if isinstance(result, ReceiveTimeout):
            return 0
        if not isinstance(result, ReceiveOk):
            raise UnexpectedError(f"Failed to receive messages: {result.reason}")
        self._logger.debug("Received events", extra={"count": len(result.events)})
        cutoff = daily_cutoff(self._clock(), self._ignore_before, self._config.bot.timezone)
        handled = 0
        for event in result.events:
            if self._handle_event(event, cutoff):
                handled += 1
        return handled

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _handle_event(self, event: InboundEvent, cutoff: datetime) -> bool:
        if event.group_id != self._group.group_id:
            return False
        if event.delivered_at < cutoff:
            self._logger.debug("Skipping stale message", extra={"delivered_at": event.delivered_at.isoformat()})
            return False
        command_text = self._interpreter.normalize(event.body)
        if command_text is None:
            return False
        action = self._interpreter.parse(command_text, event.mentions, self._group)
        if action is None:
            self._logger.debug("Unrecognized command", extra={"command_text": command_text})
            return False
        outcome = self._interpreter.apply(action, self.log)
        if outcome.mutated:
            self._persist()
        for reply in outcome.replies:
            self._send(reply)
        if outcome.announce:
            self.announce()
        return True

    def _persist(self) -> None:
        self._store.save(self._group.group_id, self.log)

    def _send(self, message: OutgoingMessage) -> SendResult:
        result = self._channel.send(self._group.group_id, message)
        for failure in result.failures:
            self._logger.warning(
                "Message not delivered",
                extra={"recipient": failure.recipient.recipient, "status": failure.status.value},
            )
        if self._on_send is not None:
            self._on_send(message, result)
        return result


__all__ = ["CycleDriver"]
