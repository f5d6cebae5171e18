"""Corrective text commands sent to the bot inside the group.

A command is a group message starting with the bot address (``"lieber
bot:"`` by default). The remainder is matched against the trigger table in
priority order Help, Undo, Redraw, IgnoreAndRedraw, Swap; the first match
wins. :meth:`CommandInterpreter.apply` mutates the rotation log in place and
reports what the caller has to do next (persist, send replies, announce a
fresh pick). Persistence and sending stay with the caller.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Mapping, Optional, Sequence, Tuple

from dutybot.config.models import BotSettings, CommandsConfig, RepliesConfig
from dutybot.core.enums import CommandKind
from dutybot.interfaces.channel import MentionSpan, OutgoingMessage
from dutybot.rotation.models import GroupContext, Member, RotationLog

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Action:
    """Parsed command. For Swap, ``members`` is ``(restore, mark_served)``."""

    kind: CommandKind
    members: Tuple[Member, ...] = ()


@dataclass(slots=True)
class Outcome:
    mutated: bool = False
    replies: List[OutgoingMessage] = field(default_factory=list)
    announce: bool = False


def _utf16_len(text: str) -> int:
    return len(text.encode("utf-16-le")) // 2


def render_mentions(template: str, members: Mapping[str, Member], signature: str = "") -> OutgoingMessage:
    """Turn ``template`` into a message whose placeholder tokens mention ``members``.

    Each token's first occurrence becomes a mention span; tokens missing from
    the template are skipped. ``signature`` is appended after the spans, so
    offsets are unaffected. Offsets and lengths count UTF-16 code units, as
    Signal does.
    """

    spans = []
    for token, member in members.items():
        index = template.find(token)
        if index < 0:
            continue
        spans.append(MentionSpan(member=member, start=_utf16_len(template[:index]), length=_utf16_len(token)))
    spans.sort(key=lambda span: span.start)
    return OutgoingMessage(text=template + signature, mentions=tuple(spans))


class CommandInterpreter:
    """Map inbound command text to actions on a :class:`RotationLog`."""

    def __init__(
        self,
        *,
        bot: BotSettings,
        commands: CommandsConfig,
        replies: RepliesConfig,
    ) -> None:
        self._address = bot.address
        self._commands = commands
        self._replies = replies

    # ------------------------------------------------------------------
    # Parsing
    # ------------------------------------------------------------------
    def normalize(self, body: Optional[str]) -> Optional[str]:
        """Lower-case ``body`` and strip the bot address; ``None`` if not addressed."""

        if not body:
            return None
        text = body.lower().lstrip()
        if not text.startswith(self._address):
            return None
        return text[len(self._address):].strip()

    def parse(
        self,
        command_text: str,
        mentions: Sequence[MentionSpan] = (),
        group: GroupContext | None = None,
    ) -> Optional[Action]:
        for kind, trigger in self._commands.ordered():
            if not trigger.matches(command_text, len(mentions)):
                continue
            if kind is CommandKind.SWAP:
                return self._swap_action(mentions, group)
            return Action(kind=kind)
        return None

    @staticmethod
    def _swap_action(mentions: Sequence[MentionSpan], group: GroupContext | None) -> Optional[Action]:
        if len(mentions) != 2:
            return None
        ordered = sorted(mentions, key=lambda span: span.start)
        members = tuple(group.canonical(span.member) if group else span.member for span in ordered)
        if members[0] == members[1]:
            return None
        return Action(kind=CommandKind.SWAP, members=members)

    # ------------------------------------------------------------------
    # Application
    # ------------------------------------------------------------------
    def apply(self, action: Action, log: RotationLog) -> Outcome:
        handler = {
            CommandKind.HELP: self._apply_help,
            CommandKind.UNDO: self._apply_undo,
            CommandKind.REDRAW: self._apply_redraw,
            CommandKind.IGNORE_AND_REDRAW: self._apply_ignore_and_redraw,
            CommandKind.SWAP: self._apply_swap,
        }[action.kind]
        outcome = handler(action, log)
        LOGGER.info(
            "Applied command",
            extra={"command": action.kind.value, "mutated": outcome.mutated, "announce": outcome.announce},
        )
        return outcome

    def _apply_help(self, _: Action, __: RotationLog) -> Outcome:
        return Outcome(replies=[OutgoingMessage(text=self.help_text() + self._replies.signature)])

    def _apply_undo(self, _: Action, log: RotationLog) -> Outcome:
        restored = log.served.pop_last()
        if restored is None:
            return Outcome()
        return Outcome(mutated=True, replies=[self._render(self._replies.undo, restored=restored)])

    def _apply_redraw(self, _: Action, log: RotationLog) -> Outcome:
        restored = log.served.pop_last()
        if restored is None:
            return Outcome(announce=True)
        return Outcome(
            mutated=True,
            replies=[self._render(self._replies.redraw, restored=restored)],
            announce=True,
        )

    def _apply_ignore_and_redraw(self, _: Action, log: RotationLog) -> Outcome:
        excluded = log.served.pop_last()
        if excluded is None:
            return Outcome(announce=True)
        log.ignored.add(excluded)
        return Outcome(
            mutated=True,
            replies=[self._render(self._replies.ignore, excluded=excluded)],
            announce=True,
        )

    def _apply_swap(self, action: Action, log: RotationLog) -> Outcome:
        restored, served = action.members
        removed = log.served.remove(restored)
        added = log.served.add(served)
        return Outcome(
            mutated=removed or added,
            replies=[self._render(self._replies.swap, restored=restored, served=served)],
        )

    # ------------------------------------------------------------------
    # Texts
    # ------------------------------------------------------------------
    def help_text(self) -> str:
        parts = [self._replies.help_intro]
        for kind, trigger in self._commands.ordered():
            line = self._replies.help_lines.get(kind)
            if not line:
                continue
            parts.append(f"{trigger.describe()} - {line}" if trigger.phrases else line)
        return " ".join(parts)

    def _render(self, template: str, **members: Member) -> OutgoingMessage:
        tokens = {f"{{{name}}}": member for name, member in members.items()}
        return render_mentions(template, tokens, self._replies.signature)


__all__ = ["Action", "CommandInterpreter", "Outcome", "render_mentions"]
