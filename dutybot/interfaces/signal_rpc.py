"""signal-cli JSON-RPC channel.

Talks to a ``signal-cli daemon --http`` instance (manual receive mode) via
``POST /api/v1/rpc``. The methods used are:

* ``send`` with ``groupId``, ``message``, ``mention`` (``"start:length:uuid"``
  strings) and ``notifySelf``;
* ``receive`` with ``timeout`` (seconds) and ``maxMessages``;
* ``listGroups`` for resolving the group id to its title and members.

Multi-account daemons need the ``account`` parameter; it is added to every
call when configured. JSON-RPC error code ``-1`` is signal-cli's user error
(unknown group, not a member, unregistered recipient) and becomes
:class:`~dutybot.core.errors.UserError`; everything else is a
:class:`~dutybot.core.errors.ChannelError`.
"""
from __future__ import annotations

import itertools
import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence

import httpx

from dutybot.config.models import SignalConfig
from dutybot.core.enums import SendStatus
from dutybot.core.errors import ChannelError, UserError
from dutybot.core.time_utils import from_epoch_millis
from dutybot.rotation.models import GroupContext, Member

from .channel import (
    InboundEvent,
    MentionSpan,
    OutgoingMessage,
    ReceiveOk,
    ReceiveResult,
    ReceiveTimeout,
    ReceiveTransportError,
    RecipientResult,
    SendResult,
)

LOGGER = logging.getLogger(__name__)

RPC_PATH = "/api/v1/rpc"
USER_ERROR_CODE = -1

_SEND_STATUS: Mapping[str, SendStatus] = {
    "SUCCESS": SendStatus.SUCCESS,
    "UNREGISTERED_FAILURE": SendStatus.UNREGISTERED,
    "IDENTITY_FAILURE": SendStatus.IDENTITY_FAILURE,
    "RATE_LIMIT_FAILURE": SendStatus.RATE_LIMITED,
    "NETWORK_FAILURE": SendStatus.NETWORK_FAILURE,
}


class SignalRpcError(RuntimeError):
    """Raised when the daemon answers with a JSON-RPC ``error`` object."""

    def __init__(self, code: int, message: str, payload: Mapping[str, Any]):
        super().__init__(f"signal-cli error {code}: {message}")
        self.code = code
        self.payload = payload


class SignalRpcChannel:
    """Synchronous :class:`~dutybot.interfaces.channel.MessagingChannel` for signal-cli.

    Parameters
    ----------
    config:
        :class:`dutybot.config.models.SignalConfig` with daemon URL, optional
        account and request timeout.
    session:
        Optional pre-configured :class:`httpx.Client` (e.g. for tests).
    """

    def __init__(self, config: SignalConfig, session: httpx.Client | None = None) -> None:
        self._account = config.account
        self._timeout = config.request_timeout_sec
        self._client = session or httpx.Client(base_url=config.rpc_url, timeout=self._timeout)
        self._ids = itertools.count(1)

    def close(self) -> None:
        """Close the underlying HTTP client."""

        self._client.close()

    # ------------------------------------------------------------------
    # JSON-RPC plumbing
    # ------------------------------------------------------------------
    def _call(self, method: str, params: Optional[Dict[str, Any]] = None, *, timeout: float | None = None) -> Any:
        body_params = dict(params or {})
        if self._account:
            body_params["account"] = self._account
        request_id = next(self._ids)
        payload = {"jsonrpc": "2.0", "method": method, "params": body_params, "id": request_id}
        response = self._client.post(RPC_PATH, json=payload, timeout=timeout or self._timeout)
        response.raise_for_status()
        data = response.json()
        if not isinstance(data, dict):
            raise ChannelError(f"Malformed JSON-RPC response to {method}: {type(data).__name__} instead of object")
        error = data.get("error")
        if error:
            if not isinstance(error, dict):
                raise SignalRpcError(0, str(error), data)
            raise SignalRpcError(int(error.get("code", 0)), str(error.get("message", "")), data)
        return data.get("result")

    # ------------------------------------------------------------------
    # MessagingChannel
    # ------------------------------------------------------------------
    def send(self, group_id: str, message: OutgoingMessage) -> SendResult:
        params: Dict[str, Any] = {
            "groupId": group_id,
            "message": message.text,
            "notifySelf": True,
        }
        if message.mentions:
            params["mention"] = [
                f"{span.start}:{span.length}:{span.member.recipient}" for span in message.mentions
            ]
        try:
            result = self._call("send", params)
        except SignalRpcError as exc:
            if exc.code == USER_ERROR_CODE:
                raise UserError(str(exc)) from exc
            raise ChannelError(f"Failed to send message: {exc}") from exc
        except (httpx.HTTPError, ValueError) as exc:
            raise ChannelError(f"Failed to send message: {exc} ({type(exc).__name__})") from exc
        return parse_send_result(result)

    def receive(self, timeout: float, max_count: int) -> ReceiveResult:
        params: Dict[str, Any] = {"timeout": timeout}
        if max_count > 0:
            params["maxMessages"] = max_count
        try:
            result = self._call("receive", params, timeout=self._timeout + timeout)
        except httpx.TimeoutException:
            LOGGER.debug("Receive timed out", extra={"timeout": timeout})
            return ReceiveTimeout()
        except (httpx.HTTPError, SignalRpcError, ChannelError, ValueError) as exc:
            return ReceiveTransportError(reason=f"{exc} ({type(exc).__name__})")
        return ReceiveOk(events=tuple(parse_envelopes(result or [])))

    def list_groups(self) -> Sequence[GroupContext]:
        try:
            result = self._call("listGroups")
        except SignalRpcError as exc:
            if exc.code == USER_ERROR_CODE:
                raise UserError(str(exc)) from exc
            raise ChannelError(f"Failed to list groups: {exc}") from exc
        except (httpx.HTTPError, ValueError) as exc:
            raise ChannelError(f"Failed to list groups: {exc} ({type(exc).__name__})") from exc
        return [parse_group(entry) for entry in result or [] if entry.get("id")]


# ----------------------------------------------------------------------
# Payload parsing
# ----------------------------------------------------------------------
def _member(payload: Mapping[str, Any] | None) -> Member | None:
    if not payload:
        return None
    number = payload.get("number") or None
    uuid = payload.get("uuid") or None
    if not number and not uuid:
        return None
    return Member(number=number, uuid=uuid)


def parse_group(entry: Mapping[str, Any]) -> GroupContext:
    members = frozenset(m for m in (_member(raw) for raw in entry.get("members") or []) if m is not None)
    return GroupContext(group_id=entry["id"], members=members, title=entry.get("name") or "")


def parse_send_result(result: Mapping[str, Any] | None) -> SendResult:
    if not result:
        return SendResult()
    recipients: List[RecipientResult] = []
    for raw in result.get("results") or []:
        member = _member(raw.get("recipientAddress"))
        if member is None:
            continue
        status = _SEND_STATUS.get(str(raw.get("type", "")).upper(), SendStatus.UNKNOWN)
        recipients.append(RecipientResult(recipient=member, status=status))
    return SendResult(timestamp=result.get("timestamp"), results=recipients)


def parse_envelopes(items: Sequence[Mapping[str, Any]]) -> List[InboundEvent]:
    """Convert ``receive`` results into :class:`InboundEvent` objects.

    Envelopes without a data message (receipts, typing indicators) are
    dropped. The delivery time falls back to the sender timestamp when the
    server delivery timestamp is missing.
    """

    events: List[InboundEvent] = []
    for item in items:
        envelope = item.get("envelope", item)
        data = envelope.get("dataMessage")
        if not data:
            continue
        delivered_ms = envelope.get("serverDeliveredTimestamp") or envelope.get("timestamp") or 0
        group_info = data.get("groupInfo") or {}
        mentions = []
        for raw in data.get("mentions") or []:
            member = _member(raw)
            if member is None:
                continue
            mentions.append(MentionSpan(member=member, start=int(raw.get("start", 0)), length=int(raw.get("length", 1))))
        sender = _member({"number": envelope.get("sourceNumber"), "uuid": envelope.get("sourceUuid")})
        events.append(
            InboundEvent(
                delivered_at=from_epoch_millis(delivered_ms),
                group_id=group_info.get("groupId"),
                body=data.get("message"),
                mentions=tuple(mentions),
                sender=sender,
            )
        )
    return events


__all__ = ["SignalRpcChannel", "SignalRpcError", "parse_envelopes", "parse_group", "parse_send_result"]
