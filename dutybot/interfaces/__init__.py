"""Messaging transport package."""

from .channel import (
    InboundEvent,
    MentionSpan,
    MessagingChannel,
    OutgoingMessage,
    ReceiveOk,
    ReceiveResult,
    ReceiveTimeout,
    ReceiveTransportError,
    RecipientResult,
    SendResult,
)
from .signal_rpc import SignalRpcChannel

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
    "SignalRpcChannel",
]
