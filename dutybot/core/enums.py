"""Enumerations shared across bot subsystems.

The command kinds live in the core package so that both the config models
(trigger table) and the command interpreter can import them without
introducing circular dependencies.
"""
from __future__ import annotations

from enum import Enum


class CommandKind(str, Enum):
    """Corrective commands understood by the bot, in dispatch priority order."""

    HELP = "help"
    UNDO = "undo"
    REDRAW = "redraw"
    IGNORE_AND_REDRAW = "ignore_and_redraw"
    SWAP = "swap"


class SendStatus(str, Enum):
    """Per-recipient delivery outcome reported by the transport."""

    SUCCESS = "success"
    UNREGISTERED = "unregistered"
    IDENTITY_FAILURE = "identity_failure"
    RATE_LIMITED = "rate_limited"
    NETWORK_FAILURE = "network_failure"
    UNKNOWN = "unknown"
