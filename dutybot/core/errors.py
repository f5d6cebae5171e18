"""Error hierarchy shared by the bot subsystems.

Two families matter to the command-line entry point: :class:`UserError`
covers situations the caller can fix (bad arguments, wrong group id, group
refusing our messages) and :class:`UnexpectedError` covers environment and
library failures (log file unreadable, transport down). Both abort the
invocation; the CLI maps them to different exit codes.
"""
from __future__ import annotations


class CoreError(Exception):
    """Base class for all custom exceptions in the application."""


class UserError(CoreError):
    """Raised for caller-correctable problems (arguments, group selection)."""


class ConfigurationError(UserError):
    """Raised when configuration files are missing or invalid."""


class UnexpectedError(CoreError):
    """Raised for environment or library failures outside the caller's control."""


class RotationLogError(UnexpectedError):
    """Raised when a rotation log file cannot be read or written."""


class ChannelError(UnexpectedError):
    """Raised when the messaging transport fails to deliver or fetch messages."""


class RotationError(CoreError):
    """Raised when the rotation state machine cannot produce a pick."""


__all__ = [
    "ChannelError",
    "ConfigurationError",
    "CoreError",
    "RotationError",
    "RotationLogError",
    "UnexpectedError",
    "UserError",
]
