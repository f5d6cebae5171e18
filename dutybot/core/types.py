"""Shared type aliases and small parsing helpers.

Group identifiers travel through the whole bot as base64 strings (the form
signal-cli prints and accepts). ``parse_group_id`` is the single place that
validates user input before it reaches the transport.
"""
from __future__ import annotations

import base64
import binascii
from typing import Any, Mapping, NewType, TypeAlias

from .errors import UserError

GroupId = NewType("GroupId", str)
PhoneNumber = NewType("PhoneNumber", str)
MemberUuid = NewType("MemberUuid", str)

JSONLike: TypeAlias = Mapping[str, Any]


def parse_group_id(value: str | None) -> GroupId:
    """Validate a base64 group id and return it unchanged."""

    if value is None or not value.strip():
        raise UserError("No group ID given")
    candidate = value.strip()
    try:
        raw = base64.b64decode(candidate, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise UserError(f"Invalid group id: {candidate}") from exc
    if not raw:
        raise UserError(f"Invalid group id: {candidate}")
    return GroupId(candidate)


def group_file_token(group_id: GroupId | str) -> str:
    """Return a filesystem-safe token for ``group_id`` (URL-safe alphabet)."""

    return str(group_id).replace("+", "-").replace("/", "_")
