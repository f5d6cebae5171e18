"""Duty rotation state: members, the rotation log, selection and persistence."""
from .log_store import RotationLogStore
from .models import GroupContext, Member, RotationLog, ServedSet
from .selector import Pick, pick_next

__all__ = [
    "GroupContext",
    "Member",
    "Pick",
    "RotationLog",
    "RotationLogStore",
    "ServedSet",
    "pick_next",
]
