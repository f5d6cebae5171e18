"""Utilities for dealing with timezones and timestamps.

The stale-command cutoff ("ignore everything delivered before 05:00 today")
is evaluated in the configured timezone; transports report delivery times as
epoch milliseconds which are converted to aware datetimes here.
"""
from __future__ import annotations

from datetime import datetime, timezone
from zoneinfo import ZoneInfo

DEFAULT_TZ_NAME = "UTC"


def get_app_timezone(tz_name: str | None = None) -> ZoneInfo:
    """Return the ZoneInfo object for the configured timezone."""

    target_name = tz_name or DEFAULT_TZ_NAME
    return ZoneInfo(target_name)


def now_utc() -> datetime:
    """Return the current UTC datetime with tzinfo."""

    return datetime.now(timezone.utc)


def from_epoch_millis(value: int | float) -> datetime:
    """Convert epoch milliseconds into an aware UTC datetime."""

    return datetime.fromtimestamp(float(value) / 1000.0, tz=timezone.utc)


def daily_cutoff(now: datetime, hour: int, tz_name: str | None = None) -> datetime:
    """Return ``hour:00`` of the current day in ``tz_name`` as an aware datetime."""

    if now.tzinfo is None:
        raise ValueError("Datetime must be timezone-aware before conversion")
    if not 0 <= hour <= 23:
        raise ValueError(f"Cutoff hour must be within 0..23, got {hour}")
    local_now = now.astimezone(get_app_timezone(tz_name))
    return local_now.replace(hour=hour, minute=0, second=0, microsecond=0)
