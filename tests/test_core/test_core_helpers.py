from __future__ import annotations

from datetime import datetime, timezone

import pytest

from dutybot.core.errors import ConfigurationError, RotationLogError, UnexpectedError, UserError
from dutybot.core.time_utils import daily_cutoff, from_epoch_millis
from dutybot.core.types import group_file_token, parse_group_id


def test_parse_group_id_accepts_base64() -> None:
    assert parse_group_id(" Z3JvdXAtb25l ") == "Z3JvdXAtb25l"


@pytest.mark.parametrize("value", [None, "", "   ", "not base64!", "===="])
def test_parse_group_id_rejects_invalid_input(value) -> None:
    with pytest.raises(UserError):
        parse_group_id(value)


def test_group_file_token_is_url_safe() -> None:
    assert group_file_token("a+b/c=") == "a-b_c="


def test_daily_cutoff_uses_configured_timezone() -> None:
    now = datetime(2024, 7, 1, 1, 30, tzinfo=timezone.utc)  # 03:30 in Berlin (CEST)
    cutoff = daily_cutoff(now, 5, "Europe/Berlin")
    assert cutoff.isoformat() == "2024-07-01T05:00:00+02:00"
    assert cutoff.astimezone(timezone.utc) == datetime(2024, 7, 1, 3, 0, tzinfo=timezone.utc)


def test_daily_cutoff_validates_arguments() -> None:
    with pytest.raises(ValueError):
        daily_cutoff(datetime(2024, 1, 1), 5)
    with pytest.raises(ValueError):
        daily_cutoff(datetime(2024, 1, 1, tzinfo=timezone.utc), 24)


def test_from_epoch_millis() -> None:
    assert from_epoch_millis(1_500) == datetime(1970, 1, 1, 0, 0, 1, 500_000, tzinfo=timezone.utc)


def test_error_hierarchy() -> None:
    assert issubclass(ConfigurationError, UserError)
    assert issubclass(RotationLogError, UnexpectedError)
    assert not issubclass(UnexpectedError, UserError)
