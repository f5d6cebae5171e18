from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest
from click.testing import CliRunner

from dutybot import main as main_module
from dutybot.config import loader
from dutybot.config.models import AppConfig, StorageConfig, WatchConfig
from dutybot.core.errors import UserError
from dutybot.interfaces.channel import ReceiveOk, ReceiveTransportError
from dutybot.rotation.log_store import RotationLogStore
from dutybot.rotation.models import GroupContext

from conftest import GROUP_ID, FakeChannel


@pytest.fixture(autouse=True)
def reset_logging():
    yield
    logger = logging.getLogger("dutybot")
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)
    logger.propagate = True


@pytest.fixture
def isolated(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv(loader.CONFIG_ENV_VAR, raising=False)
    return tmp_path


@pytest.fixture
def patched_channel(monkeypatch: pytest.MonkeyPatch, fake_channel: FakeChannel) -> FakeChannel:
    closed: list[bool] = []
    fake_channel.close = lambda: closed.append(True)  # type: ignore[attr-defined]
    fake_channel.closed = closed  # type: ignore[attr-defined]
    monkeypatch.setattr(main_module, "SignalRpcChannel", lambda config: fake_channel)
    return fake_channel


def _config(tmp_path: Path) -> AppConfig:
    return AppConfig(
        storage=StorageConfig(directory=str(tmp_path / "logs")),
        watch=WatchConfig(receive_timeout_sec=0.1, sleep_interval_sec=0),
    )


def test_run_announces_once(tmp_path: Path, fake_channel: FakeChannel, members) -> None:
    lines: list[str] = []
    log = main_module.run(
        config=_config(tmp_path),
        group_id=GROUP_ID,
        message="Heute @mention",
        channel=fake_channel,
        echo=lines.append,
    )
    assert len(log.served) == 1
    assert next(iter(log.served)) in members
    assert lines[0] == "Round-robin notification system for Mittagessen"
    assert lines[1] == "1"
    stored = RotationLogStore(tmp_path / "logs").load(GROUP_ID)
    assert stored == log


def test_run_watches_requested_cycles(tmp_path: Path, fake_channel: FakeChannel) -> None:
    fake_channel.inbox.append(ReceiveOk(events=()))
    main_module.run(
        config=_config(tmp_path),
        group_id=GROUP_ID,
        message="Heute @mention",
        stay="2",
        channel=fake_channel,
        echo=lambda _: None,
    )
    assert len(fake_channel.receive_calls) == 2


@pytest.mark.parametrize(
    ("kwargs", "message"),
    [
        ({"group_id": None}, "No group ID given"),
        ({"message": "Heute jemand"}, "@mention"),
        ({"message": None}, "@mention"),
        ({"stay": "drei"}, "valid integer"),
        ({"stay": "-1"}, "negative"),
        ({"group_id": "b3RoZXI="}, "No group found"),
    ],
)
def test_run_user_errors(tmp_path: Path, fake_channel: FakeChannel, kwargs, message) -> None:
    params = {"group_id": GROUP_ID, "message": "Heute @mention"}
    params.update(kwargs)
    with pytest.raises(UserError, match=message):
        main_module.run(config=_config(tmp_path), channel=fake_channel, echo=lambda _: None, **params)
    assert fake_channel.sent == []


def test_run_rejects_ambiguous_group(tmp_path: Path, group: GroupContext) -> None:
    channel = FakeChannel([group, group])
    with pytest.raises(UserError):
        main_module.run(config=_config(tmp_path), group_id=GROUP_ID, message="@mention", channel=channel)


def test_invalid_ignore_before_falls_back_to_default(tmp_path: Path, fake_channel: FakeChannel) -> None:
    assert main_module._parse_hour("abends", 5) == 5
    assert main_module._parse_hour("25", 5) == 5
    assert main_module._parse_hour("7", 5) == 7
    assert main_module._parse_hour(None, 6) == 6


def test_cli_success(isolated: Path, patched_channel: FakeChannel) -> None:
    result = CliRunner().invoke(main_module.cli, ["-g", GROUP_ID, "-m", "Heute kocht @mention"])
    assert result.exit_code == 0, result.output
    assert "Round-robin notification system for Mittagessen" in result.output
    assert patched_channel.closed == [True]  # type: ignore[attr-defined]
    stored = json.loads((isolated / f"round-robin-{GROUP_ID}.json").read_text(encoding="utf-8"))
    assert len(stored["served"]) == 1


def test_cli_user_error_exit_code(isolated: Path, patched_channel: FakeChannel) -> None:
    result = CliRunner().invoke(main_module.cli, ["-g", GROUP_ID, "-m", "ohne platzhalter"])
    assert result.exit_code == main_module.EXIT_USER_ERROR
    assert "@mention" in result.output


def test_cli_missing_group_exit_code(isolated: Path, patched_channel: FakeChannel) -> None:
    result = CliRunner().invoke(main_module.cli, ["-m", "Heute @mention"])
    assert result.exit_code == main_module.EXIT_USER_ERROR
    assert "No group ID given" in result.output


def test_cli_unexpected_error_exit_code(isolated: Path, patched_channel: FakeChannel) -> None:
    patched_channel.inbox.append(ReceiveTransportError(reason="daemon gone"))
    result = CliRunner().invoke(main_module.cli, ["-g", GROUP_ID, "-m", "Heute @mention", "-s", "1"])
    assert result.exit_code == main_module.EXIT_UNEXPECTED_ERROR
    assert "daemon gone" in result.output


def test_cli_invalid_config_is_user_error(isolated: Path, patched_channel: FakeChannel) -> None:
    config_file = isolated / "bad.yml"
    config_file.write_text("watch:\n  max_messages: 0\n", encoding="utf-8")
    result = CliRunner().invoke(main_module.cli, ["-c", str(config_file), "-g", GROUP_ID, "-m", "@mention"])
    assert result.exit_code == main_module.EXIT_USER_ERROR


def test_cli_unusable_storage_directory_is_unexpected(isolated: Path, patched_channel: FakeChannel) -> None:
    (isolated / "blocker").write_text("", encoding="utf-8")
    config_file = isolated / "dutybot.yml"
    config_file.write_text("storage:\n  directory: blocker/rotation\n", encoding="utf-8")
    result = CliRunner().invoke(main_module.cli, ["-c", str(config_file), "-g", GROUP_ID, "-m", "Heute @mention"])
    assert result.exit_code == main_module.EXIT_UNEXPECTED_ERROR
    assert "Cannot create log directory" in result.output
    assert patched_channel.sent == []


def test_cli_unusable_log_directory_is_unexpected(isolated: Path, patched_channel: FakeChannel) -> None:
    (isolated / "blocker").write_text("", encoding="utf-8")
    config_file = isolated / "dutybot.yml"
    config_file.write_text("telemetry:\n  log_dir: blocker/logs\n", encoding="utf-8")
    result = CliRunner().invoke(main_module.cli, ["-c", str(config_file), "-g", GROUP_ID, "-m", "Heute @mention"])
    assert result.exit_code == main_module.EXIT_UNEXPECTED_ERROR
    assert "Cannot set up logging" in result.output
