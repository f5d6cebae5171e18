"""Command-line entry point: announce the next member and optionally watch for commands."""
from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Callable, Optional

import click

from dutybot import __version__
from dutybot.config.loader import load_or_default
from dutybot.config.models import AppConfig
from dutybot.core.errors import CoreError, UnexpectedError, UserError
from dutybot.core.types import GroupId, parse_group_id
from dutybot.interfaces.channel import MessagingChannel, OutgoingMessage, SendResult
from dutybot.interfaces.signal_rpc import SignalRpcChannel
from dutybot.rotation.log_store import RotationLogStore
from dutybot.rotation.models import GroupContext, RotationLog
from dutybot.runtime.cycle_driver import CycleDriver
from dutybot.telemetry import configure_logging

LOGGER = logging.getLogger("dutybot.main")

EXIT_USER_ERROR = 1
EXIT_UNEXPECTED_ERROR = 2

Echo = Callable[[str], None]


def resolve_group(channel: MessagingChannel, group_id: GroupId) -> GroupContext:
    matches = [group for group in channel.list_groups() if group.group_id == group_id]
    if len(matches) != 1:
        raise UserError(f"No group found for gid {group_id}")
    return matches[0]


def _parse_cycles(value: Optional[str]) -> int:
    if value is None:
        return 0
    try:
        cycles = int(value)
    except ValueError as exc:
        raise UserError("Number of receive cycles must be a valid integer") from exc
    if cycles < 0:
        raise UserError("Number of receive cycles must not be negative")
    return cycles


def _parse_hour(value: Optional[str], default: int) -> int:
    if value is None:
        return default
    try:
        hour = int(value)
    except ValueError:
        hour = -1
    if not 0 <= hour <= 23:
        LOGGER.warning("ignore-before must be an hour between 0 and 23, defaulting to %s", default)
        return default
    return hour


def _echo_send_result(echo: Echo) -> Callable[[OutgoingMessage, SendResult], None]:
    def listener(_: OutgoingMessage, result: SendResult) -> None:
        if result.timestamp is not None:
            echo(str(result.timestamp))
        for failure in result.failures:
            echo(f"Failed to send to {failure.recipient.recipient}: {failure.status.value}")

    return listener


def run(
    *,
    config: AppConfig,
    group_id: Optional[str],
    message: Optional[str],
    stay: Optional[str] = None,
    ignore_before: Optional[str] = None,
    channel: MessagingChannel | None = None,
    echo: Echo = click.echo,
) -> RotationLog:
    """Validate the invocation, resolve the group and drive Announce + Watch."""

    gid = parse_group_id(group_id)
    placeholder = config.bot.mention_placeholder
    if not message or placeholder not in message:
        raise UserError(f"Message text must contain the literal string '{placeholder}'")
    cycles = _parse_cycles(stay)
    hour = _parse_hour(ignore_before, config.bot.ignore_before_hour)

    signal_channel: SignalRpcChannel | None = None
    if channel is None:
        signal_channel = SignalRpcChannel(config.signal)
        channel = signal_channel
    try:
        group = resolve_group(channel, gid)
        echo(f"Round-robin notification system for {group.title}")
        driver = CycleDriver(
            config=config,
            channel=channel,
            store=RotationLogStore(Path(config.storage.directory)),
            group=group,
            message_template=message,
            ignore_before_hour=hour,
            on_send=_echo_send_result(echo),
            logger=LOGGER.getChild("driver"),
        )
        return driver.run(cycles)
    finally:
        if signal_channel is not None:
            signal_channel.close()


@click.command(name="dutybot")
@click.option("-g", "--group-id", "--group", "group_id", help="Recipient group ID (base64).")
@click.option(
    "-m",
    "--message",
    help="Message to send. Include the mention placeholder (default '@mention') to mention the next member.",
)
@click.option("-s", "--stay", help="Stay and watch for commands for N receive cycles of a few seconds each.")
@click.option(
    "-i",
    "--ignore-before",
    help="Ignore commands delivered before hour N of the current day (default from config, 5).",
)
@click.option(
    "-c",
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="YAML config file (defaults to $DUTYBOT_CONFIG or config/dutybot.yml).",
)
@click.version_option(version=__version__)
def cli(
    group_id: Optional[str],
    message: Optional[str],
    stay: Optional[str],
    ignore_before: Optional[str],
    config_path: Optional[Path],
) -> None:
    """Send a notification to a group, mentioning its members in round-robin fashion.

    The next member is drawn at random from those not served in the current
    rotation; once everybody served, the rotation starts over. With --stay the
    bot keeps polling the group and reacts to commands addressed to it.
    """

    try:
        config = load_or_default(config_path)
        log_dir = Path(config.telemetry.log_dir) if config.telemetry.log_dir else None
        try:
            configure_logging(log_dir=log_dir, level=config.telemetry.log_level)
        except OSError as exc:
            raise UnexpectedError(f"Cannot set up logging in {log_dir}: {exc}") from exc
        run(
            config=config,
            group_id=group_id,
            message=message,
            stay=stay,
            ignore_before=ignore_before,
        )
    except UserError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(EXIT_USER_ERROR)
    except CoreError as exc:
        LOGGER.exception("Invocation failed")
        click.echo(f"Error: {exc}", err=True)
        sys.exit(EXIT_UNEXPECTED_ERROR)


if __name__ == "__main__":
    cli()
