"""Configuration loading and validation package."""

from .loader import load_app_config, load_or_default, resolve_config_path
from .models import (
    AppConfig,
    BotSettings,
    CommandsConfig,
    RepliesConfig,
    SignalConfig,
    StorageConfig,
    TelemetryConfig,
    TriggerConfig,
    WatchConfig,
)

__all__ = [
    "AppConfig",
    "BotSettings",
    "CommandsConfig",
    "RepliesConfig",
    "SignalConfig",
    "StorageConfig",
    "TelemetryConfig",
    "TriggerConfig",
    "WatchConfig",
    "load_app_config",
    "load_or_default",
    "resolve_config_path",
]
