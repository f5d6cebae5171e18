"""YAML loader for the config subsystem.

The bot reads one YAML file whose top-level keys mirror the sections of
:class:`~dutybot.config.models.AppConfig`. Validation errors are re-raised as
:class:`~dutybot.core.errors.ConfigurationError` so the CLI reports them as
user errors.
"""
from __future__ import annotations

import os
from pathlib import Path
from typing import Mapping

import yaml
from pydantic import ValidationError

from dutybot.core.errors import ConfigurationError

from .models import AppConfig

DEFAULT_CONFIG_PATH = Path("config") / "dutybot.yml"
CONFIG_ENV_VAR = "DUTYBOT_CONFIG"


def _read_yaml(path: Path) -> Mapping:
    """Read a YAML file and return a mapping (empty dict if file is blank)."""

    if not path.exists():
        raise ConfigurationError(f"Config file not found: {path}")
    try:
        with path.open("r", encoding="utf-8") as fp:
            data = yaml.safe_load(fp) or {}
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Invalid YAML in {path}: {exc}") from exc
    if not isinstance(data, Mapping):
        raise ConfigurationError(f"YAML root must be a mapping in {path}")
    return data


def load_app_config(path: Path | str = DEFAULT_CONFIG_PATH) -> AppConfig:
    """Load and validate the bot configuration from ``path``."""

    config_path = Path(path)
    data = _read_yaml(config_path)
    try:
        return AppConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid configuration in {config_path}: {exc}") from exc


def resolve_config_path(explicit: Path | str | None = None) -> Path | None:
    """Pick the config file: explicit path, then ``$DUTYBOT_CONFIG``, then the default.

    Returns ``None`` when nothing was requested and the default file does not
    exist; callers then fall back to built-in defaults.
    """

    if explicit:
        return Path(explicit)
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path)
    if DEFAULT_CONFIG_PATH.exists():
        return DEFAULT_CONFIG_PATH
    return None


def load_or_default(explicit: Path | str | None = None) -> AppConfig:
    """Load the resolved config file or return :class:`AppConfig` defaults."""

    path = resolve_config_path(explicit)
    if path is None:
        return AppConfig()
    return load_app_config(path)
