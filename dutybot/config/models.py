"""Typed configuration models for the duty rotation bot.

The config subsystem relies on pydantic to validate the YAML file and to
provide strongly-typed, immutable objects to the rest of the runtime. Every
section has defaults matching the German lunch-group deployment, so an empty
file (or no file at all) yields a working configuration.
"""
from __future__ import annotations

from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, PositiveFloat, field_validator, model_validator

from dutybot.core.enums import CommandKind


class _FrozenModel(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class BotSettings(_FrozenModel):
    """How the bot addresses the group and how it is addressed."""

    address: str = Field("lieber bot:", min_length=1, description="Prefix a command must start with")
    mention_placeholder: str = Field("@mention", min_length=1)
    timezone: str = Field("Europe/Berlin")
    ignore_before_hour: int = Field(5, ge=0, le=23)

    @field_validator("address")
    @classmethod
    def _lower_address(cls, value: str) -> str:
        return value.strip().lower()


class TriggerConfig(_FrozenModel):
    """One row of the trigger table.

    ``phrases`` match the whole command text. ``require_all`` / ``require_any``
    describe a contains-style match; ``mentions`` additionally requires the
    message to carry exactly that many mentions.
    """

    phrases: Tuple[str, ...] = ()
    require_all: Tuple[str, ...] = ()
    require_any: Tuple[str, ...] = ()
    mentions: Optional[int] = Field(None, ge=0)

    @field_validator("phrases", "require_all", "require_any")
    @classmethod
    def _normalize(cls, value: Tuple[str, ...]) -> Tuple[str, ...]:
        return tuple(item.lower() for item in value if item)

    @model_validator(mode="after")
    def _require_condition(self) -> "TriggerConfig":
        if not (self.phrases or self.require_all or self.require_any):
            raise ValueError("trigger needs `phrases` or `require_all`/`require_any`")
        return self

    def matches(self, text: str, mention_count: int) -> bool:
        """Return ``True`` if normalized ``text`` triggers this command."""

        if self.mentions is not None and mention_count != self.mentions:
            return False
        if text in self.phrases:
            return True
        if not (self.require_all or self.require_any):
            return False
        if not all(fragment in text for fragment in self.require_all):
            return False
        if self.require_any and not any(fragment in text for fragment in self.require_any):
            return False
        return True

    def describe(self) -> str:
        """Human-readable trigger used in the help text."""

        if self.phrases:
            return " / ".join(f"'{phrase}'" for phrase in self.phrases)
        return " ... ".join(f"'{fragment}'" for fragment in self.require_all + self.require_any[:1])


class CommandsConfig(_FrozenModel):
    """Trigger table; dispatch order is fixed by :class:`CommandKind`."""

    help: TriggerConfig = TriggerConfig(phrases=("help",))
    undo: TriggerConfig = TriggerConfig(phrases=("heute nicht",))
    redraw: TriggerConfig = TriggerConfig(phrases=("neu ziehen",))
    ignore_and_redraw: TriggerConfig = TriggerConfig(phrases=("ignorieren und neu ziehen",))
    swap: TriggerConfig = TriggerConfig(require_all=("heute",), require_any=(", nicht", ",nicht"), mentions=2)

    def trigger_for(self, kind: CommandKind) -> TriggerConfig:
        return getattr(self, kind.value)

    def ordered(self) -> List[Tuple[CommandKind, TriggerConfig]]:
        return [(kind, self.trigger_for(kind)) for kind in CommandKind]


class RepliesConfig(_FrozenModel):
    """Reply templates. Placeholders become mentions of the affected member."""

    signature: str = " -- Euer Essensverteiler-Bot"
    undo: str = "Ok, heute nicht, habe {restored} wieder in den Pool genommen"
    redraw: str = "Habe {restored} wieder in den Pool genommen"
    ignore: str = "Ok, werde {excluded} fortan ignorieren."
    swap: str = "Habe {restored} wieder in den Pool genommen und {served} vorerst als bedient markiert"
    help_intro: str = "Ich reagiere auf folgende Kommandos."
    help_lines: Dict[CommandKind, str] = Field(
        default_factory=lambda: {
            CommandKind.HELP: "zeigt diese Hilfe.",
            CommandKind.UNDO: "mach den letzten zug rückgängig.",
            CommandKind.REDRAW: "mach den letzten zug rückgängig und ziehe neu.",
            CommandKind.IGNORE_AND_REDRAW: "den gezogenen zukünftig nie mehr ziehen und für heute neu ziehen.",
            CommandKind.SWAP: "'heute X, nicht Y' - wenn Y gezogen wurde, stattdessen X nehmen "
            "und Y zurück in den pool legen.",
        }
    )

    @model_validator(mode="after")
    def _check_placeholders(self) -> "RepliesConfig":
        required = {
            "undo": ("{restored}",),
            "redraw": ("{restored}",),
            "ignore": ("{excluded}",),
            "swap": ("{restored}", "{served}"),
        }
        for field_name, tokens in required.items():
            template = getattr(self, field_name)
            missing = [token for token in tokens if token not in template]
            if missing:
                raise ValueError(f"replies.{field_name} must contain {', '.join(missing)}")
        return self


class WatchConfig(_FrozenModel):
    """Polling parameters for the Watch phase."""

    receive_timeout_sec: PositiveFloat = 3.0
    max_messages: int = Field(-1, ge=-1, description="-1 means no limit")
    sleep_interval_sec: float = Field(10.0, ge=0)

    @field_validator("max_messages")
    @classmethod
    def _non_zero(cls, value: int) -> int:
        if value == 0:
            raise ValueError("max_messages must be -1 or positive")
        return value


class StorageConfig(_FrozenModel):
    """Where rotation logs are stored (one JSON file per group)."""

    directory: str = "."


class SignalConfig(_FrozenModel):
    """signal-cli JSON-RPC daemon connection."""

    rpc_url: str = "http://127.0.0.1:8080"
    account: Optional[str] = None
    request_timeout_sec: PositiveFloat = 10.0


class TelemetryConfig(_FrozenModel):
    """Logging switches."""

    log_level: str = Field("INFO")
    log_dir: Optional[str] = Field("data/logs", description="None disables the file handler")

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        level = value.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {value}")
        return level


class AppConfig(_FrozenModel):
    """Runtime config composed of all sections."""

    bot: BotSettings = Field(default_factory=BotSettings)
    commands: CommandsConfig = Field(default_factory=CommandsConfig)
    replies: RepliesConfig = Field(default_factory=RepliesConfig)
    watch: WatchConfig = Field(default_factory=WatchConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    signal: SignalConfig = Field(default_factory=SignalConfig)
    telemetry: TelemetryConfig = Field(default_factory=TelemetryConfig)
