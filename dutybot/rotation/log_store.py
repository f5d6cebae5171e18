"""File-based persistence of rotation logs, one JSON document per group."""
from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path

from dutybot.core.errors import RotationLogError
from dutybot.core.types import group_file_token

from .models import RotationLog

LOGGER = logging.getLogger(__name__)


class RotationLogStore:
    """Read and write ``round-robin-<group>.json`` files under ``directory``.

    Writes go to a temporary file in the same directory which then replaces
    the target, so readers never see a half-written log. Only one process per
    group may write; concurrent invocations are not coordinated.
    """

    def __init__(self, directory: Path) -> None:
        self.directory = directory
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise RotationLogError(f"Cannot create log directory {directory}: {exc}") from exc

    def path_for(self, group_id: str) -> Path:
        return self.directory / f"round-robin-{group_file_token(group_id)}.json"

    def load(self, group_id: str) -> RotationLog:
        path = self.path_for(group_id)
        if not path.exists():
            log = RotationLog()
            self.save(group_id, log)
            LOGGER.info("Created empty rotation log", extra={"path": str(path)})
            return log
        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise RotationLogError(f"Error reading log file {path}: {exc}") from exc
        if not isinstance(payload, dict):
            raise RotationLogError(f"Log file {path} must contain a JSON object")
        try:
            return RotationLog.from_dict(payload)
        except (TypeError, ValueError, AttributeError) as exc:
            raise RotationLogError(f"Malformed log file {path}: {exc}") from exc

    def save(self, group_id: str, log: RotationLog) -> RotationLog:
        path = self.path_for(group_id)
        data = json.dumps(log.to_dict(), indent=2, ensure_ascii=False)
        tmp_name: str | None = None
        try:
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=self.directory,
                prefix=f".{path.name}.",
                suffix=".tmp",
                delete=False,
            ) as handle:
                tmp_name = handle.name
                handle.write(data)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_name, path)
        except OSError as exc:
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise RotationLogError(f"Error writing log file {path}: {exc}") from exc
        LOGGER.debug(
            "Rotation log written",
            extra={"path": str(path), "served": len(log.served), "ignored": len(log.ignored)},
        )
        return log


__all__ = ["RotationLogStore"]
