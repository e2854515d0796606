from __future__ import annotations

import json
import logging
import os
import sys
from pathlib import Path
from typing import Any, TextIO

from platformdirs import user_log_dir

from .events import TelemetryEvent, build_event

logger = logging.getLogger(__name__)


class TelemetryLogger:
    """Append-only JSONL sink for client telemetry, off unless enabled."""

    def __init__(
        self,
        *,
        app_name: str = "rawneeded",
        enabled: bool | None = None,
        log_file: str | Path | None = None,
        stdout_sink: bool = False,
        stdout_stream: TextIO | None = None,
    ) -> None:
        self.app_name = app_name
        self.enabled = enabled if enabled is not None else _env_telemetry_enabled()
        self.log_file = Path(log_file) if log_file else Path(user_log_dir(app_name)) / "telemetry.jsonl"
        self.stdout_sink = stdout_sink
        self.stdout_stream = stdout_stream

    def emit(self, event: TelemetryEvent) -> bool:
        if not self.enabled:
            return False

        payload = event.to_dict()
        payload["app_name"] = self.app_name
        line = json.dumps(payload, sort_keys=True, default=str)

        self.log_file.parent.mkdir(parents=True, exist_ok=True)
        with self.log_file.open("a", encoding="utf-8") as fp:
            fp.write(f"{line}\n")

        if self.stdout_sink:
            stream = self.stdout_stream or sys.stdout
            stream.write(f"{line}\n")
            stream.flush()

        return True

    def record(self, *, category: str, name: str, module: str, action: str, **fields: Any) -> bool:
        """Build and emit in one step; a rejected event is logged and dropped."""
        if not self.enabled:
            return False
        try:
            event = build_event(category=category, name=name, module=module, action=action, **fields)
        except ValueError as exc:
            logger.warning("telemetry_event_rejected", extra={"event_name": name, "reason": str(exc)})
            return False
        return self.emit(event)


def _env_telemetry_enabled() -> bool:
    value = os.getenv("RAWNEEDED_TELEMETRY_ENABLED", "0").strip().lower()
    return value in {"1", "true", "yes", "on"}
