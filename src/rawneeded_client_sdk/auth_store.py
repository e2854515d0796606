from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from platformdirs import user_data_dir
from pydantic import ValidationError as PydanticValidationError

from .models import Preferences, SessionData

logger = logging.getLogger(__name__)


@dataclass
class _JsonFileStore:
    app_name: str = "rawneeded"
    filename: str = "store.json"
    base_dir: Path | None = None

    def _path(self) -> Path:
        base = self.base_dir or Path(user_data_dir(self.app_name, "RawNeeded"))
        base.mkdir(parents=True, exist_ok=True)
        return base / self.filename

    def _write(self, data: dict[str, Any]) -> None:
        path = self._path()
        path.write_text(json.dumps(data, indent=2))
        try:
            path.chmod(0o600)
        except OSError:
            pass

    def _read(self) -> dict[str, Any] | None:
        path = self._path()
        if not path.exists():
            return None
        try:
            data = json.loads(path.read_text())
        except json.JSONDecodeError:
            logger.warning("persisted_state_corrupt", extra={"file": self.filename})
            self.clear()
            return None
        if not isinstance(data, dict):
            self.clear()
            return None
        return data

    def clear(self) -> None:
        path = self._path()
        if path.exists():
            path.unlink()


@dataclass
class AuthStore(_JsonFileStore):
    filename: str = "session.json"

    def save(self, session: SessionData) -> None:
        self._write(session.model_dump(mode="json"))

    def load(self) -> SessionData | None:
        data = self._read()
        if data is None:
            return None
        try:
            return SessionData.model_validate(data)
        except PydanticValidationError:
            logger.warning("persisted_session_invalid", extra={"file": self.filename})
            self.clear()
            return None


@dataclass
class PreferenceStore(_JsonFileStore):
    filename: str = "preferences.json"

    def save(self, preferences: Preferences) -> None:
        self._write(preferences.model_dump(mode="json"))

    def load(self) -> Preferences:
        data = self._read()
        if data is None:
            return Preferences()
        try:
            return Preferences.model_validate(data)
        except PydanticValidationError:
            self.clear()
            return Preferences()
