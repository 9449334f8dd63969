# src/cstest/storage.py
"""
Workspace-scoped key/value storage persisted as a JSON file.
"""

import json
from pathlib import Path
from typing import Any

import structlog

from cstest.exceptions import StorageError
from cstest.telemetry import StructLogger

log: StructLogger = structlog.get_logger("storage")

STATE_DIR_NAME = ".cstest"
STATE_FILE_NAME = "state.json"


class WorkspaceStorage:
    """Keeps small JSON-serializable values for one workspace."""

    def __init__(self, path: Path):
        self.path = Path(path)

    @classmethod
    def for_workspace(cls, workspace_root: Path) -> "WorkspaceStorage":
        return cls(Path(workspace_root) / STATE_DIR_NAME / STATE_FILE_NAME)

    def _read_all(self) -> dict[str, Any]:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except OSError as e:
            raise StorageError(f"Could not read workspace storage '{self.path}': {e}") from e
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            log.warning("Workspace storage is corrupt; ignoring it", path=str(self.path), error=str(e))
            return {}
        if not isinstance(data, dict):
            log.warning("Workspace storage is not a JSON object; ignoring it", path=str(self.path))
            return {}
        return data

    def get_value(self, key: str, default: Any = None) -> Any:
        return self._read_all().get(key, default)

    def set_value(self, key: str, value: Any) -> None:
        data = self._read_all()
        data[key] = value
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self.path.with_suffix(".tmp")
            tmp_path.write_text(json.dumps(data, indent=2, sort_keys=True), encoding="utf-8")
            tmp_path.replace(self.path)
        except OSError as e:
            raise StorageError(f"Could not write workspace storage '{self.path}': {e}") from e
        log.debug("Stored workspace value", key=key, path=str(self.path))


class MemoryStorage:
    """In-memory storage with the same surface, for callers without a workspace."""

    def __init__(self) -> None:
        self._values: dict[str, Any] = {}

    def get_value(self, key: str, default: Any = None) -> Any:
        return self._values.get(key, default)

    def set_value(self, key: str, value: Any) -> None:
        self._values[key] = value
