# tests/unit/test_storage.py

"""Unit tests for workspace storage."""

import json
from pathlib import Path

import pytest

from cstest.exceptions import StorageError
from cstest.storage import MemoryStorage, WorkspaceStorage


def test_values_survive_new_instances(tmp_path: Path) -> None:
    WorkspaceStorage.for_workspace(tmp_path).set_value("randomtest.previousSettings", {"iterations": 3})

    storage = WorkspaceStorage.for_workspace(tmp_path)

    assert storage.path == tmp_path / ".cstest" / "state.json"
    assert storage.get_value("randomtest.previousSettings") == {"iterations": 3}
    assert storage.get_value("other", "fallback") == "fallback"


def test_set_value_keeps_other_keys(tmp_path: Path) -> None:
    storage = WorkspaceStorage.for_workspace(tmp_path)
    storage.set_value("a", 1)
    storage.set_value("b", 2)

    assert json.loads(storage.path.read_text(encoding="utf-8")) == {"a": 1, "b": 2}
    assert not storage.path.with_suffix(".tmp").exists()


@pytest.mark.parametrize("content", ["{not json", "[1, 2]"])
def test_unreadable_state_is_ignored(tmp_path: Path, content: str) -> None:
    storage = WorkspaceStorage.for_workspace(tmp_path)
    storage.path.parent.mkdir(parents=True)
    storage.path.write_text(content, encoding="utf-8")

    assert storage.get_value("a") is None
    storage.set_value("a", 1)
    assert storage.get_value("a") == 1


def test_write_failure_raises_storage_error(tmp_path: Path) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("", encoding="utf-8")
    # The state directory cannot be created below a regular file.
    storage = WorkspaceStorage(blocker / "state.json")

    with pytest.raises(StorageError):
        storage.set_value("a", 1)


def test_memory_storage() -> None:
    storage = MemoryStorage()
    assert storage.get_value("a", 5) == 5
    storage.set_value("a", 1)
    assert storage.get_value("a") == 1
