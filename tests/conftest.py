import asyncio
import signal
import sys
from pathlib import Path

import pytest

from cstest.config import CstestConfig, ProjectConfig, RandomtestConfig
from cstest.storage import MemoryStorage


class RecordingNotifier:
    """Notifier that remembers everything it was asked to show."""

    def __init__(self):
        self.statuses: list[str] = []
        self.errors: list[str] = []
        self.infos: list[str] = []
        self.documents = []
        self.opened: list[Path] = []

    def status(self, message: str) -> None:
        self.statuses.append(message)

    def error(self, message: str) -> None:
        self.errors.append(message)

    def info(self, message: str) -> None:
        self.infos.append(message)

    def show_document(self, document) -> None:
        self.documents.append(document)

    def open_file(self, path: Path) -> None:
        self.opened.append(path)


class FakeProcess:
    """Stands in for asyncio.subprocess.Process; the test decides what it prints and when it exits."""

    def __init__(self):
        self.stdout = asyncio.StreamReader()
        self.stderr = asyncio.StreamReader()
        self.returncode: int | None = None
        self.terminate_calls = 0
        self._exited = asyncio.Event()

    def emit_stdout(self, text: str) -> None:
        self.stdout.feed_data(text.encode("utf-8"))

    def emit_stderr(self, text: str) -> None:
        self.stderr.feed_data(text.encode("utf-8"))

    def exit(self, returncode: int) -> None:
        self.stdout.feed_eof()
        self.stderr.feed_eof()
        self.returncode = returncode
        self._exited.set()

    def terminate(self) -> None:
        self.terminate_calls += 1
        self.exit(-signal.SIGTERM)

    async def wait(self) -> int:
        await self._exited.wait()
        return self.returncode


class FakeSpawner:
    """Replacement for asyncio.create_subprocess_exec."""

    def __init__(self, process: FakeProcess | None = None, error: Exception | None = None):
        self.process = process
        self.error = error
        self.calls: list[tuple[str, ...]] = []

    async def __call__(self, *command: str, **kwargs):
        self.calls.append(command)
        if self.error is not None:
            raise self.error
        return self.process


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def randomtest_config() -> RandomtestConfig:
    return RandomtestConfig(
        iterations=50,
        random_seed=7,
        put_results_in_document="fulltext",
        put_results_in_unique_document=False,
        avoid_used_options=True,
        show_choices=False,
        show_full_text=False,
        show_line_coverage_statistics=True,
    )


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    project = tmp_path / "game"
    (project / "scenes").mkdir(parents=True)
    (project / "choicescript").mkdir()
    return project


@pytest.fixture
def minimal_config(project_dir: Path, randomtest_config: RandomtestConfig) -> CstestConfig:
    return CstestConfig(
        project=ProjectConfig(
            scene_path=project_dir / "scenes",
            choicescript_path=project_dir / "choicescript",
            node_executable=sys.executable,
            workspace_root=project_dir,
        ),
        randomtest=randomtest_config,
    )


@pytest.fixture
def write_config(tmp_path: Path):
    """Writes a cstest.toml with the given body and returns its path."""

    def _write(body: str, name: str = "cstest.toml") -> Path:
        path = tmp_path / name
        path.write_text(body, encoding="utf-8")
        return path

    return _write


class ScriptedPrompter:
    """Answers wizard steps from a fixed script and records every request."""

    def __init__(self, answers):
        self.answers = list(answers)
        self.requests = []

    async def _next(self, request):
        self.requests.append(request)
        return self.answers.pop(0)

    async def ask_integer(self, request):
        return await self._next(request)

    async def ask_yes_no(self, request):
        return await self._next(request)


@pytest.fixture
def scripted_prompter():
    """Factory for prompters that replay a list of answers."""
    return ScriptedPrompter
