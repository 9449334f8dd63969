# src/cstest/runtime/facade.py

"""
Public entry points for running ChoiceScript's Quicktest and Randomtest.
"""

from pathlib import Path

import structlog

from cstest.config import CstestConfig
from cstest.notifier import Notifier
from cstest.settings import RandomtestSettings, SettingsResolver, SettingsSource
from cstest.sinks import LogDocument, LogDocumentProvider, OutputChannel, OutputSink
from cstest.storage import WorkspaceStorage
from cstest.telemetry import StructLogger
from cstest.wizard import Prompter

from .supervisor import (
    ErrorCallback,
    IterationCallback,
    ProcessSupervisor,
    StatusCallback,
    TestRun,
)

log: StructLogger = structlog.get_logger("runtime.facade")

QUICKTEST = "Quicktest"
RANDOMTEST = "Randomtest"


def quicktest_args(choicescript_path: Path | str, scene_path: Path | str, image_path: Path | str | None) -> list[str]:
    # The third slot is reserved by autotest.js and always left empty.
    return [str(choicescript_path), str(scene_path), "", str(image_path) if image_path is not None else "."]


class ChoiceScriptTestService:
    """Ties settings resolution, the process supervisor and the output sinks together."""

    def __init__(
        self,
        config: CstestConfig,
        supervisor: ProcessSupervisor,
        resolver: SettingsResolver,
        channel: OutputChannel,
        documents: LogDocumentProvider | None = None,
    ):
        self.config = config
        self.supervisor = supervisor
        self.resolver = resolver
        self.channel = channel
        self.documents = documents or LogDocumentProvider()

    @classmethod
    def from_config(
        cls,
        config: CstestConfig,
        notifier: Notifier,
        channel: OutputChannel,
        prompter: Prompter | None = None,
    ) -> "ChoiceScriptTestService":
        project = config.project
        supervisor = ProcessSupervisor(
            notifier,
            interpreter=[project.node_executable],
            workspace_root=project.workspace_root,
        )
        storage = WorkspaceStorage.for_workspace(project.workspace_root or Path.cwd())
        resolver = SettingsResolver(config.randomtest, storage, prompter)
        return cls(config, supervisor, resolver, channel)

    @property
    def is_running(self) -> bool:
        return self.supervisor.is_running

    def run_quicktest(
        self,
        on_error: ErrorCallback | None = None,
        on_status: StatusCallback | None = None,
    ) -> TestRun:
        """Start Quicktest, writing its output to the output channel."""
        project = self.config.project
        args = quicktest_args(project.choicescript_path, project.scene_path, project.image_path)
        return self.supervisor.start(
            QUICKTEST,
            project.quicktest_path,
            args,
            self.channel,
            on_error=on_error,
            on_status=on_status,
        )

    def _randomtest_sink(self, settings: RandomtestSettings) -> OutputSink:
        if settings.put_results_in_document:
            return self.documents.get_log_document(RANDOMTEST, settings.put_results_in_unique_document)
        return self.channel

    def _release_document(self, run: TestRun) -> None:
        # Unique documents are never handed out again once shown.
        if isinstance(run.sink, LogDocument) and run.sink.log_id:
            self.documents.close(run.sink)

    async def run_randomtest(
        self,
        source: SettingsSource,
        on_error: ErrorCallback | None = None,
        on_status: StatusCallback | None = None,
        on_iteration_count: IterationCallback | None = None,
    ) -> TestRun:
        """
        Resolve Randomtest settings from ``source`` and start Randomtest.

        Raises:
            AlreadyRunningError: if a test is running; checked before any
                settings are collected.
            WizardCancelledError: if interactive settings are abandoned.
        """
        self.supervisor.ensure_idle(RANDOMTEST)

        settings = await self.resolver.resolve(source)
        project = self.config.project
        args = settings.to_args(str(project.choicescript_path), str(project.scene_path))
        sink = self._randomtest_sink(settings)
        log.debug("Randomtest output destination", sink=type(sink).__name__)
        return self.supervisor.start(
            RANDOMTEST,
            project.randomtest_path,
            args,
            sink,
            on_error=on_error,
            on_status=on_status,
            on_iteration_count=on_iteration_count,
            on_finished=self._release_document,
        )

    def cancel(self) -> None:
        self.supervisor.cancel()

    async def wait(self) -> TestRun | None:
        return await self.supervisor.wait()
