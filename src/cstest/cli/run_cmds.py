# src/cstest/cli/run_cmds.py

import asyncio
import logging
import signal
import sys
from collections.abc import Awaitable, Callable
from pathlib import Path

import click
import structlog
from rich.console import Console
from rich.status import Status

from cstest.cli.prompts import ConsolePrompter
from cstest.cli.utils import (
    apply_config_log_level,
    config_path_option,
    logging_options,
    setup_logging_from_context,
)
from cstest.config import CstestConfig, load_config
from cstest.exceptions import (
    AlreadyRunningError,
    ConfigurationError,
    StorageError,
    WizardCancelledError,
)
from cstest.notifier import ConsoleNotifier
from cstest.runtime import QUICKTEST, RANDOMTEST, ChoiceScriptTestService, RunOutcome, TestRun
from cstest.settings import SettingsSource
from cstest.sinks import OutputChannel
from cstest.telemetry import StructLogger

log: StructLogger = structlog.get_logger("cli.run")

OUTCOME_EXIT_CODES = {
    RunOutcome.PASSED: 0,
    RunOutcome.FAILED: 1,
    RunOutcome.ABNORMAL: 1,
    RunOutcome.CANCELLED: 130,
}


class RunReporter:
    """Receives run callbacks and reports them on the console."""

    def __init__(self, console: Console, name: str):
        self.console = console
        self.name = name
        self.iteration: int | None = None
        self.errors: list[tuple[str, int, str]] = []
        self._status: Status | None = None

    def on_status(self, running: bool) -> None:
        log.debug("Test status changed", name=self.name, running=running)
        if running:
            self._status = self.console.status(f"Running {self.name}...")
            self._status.start()
        elif self._status is not None:
            self._status.stop()
            self._status = None

    def on_iteration_count(self, count: int) -> None:
        self.iteration = count
        if self._status is not None:
            self._status.update(f"Running {self.name}: iteration {count}")

    def on_error(self, scene: str, line: int, message: str) -> None:
        self.errors.append((scene, line, message))
        self.console.print(f"[bold red]{scene}:{line}:[/bold red] {message.strip()}", highlight=False)


def build_service(config: CstestConfig, console: Console, interactive: bool = False) -> ChoiceScriptTestService:
    notifier = ConsoleNotifier(console)
    channel = OutputChannel("ChoiceScript Test", console=console)
    prompter = ConsolePrompter(console) if interactive else None
    return ChoiceScriptTestService.from_config(config, notifier, channel, prompter)


async def run_to_completion(
    service: ChoiceScriptTestService,
    start: Callable[[], Awaitable[TestRun]],
) -> TestRun | None:
    """Start a run, cancel it on Ctrl-C, and wait for it to finish."""
    await start()
    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, service.cancel)
        handler_installed = True
    except (NotImplementedError, RuntimeError):
        handler_installed = False
    try:
        return await service.wait()
    finally:
        if handler_installed:
            loop.remove_signal_handler(signal.SIGINT)


def _execute(service: ChoiceScriptTestService, start: Callable[[], Awaitable[TestRun]]) -> int:
    try:
        run = asyncio.run(run_to_completion(service, start))
    except WizardCancelledError as e:
        log.info("Randomtest settings cancelled", reason=str(e))
        click.echo("Randomtest cancelled.", err=True)
        return 130
    except AlreadyRunningError as e:
        click.echo(f"Error: {e}", err=True)
        return 1
    except StorageError as e:
        log.error("Workspace storage failed", error=str(e))
        click.echo(f"Error: {e}", err=True)
        return 1
    except KeyboardInterrupt:
        log.warning("Interrupted by KeyboardInterrupt (CTRL-C).")
        return 130
    finally:
        logging.shutdown()
    if run is None or run.outcome is None:
        return 1
    return OUTCOME_EXIT_CODES[run.outcome]


def _load(ctx: click.Context, config_path: Path) -> CstestConfig:
    try:
        return load_config(config_path)
    except ConfigurationError as e:
        log.error("Failed to load or validate configuration", error=str(e))
        click.echo(f"Error: Configuration problem in '{config_path}':\n{e}", err=True)
        ctx.exit(1)


@click.command(name="quicktest")
@config_path_option
@logging_options
@click.pass_context
def quicktest_cli(ctx: click.Context, config_path: Path, **kwargs):
    """Run Quicktest over every scene of the game."""
    setup_logging_from_context(
        ctx,
        local_log_level=kwargs.get("log_level"),
        local_log_file=kwargs.get("log_file"),
        local_json_logs=kwargs.get("json_logs"),
    )
    config = _load(ctx, config_path)
    apply_config_log_level(ctx, config, **kwargs)
    console = Console()
    reporter = RunReporter(console, QUICKTEST)
    service = build_service(config, console)

    async def start() -> TestRun:
        return service.run_quicktest(on_error=reporter.on_error, on_status=reporter.on_status)

    exit_code = _execute(service, start)
    if exit_code != 0:
        sys.exit(exit_code)


@click.command(name="randomtest")
@config_path_option
@click.option(
    "-i",
    "--interactive",
    "source",
    flag_value=SettingsSource.INTERACTIVE.name,
    help="Choose the Randomtest settings step by step.",
)
@click.option(
    "-r",
    "--rerun",
    "source",
    flag_value=SettingsSource.LAST_RUN.name,
    help="Reuse the settings from the previous Randomtest run.",
)
@logging_options
@click.pass_context
def randomtest_cli(ctx: click.Context, config_path: Path, source: str | None, **kwargs):
    """Run Randomtest using the configured, previous, or interactive settings."""
    setup_logging_from_context(
        ctx,
        local_log_level=kwargs.get("log_level"),
        local_log_file=kwargs.get("log_file"),
        local_json_logs=kwargs.get("json_logs"),
    )
    settings_source = SettingsSource[source] if source else SettingsSource.CONFIGURED
    config = _load(ctx, config_path)
    apply_config_log_level(ctx, config, **kwargs)
    console = Console()
    reporter = RunReporter(console, RANDOMTEST)
    service = build_service(config, console, interactive=settings_source is SettingsSource.INTERACTIVE)

    if settings_source is SettingsSource.LAST_RUN and not service.resolver.has_previous_settings():
        console.print("No previous Randomtest settings; using the configured ones.")

    async def start() -> TestRun:
        return await service.run_randomtest(
            settings_source,
            on_error=reporter.on_error,
            on_status=reporter.on_status,
            on_iteration_count=reporter.on_iteration_count,
        )

    exit_code = _execute(service, start)
    if reporter.iteration is not None:
        console.print(f"Randomtest reached iteration {reporter.iteration}", highlight=False)
    if exit_code != 0:
        sys.exit(exit_code)

# 🔼⚙️
