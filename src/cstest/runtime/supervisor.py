# src/cstest/runtime/supervisor.py

"""
Owns the single active test process: spawns it, streams its output into a
sink, extracts progress and errors, and classifies how it ended.
"""

import asyncio
import codecs
import signal
from collections.abc import Awaitable, Callable, Sequence
from datetime import datetime
from enum import Enum, auto
from pathlib import Path
from typing import Any

import structlog
from attrs import define, field, mutable

from cstest.exceptions import AlreadyRunningError, SpawnError
from cstest.line_protocol import (
    ErrorLocation,
    find_iteration_count,
    last_nonempty_line,
    parse_error_line,
)
from cstest.notifier import Notifier
from cstest.sinks import LogDocument, OutputSink, show_log_document
from cstest.telemetry import StructLogger

log: StructLogger = structlog.get_logger("runtime.supervisor")

ErrorCallback = Callable[[str, int, str], None]
StatusCallback = Callable[[bool], None]
IterationCallback = Callable[[int], None]
Spawner = Callable[..., Awaitable[Any]]
FinishedCallback = Callable[["TestRun"], None]

DEFAULT_CHUNK_SIZE = 64 * 1024
CANCEL_SIGNAL = "SIGTERM"


class RunState(Enum):
    IDLE = auto()
    RUNNING = auto()
    FINISHED = auto()


class RunOutcome(Enum):
    """How a finished run ended."""

    PASSED = auto()
    CANCELLED = auto()
    FAILED = auto()
    ABNORMAL = auto()  # Neither an exit code nor a signal was reported.


@define(frozen=True, slots=True)
class RunCallbacks:
    on_error: ErrorCallback | None = None
    on_status: StatusCallback | None = None
    on_iteration_count: IterationCallback | None = None
    on_finished: FinishedCallback | None = None


@mutable(slots=True)
class TestRun:
    """One invocation of a test executable, from spawn to exit."""

    __test__ = False  # Not a pytest test class.

    name: str
    command: tuple[str, ...]
    sink: OutputSink
    args: tuple[str, ...] = field(factory=tuple)
    last_line: str | None = field(default=None)
    state: RunState = field(default=RunState.IDLE)
    outcome: RunOutcome | None = field(default=None)
    exit_code: int | None = field(default=None)
    signal_name: str | None = field(default=None)
    error_location: ErrorLocation | None = field(default=None)
    spawn_error: SpawnError | None = field(default=None)
    # Raised while streaming output; the process is terminated when set.
    stream_error: Exception | None = field(default=None)
    started_at: datetime | None = field(default=None)
    finished_at: datetime | None = field(default=None)


def exit_status(returncode: int | None) -> tuple[int | None, str | None]:
    """Split an asyncio return code into (exit code, signal name)."""
    if returncode is None:
        return None, None
    if returncode >= 0:
        return returncode, None
    try:
        return None, signal.Signals(-returncode).name
    except ValueError:
        return None, f"signal {-returncode}"


def classify_exit(code: int | None, signal_name: str | None) -> RunOutcome:
    if code == 0:
        return RunOutcome.PASSED
    if signal_name == CANCEL_SIGNAL:
        return RunOutcome.CANCELLED
    if code is not None or signal_name is not None:
        return RunOutcome.FAILED
    return RunOutcome.ABNORMAL


def _timestamp() -> str:
    return datetime.now().astimezone().strftime("%a %b %d %Y %H:%M:%S %Z")


def _strip_one_newline(text: str) -> str:
    # Only one: a chunk ending in a blank line keeps that line.
    return text[:-1] if text.endswith("\n") else text


class ProcessSupervisor:
    """Runs at most one test process at a time."""

    def __init__(
        self,
        notifier: Notifier,
        interpreter: Sequence[str] = (),
        workspace_root: Path | None = None,
        spawn: Spawner | None = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ):
        self.notifier = notifier
        self.interpreter = tuple(interpreter)
        self.workspace_root = workspace_root
        self._spawn = spawn or asyncio.create_subprocess_exec
        self.chunk_size = chunk_size
        self._active: TestRun | None = None
        self._process: Any = None
        self._task: asyncio.Task | None = None
        self._cancel_requested = False

    @property
    def is_running(self) -> bool:
        return self._active is not None

    @property
    def active_run(self) -> TestRun | None:
        return self._active

    def ensure_idle(self, name: str) -> None:
        """Raise AlreadyRunningError, after telling the user, if a run is active."""
        if self._active is not None:
            log.warning("Rejected test start; a test is already running", name=name, active=self._active.name)
            self.notifier.error("A test is already running")
            raise AlreadyRunningError(self._active.name)

    def start(
        self,
        name: str,
        executable: str | Path,
        args: Sequence[str],
        sink: OutputSink,
        on_error: ErrorCallback | None = None,
        on_status: StatusCallback | None = None,
        on_iteration_count: IterationCallback | None = None,
        on_finished: FinishedCallback | None = None,
    ) -> TestRun:
        """
        Start a test run in the background and return it.

        Must be called from a running event loop. Use ``wait()`` to await the
        run's completion. ``on_finished`` is called last, once the outcome has
        been reported.

        Raises:
            AlreadyRunningError: if a run is active. Neither the sink nor the
                active run are touched.
        """
        self.ensure_idle(name)

        run = TestRun(
            name=name,
            command=(*self.interpreter, str(executable), *args),
            sink=sink,
            args=tuple(args),
        )
        callbacks = RunCallbacks(
            on_error=on_error,
            on_status=on_status,
            on_iteration_count=on_iteration_count,
            on_finished=on_finished,
        )
        self._active = run
        self._cancel_requested = False
        run.state = RunState.RUNNING
        run.started_at = datetime.now().astimezone()

        self._call(callbacks.on_status, True)
        sink.clear()
        sink.show()
        sink.append(f"{name} started on {_timestamp()}")

        log.info("Starting test run", name=name, command=" ".join(run.command))
        self._task = asyncio.create_task(self._supervise(run, callbacks), name=f"cstest-{name}")
        return run

    async def wait(self) -> TestRun | None:
        """Wait for the current (or most recent) run to finish."""
        if self._task is None:
            return None
        return await self._task

    def cancel(self) -> None:
        """Ask the running test process to terminate. No-op when idle."""
        if self._active is None:
            return
        self._cancel_requested = True
        log.info("Cancelling test run", name=self._active.name)
        self._terminate()

    def _terminate(self) -> None:
        process = self._process
        if process is None or process.returncode is not None:
            return
        try:
            process.terminate()
        except ProcessLookupError:
            log.debug("Test process already exited before terminate")

    def _call(self, callback: Callable[..., None] | None, *args: Any) -> None:
        if callback is None:
            return
        try:
            callback(*args)
        except Exception:
            log.exception("Test run callback raised", callback=getattr(callback, "__name__", repr(callback)))

    async def _supervise(self, run: TestRun, callbacks: RunCallbacks) -> TestRun:
        code: int | None = None
        signal_name: str | None = None
        try:
            try:
                process = await self._spawn(
                    *run.command,
                    stdout=asyncio.subprocess.PIPE,
                    stderr=asyncio.subprocess.PIPE,
                )
            except (OSError, ValueError) as e:
                run.spawn_error = SpawnError(list(run.command), e)
                self._handle_process_error(run, run.spawn_error)
            else:
                self._process = process
                if self._cancel_requested:
                    self._terminate()
                await self._pump(run, process, callbacks)
                code, signal_name = exit_status(await process.wait())
        except asyncio.CancelledError:
            self._terminate()
            # The process was just sent SIGTERM.
            signal_name = CANCEL_SIGNAL
            raise
        finally:
            await self._finish(run, code, signal_name, callbacks)
        return run

    async def _pump(self, run: TestRun, process: Any, callbacks: RunCallbacks) -> None:
        """Drain both pipes. If either pump fails, stop the process and the other pump."""
        pumps = [
            asyncio.create_task(self._pump_stdout(run, process.stdout, callbacks)),
            asyncio.create_task(self._pump_stderr(run, process.stderr)),
        ]
        try:
            await asyncio.gather(*pumps)
        except Exception as e:
            run.stream_error = e
            log.exception("Streaming test output failed; stopping the test process", name=run.name)
            self._terminate()
            for task in pumps:
                task.cancel()
            await asyncio.gather(*pumps, return_exceptions=True)
            self._handle_process_error(run, e)

    async def _read_chunks(self, stream: asyncio.StreamReader):
        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        while True:
            data = await stream.read(self.chunk_size)
            text = decoder.decode(data, final=not data)
            if text:
                yield text
            if not data:
                break

    async def _pump_stdout(self, run: TestRun, stream: asyncio.StreamReader, callbacks: RunCallbacks) -> None:
        async for chunk in self._read_chunks(stream):
            self._handle_stdout(run, chunk, callbacks)

    async def _pump_stderr(self, run: TestRun, stream: asyncio.StreamReader) -> None:
        async for chunk in self._read_chunks(stream):
            self._handle_stderr(run, chunk)

    def _handle_stdout(self, run: TestRun, chunk: str, callbacks: RunCallbacks) -> None:
        text = _strip_one_newline(chunk)
        run.sink.append(text)

        if callbacks.on_iteration_count is not None:
            for line in text.split("\n"):
                count = find_iteration_count(line)
                if count is not None:
                    self._call(callbacks.on_iteration_count, count)

        # Kept for the failure message; chunks may hold several lines.
        line = last_nonempty_line(text)
        if line is not None:
            run.last_line = line

    def _handle_stderr(self, run: TestRun, chunk: str) -> None:
        run.sink.append("Error:")
        run.sink.append(_strip_one_newline(chunk))

    def _handle_process_error(self, run: TestRun, error: Exception) -> None:
        log.error("Test process error", name=run.name, error=str(error))
        self._append_final(run, "Process error:")
        self._append_final(run, str(error))

    def _append_final(self, run: TestRun, text: str) -> None:
        # A failing sink must not keep the run from being finalized.
        try:
            run.sink.append(text)
        except Exception:
            log.exception("Could not write to test output sink", name=run.name)

    async def _finish(
        self,
        run: TestRun,
        code: int | None,
        signal_name: str | None,
        callbacks: RunCallbacks,
    ) -> None:
        self._active = None
        self._process = None
        self._cancel_requested = False

        run.state = RunState.FINISHED
        run.finished_at = datetime.now().astimezone()
        run.exit_code = code
        run.signal_name = signal_name
        if run.spawn_error is not None or run.stream_error is not None:
            run.outcome = RunOutcome.FAILED
        else:
            run.outcome = classify_exit(code, signal_name)

        self._append_final(run, f"\n{run.name} finished on {_timestamp()}")
        self._call(callbacks.on_status, False)
        log.info(
            "Test run finished",
            name=run.name,
            outcome=run.outcome.name,
            exit_code=code,
            signal=signal_name,
        )

        if isinstance(run.sink, LogDocument):
            try:
                await show_log_document(run.sink, self.workspace_root, self.notifier)
            except Exception:
                log.exception("Could not display test log document", identity=run.sink.identity)

        if run.outcome is RunOutcome.PASSED:
            self.notifier.status(f"{run.name} passed")
        elif run.outcome is RunOutcome.CANCELLED:
            self.notifier.status(f"{run.name} stopped")
        elif run.outcome is RunOutcome.FAILED:
            self._report_failure(run, callbacks)
        else:
            self.notifier.info(f"{run.name} received an unexpected signal")
        self._call(callbacks.on_finished, run)

    def _report_failure(self, run: TestRun, callbacks: RunCallbacks) -> None:
        location = parse_error_line(run.last_line)
        if location is not None:
            run.error_location = location
            self._call(callbacks.on_error, location.scene, location.line, location.message)

        msg = f"{run.name} failed"
        if run.spawn_error is not None:
            msg += f": {run.spawn_error}"
        elif run.stream_error is not None:
            msg += f": {run.stream_error}"
        elif run.last_line:
            msg += f": {run.last_line}"
        self.notifier.error(msg)
