# src/cstest/notifier.py
"""
The user-visible surface the orchestrator reports to.
"""

from pathlib import Path
from typing import TYPE_CHECKING, Protocol, runtime_checkable

import click
import structlog
from rich.console import Console

from cstest.telemetry import StructLogger

if TYPE_CHECKING:
    from cstest.sinks.document import LogDocument

log: StructLogger = structlog.get_logger("notifier")


@runtime_checkable
class Notifier(Protocol):
    """Shows messages and documents to the user."""

    def status(self, message: str) -> None:
        """Show a short-lived status message."""
        ...

    def error(self, message: str) -> None:
        ...

    def info(self, message: str) -> None:
        ...

    def show_document(self, document: "LogDocument") -> None:
        """Display a log document held in memory."""
        ...

    def open_file(self, path: Path) -> None:
        """Open a file that was written to disk for display."""
        ...


class ConsoleNotifier:
    """Notifier that writes to a rich console."""

    def __init__(self, console: Console | None = None, launch_files: bool = False):
        self.console = console or Console()
        self.launch_files = launch_files

    def status(self, message: str) -> None:
        self.console.print(f"[bold]{message}[/bold]", highlight=False)

    def error(self, message: str) -> None:
        self.console.print(f"[bold red]Error:[/bold red] {message}", highlight=False)

    def info(self, message: str) -> None:
        self.console.print(f"[cyan]{message}[/cyan]", highlight=False)

    def show_document(self, document: "LogDocument") -> None:
        self.console.rule(document.name)
        self.console.out(document.value, highlight=False)
        self.console.rule()

    def open_file(self, path: Path) -> None:
        self.console.print(f"Test results saved to {path}", highlight=False)
        if self.launch_files:
            # click.launch returns the viewer's exit code
            if click.launch(str(path)) != 0:
                log.warning("Could not open saved test results", path=str(path))
