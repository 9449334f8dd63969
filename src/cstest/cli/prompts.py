# src/cstest/cli/prompts.py

"""
Terminal prompts for the Randomtest settings wizard.
"""

import asyncio

from rich.console import Console
from rich.prompt import Prompt

from cstest.wizard import Nav, PromptRequest

BACK_ENTRY = "<"
CANCEL_ENTRY = "q"
YES_ENTRIES = ("y", "yes")
NO_ENTRIES = ("n", "no")


class ConsolePrompter:
    """Asks wizard questions on the terminal. ``<`` goes back, ``q`` cancels."""

    def __init__(self, console: Console | None = None):
        self.console = console or Console()

    def _ask(self, request: PromptRequest, default: str) -> str | None:
        if request.error:
            self.console.print(f"[red]{request.error}[/red]")
        question = (
            f"[bold]{request.title}[/bold] ({request.step_number}/{request.total_steps}) {request.prompt}"
        )
        try:
            return Prompt.ask(question, default=default, console=self.console)
        except EOFError:
            return None

    @staticmethod
    def _navigation(entry: str | None) -> Nav | None:
        if entry is None or entry.strip().lower() == CANCEL_ENTRY:
            return Nav.CANCEL
        if entry.strip() == BACK_ENTRY:
            return Nav.BACK
        return None

    async def ask_integer(self, request: PromptRequest) -> str | Nav:
        entry = await asyncio.to_thread(self._ask, request, request.default)
        return self._navigation(entry) or entry

    async def ask_yes_no(self, request: PromptRequest) -> bool | Nav:
        default = "yes" if request.default else "no"
        while True:
            entry = await asyncio.to_thread(self._ask, request, default)
            nav = self._navigation(entry)
            if nav is not None:
                return nav
            answer = entry.strip().lower()
            if answer in YES_ENTRIES:
                return True
            if answer in NO_ENTRIES:
                return False
            self.console.print("[red]Please answer yes or no[/red]")
