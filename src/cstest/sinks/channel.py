#
# src/cstest/sinks/channel.py
#
"""
A transient output channel: a bounded ring of lines echoed to the console.
"""
from collections import deque
from collections.abc import Iterable

from rich.console import Console

DEFAULT_MAX_LINES = 10_000


class OutputChannel:
    """
    Keeps the most recent lines in memory and, once shown, echoes new lines
    to a console. Nothing is persisted.
    """
    def __init__(self, name: str, console: Console | None = None, max_lines: int = DEFAULT_MAX_LINES):
        if max_lines <= 0:
            raise ValueError(f"max_lines must be positive, got {max_lines}")
        self.name = name
        self.console = console
        self._lines: deque[str] = deque(maxlen=max_lines)
        self._visible = False

    @property
    def lines(self) -> tuple[str, ...]:
        return tuple(self._lines)

    @property
    def max_lines(self) -> int:
        return self._lines.maxlen or 0

    @property
    def is_visible(self) -> bool:
        return self._visible

    def __len__(self) -> int:
        return len(self._lines)

    def _push(self, lines: list[str]) -> None:
        self._lines.extend(lines)
        if self._visible and self.console is not None:
            for line in lines:
                self.console.out(line, highlight=False)

    def append(self, text: str) -> None:
        self._push(text.split("\n"))

    def append_block(self, lines: Iterable[str]) -> None:
        self._push(list(lines))

    def clear(self) -> None:
        self._lines.clear()

    def show(self) -> None:
        self._visible = True

# 🔼⚙️
