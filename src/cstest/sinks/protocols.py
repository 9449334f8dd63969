#
# src/cstest/sinks/protocols.py
#
"""
Defines the protocol shared by every destination for test output.
"""
from collections.abc import Iterable
from typing import Protocol, runtime_checkable


@runtime_checkable
class OutputSink(Protocol):
    """
    Protocol for something that receives streamed test output.
    """
    def append(self, text: str) -> None:
        """
        Appends text. Embedded newlines split it into several lines.
        """
        ...

    def append_block(self, lines: Iterable[str]) -> None:
        """
        Appends each item of ``lines`` as its own line.
        """
        ...

    def clear(self) -> None:
        ...

    def show(self) -> None:
        """
        Makes the sink visible to the user.
        """
        ...

# 🔼⚙️
