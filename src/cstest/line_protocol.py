# src/cstest/line_protocol.py
"""
Best-effort extraction of structured events from ChoiceScript test output.

Test scripts print free-form text. Two markers carry structure:

* ``*****Iteration <n> ...`` is printed by randomtest before each playthrough.
* ``<scene> line <n>: <message>`` is how ChoiceScript reports an error, usually
  as the last thing it prints before exiting.

Neither function raises; text without a marker simply yields ``None``.
"""

import re

from attrs import define

ITERATION_MARKER = "*****Iteration "

# ChoiceScript error messages are in the format "[scene] line [#]: [message]" ...sometimes
ERROR_LINE_RE = re.compile(r"(\S+) line (\d+): (.+)")


@define(frozen=True, slots=True)
class ErrorLocation:
    """Where a ChoiceScript error was reported."""

    scene: str
    line: int
    message: str


def find_iteration_count(text: str) -> int | None:
    """Return the iteration number announced in ``text``, if any."""
    ndx = text.find(ITERATION_MARKER)
    if ndx == -1:
        return None
    ndx += len(ITERATION_MARKER)
    end_ndx = text.find(" ", ndx)
    if end_ndx <= ndx:
        return None
    digits = text[ndx:end_ndx]
    if not (digits.isascii() and digits.isdigit()):
        return None
    return int(digits)


def parse_error_line(line: str | None) -> ErrorLocation | None:
    """Extract the scene, line number and message from a ChoiceScript error line."""
    if not line:
        return None
    match = ERROR_LINE_RE.search(line)
    if match is None:
        return None
    return ErrorLocation(scene=match.group(1), line=int(match.group(2)), message=match.group(3))


def last_nonempty_line(chunk: str) -> str | None:
    """Final line of a trimmed chunk, or ``None`` if the chunk is blank."""
    trimmed = chunk.strip()
    if not trimmed:
        return None
    return trimmed.split("\n")[-1].strip() or None
