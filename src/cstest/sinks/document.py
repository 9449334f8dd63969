#
# src/cstest/sinks/document.py
#
"""
Log documents: output sinks that keep every line so the results can be read
or saved once the test finishes.
"""
import asyncio
import secrets
from collections.abc import Iterable
from enum import Enum, auto
from pathlib import Path

import structlog

from cstest.exceptions import SinkOverflowError
from cstest.notifier import Notifier
from cstest.telemetry import StructLogger

log: StructLogger = structlog.get_logger("sinks.document")

# Documents longer than this are written to disk instead of shown inline.
MAX_INLINE_LINES = 300_000
# Saved files larger than this are not opened automatically.
FILE_SIZE_LIMIT = 20 * 1024 * 1024

LOG_PREFIX = "Log."


class LogDocument:
    """
    Read-only log of one test process. Lines are retained until cleared.
    """
    def __init__(self, name: str, log_id: str | None = None, header: str | None = None):
        self.name = name
        self.log_id = log_id
        self._lines: list[str] = []
        if header is not None:
            self._lines.append(header)

    @property
    def identity(self) -> str:
        """Stable key for the document, unique when it carries an id."""
        identity = f"{LOG_PREFIX}{self.name}"
        if self.log_id:
            identity += f"?id={self.log_id}"
        return identity

    @property
    def filename(self) -> str:
        """Name of the file the document is saved to when it is too long to show."""
        results_name = f"{self.name}-results"
        if self.log_id:
            return f"{results_name}-{self.log_id}.txt"
        return f"{results_name}.txt"

    @property
    def value(self) -> str:
        return "\n".join(self._lines)

    @property
    def lines(self) -> tuple[str, ...]:
        return tuple(self._lines)

    def __len__(self) -> int:
        return len(self._lines)

    def append(self, text: str) -> None:
        self._lines.extend(text.split("\n"))

    def append_block(self, lines: Iterable[str]) -> None:
        self._lines.extend(lines)

    def clear(self) -> None:
        self._lines.clear()

    def show(self) -> None:
        # Documents are displayed once the run ends; see show_log_document().
        pass

    def __repr__(self) -> str:
        return f"LogDocument(identity={self.identity!r}, lines={len(self._lines)})"


def generate_log_id() -> str:
    return secrets.token_hex(16)


class LogDocumentProvider:
    """Creates log documents and hands back the same one for the same identity."""

    def __init__(self) -> None:
        self._documents: dict[str, LogDocument] = {}

    def get_log_document(self, name: str, unique: bool) -> LogDocument:
        document = LogDocument(name, log_id=generate_log_id() if unique else None)
        existing = self._documents.get(document.identity)
        if existing is not None:
            return existing
        self._documents[document.identity] = document
        log.debug("Created log document", identity=document.identity)
        return document

    def close(self, document: LogDocument) -> None:
        self._documents.pop(document.identity, None)

    def __len__(self) -> int:
        return len(self._documents)


class DocumentDisplay(Enum):
    """How show_log_document() dealt with a document."""

    INLINE = auto()
    OPENED_FILE = auto()
    SAVED_TOO_LARGE = auto()
    FAILED = auto()


def _write_lines(path: Path, lines: tuple[str, ...]) -> int:
    with path.open("w", encoding="utf-8") as f:
        for line in lines:
            f.write(line + "\n")
    return path.stat().st_size


async def save_log_document(document: LogDocument, workspace_root: Path | None) -> tuple[Path, int]:
    """
    Write every line of ``document`` to a file in the workspace root.

    Returns the path written and its size in bytes.

    Raises:
        SinkOverflowError: if there is no workspace or the write fails. A
            partially written file is left in place.
    """
    filename = document.filename
    if workspace_root is None or not Path(workspace_root).is_dir():
        raise SinkOverflowError("Could not save test log file; no workspace open", filename=filename)

    path = Path(workspace_root) / filename
    try:
        size = await asyncio.to_thread(_write_lines, path, document.lines)
    except OSError as e:
        raise SinkOverflowError(f"Failed to write the test log file: {e}", filename=filename, details=e) from e
    log.info("Saved log document", path=str(path), lines=len(document), size=size)
    return path, size


async def show_log_document(
    document: LogDocument,
    workspace_root: Path | None,
    notifier: Notifier,
    max_inline_lines: int = MAX_INLINE_LINES,
    file_size_limit: int = FILE_SIZE_LIMIT,
) -> DocumentDisplay:
    """Show a finished log document, saving it to disk first if it is too long."""
    if len(document) <= max_inline_lines:
        notifier.show_document(document)
        return DocumentDisplay.INLINE

    doc_log = log.bind(identity=document.identity, lines=len(document))
    if workspace_root is not None and Path(workspace_root).is_dir():
        notifier.status(f"Too much test output; saving results to {document.filename}")
    try:
        path, size = await save_log_document(document, workspace_root)
    except SinkOverflowError as e:
        doc_log.error("Could not save oversized log document", error=str(e))
        notifier.error(str(e))
        return DocumentDisplay.FAILED

    if size > file_size_limit:
        doc_log.warning("Saved log document is too large to open", size=size)
        notifier.info(
            f"Test results saved to {document.filename} but the file is too large to automatically open"
        )
        return DocumentDisplay.SAVED_TOO_LARGE

    notifier.open_file(path)
    return DocumentDisplay.OPENED_FILE

# 🔼⚙️
