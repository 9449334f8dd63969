#
# src/cstest/sinks/__init__.py
#
"""
Output sinks for streamed test output.
"""
from .channel import OutputChannel
from .document import (
    DocumentDisplay,
    LogDocument,
    LogDocumentProvider,
    save_log_document,
    show_log_document,
)
from .protocols import OutputSink

__all__ = [
    "DocumentDisplay",
    "LogDocument",
    "LogDocumentProvider",
    "OutputChannel",
    "OutputSink",
    "save_log_document",
    "show_log_document",
]

# 🔼⚙️
