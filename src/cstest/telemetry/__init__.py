#
# src/cstest/telemetry/__init__.py
#
"""
Logging setup for cstest.
"""
from .logger import StructLogger, setup_logging

__all__ = ["StructLogger", "setup_logging"]

# 🔼⚙️
