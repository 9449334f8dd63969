#
# config/__init__.py
#
"""
Configuration handling sub-package for cstest.

Exports the loading function and core configuration models.
"""

from .loader import DEFAULT_CONFIG_FILENAME, load_config
from .models import (
    CstestConfig,
    GlobalConfig,
    ProjectConfig,
    PutResultsInDocument,
    RandomtestConfig,
)

__all__ = [
    "DEFAULT_CONFIG_FILENAME",
    "CstestConfig",
    "GlobalConfig",
    "ProjectConfig",
    "PutResultsInDocument",
    "RandomtestConfig",
    "load_config",
]

# 🔼⚙️
