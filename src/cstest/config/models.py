#
# config/models.py
#
"""
Attrs-based data models for the cstest configuration structure.
"""

import logging
from enum import Enum
from pathlib import Path
from typing import Any

from attrs import define, field


# --- Validators ---
def _validate_log_level(inst: Any, attr: Any, value: str) -> None:
    """Validator for standard logging level names."""
    valid = logging._nameToLevel.keys()
    if value.upper() not in valid:
        raise ValueError(f"Invalid log_level '{value}'. Must be one of {list(valid)}.")


def _validate_non_negative_int(inst: Any, attr: Any, value: int) -> None:
    """Validator ensures integer is zero or positive."""
    if not isinstance(value, int) or isinstance(value, bool) or value < 0:
        raise ValueError(f"Field '{attr.name}' must be a non-negative integer, got {value!r}")


class PutResultsInDocument(str, Enum):
    """When Randomtest output goes into a log document instead of the output channel."""

    NEVER = "never"
    ALWAYS = "always"
    FULLTEXT = "fulltext"


def _to_put_results_mode(value: Any) -> PutResultsInDocument:
    if isinstance(value, PutResultsInDocument):
        return value
    try:
        return PutResultsInDocument(str(value).lower())
    except ValueError:
        choices = [m.value for m in PutResultsInDocument]
        raise ValueError(
            f"Invalid put_results_in_document '{value}'. Must be one of {choices}."
        ) from None


@define(frozen=True, slots=True)
class RandomtestConfig:
    """User preferences for Randomtest runs."""

    iterations: int = field(default=1000, validator=_validate_non_negative_int)
    random_seed: int = field(default=0, validator=_validate_non_negative_int)
    put_results_in_document: PutResultsInDocument = field(
        default=PutResultsInDocument.FULLTEXT, converter=_to_put_results_mode
    )
    put_results_in_unique_document: bool = field(default=True)
    avoid_used_options: bool = field(default=True)
    show_choices: bool = field(default=False)
    show_full_text: bool = field(default=False)
    show_line_coverage_statistics: bool = field(default=False)


@define(frozen=True, slots=True)
class ProjectConfig:
    """Locations of the game and of the ChoiceScript test scripts."""

    scene_path: Path = field(converter=Path)
    choicescript_path: Path = field(converter=Path)
    image_path: Path = field(default=Path("."), converter=Path)
    quicktest_script: Path | None = field(default=None)
    randomtest_script: Path | None = field(default=None)
    node_executable: str = field(default="node")
    workspace_root: Path | None = field(default=None)

    @property
    def quicktest_path(self) -> Path:
        return self.quicktest_script or self.choicescript_path / "autotest.js"

    @property
    def randomtest_path(self) -> Path:
        return self.randomtest_script or self.choicescript_path / "randomtest.js"


@define(frozen=True, slots=True)
class GlobalConfig:
    """Global default settings for cstest."""

    log_level: str = field(default="WARNING", validator=_validate_log_level)


@define(frozen=True, slots=True)
class CstestConfig:
    """Root configuration object for the cstest application."""

    project: ProjectConfig = field()
    randomtest: RandomtestConfig = field(factory=RandomtestConfig)
    global_config: GlobalConfig = field(factory=GlobalConfig, metadata={"toml_name": "global"})
    config_file_path: Path | None = field(default=None)


# 🔼⚙️
