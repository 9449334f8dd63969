#
# config/loader.py
#
"""
Loads cstest.toml into the attrs configuration models.
"""

import os
import tomllib
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import structlog

from cstest.config.models import (
    CstestConfig,
    GlobalConfig,
    ProjectConfig,
    RandomtestConfig,
)
from cstest.exceptions import ConfigurationError
from cstest.telemetry import StructLogger

log: StructLogger = structlog.get_logger("config.loader")

DEFAULT_CONFIG_FILENAME = "cstest.toml"

# Environment variables that override values from the file.
ENV_OVERRIDES: dict[str, tuple[str, str, type]] = {
    "CSTEST_LOG_LEVEL": ("global", "log_level", str),
    "CSTEST_RANDOMTEST_ITERATIONS": ("randomtest", "iterations", int),
    "CSTEST_RANDOMTEST_SEED": ("randomtest", "random_seed", int),
}

_PROJECT_PATH_KEYS = ("scene_path", "choicescript_path", "image_path", "quicktest_script", "randomtest_script")


def _section(data: Mapping[str, Any], name: str, path: Path) -> dict[str, Any]:
    value = data.get(name, {})
    if not isinstance(value, Mapping):
        raise ConfigurationError(f"Section [{name}] must be a table", path=str(path))
    return dict(value)


def _apply_env_overrides(sections: dict[str, dict[str, Any]], path: Path) -> None:
    for env_var, (section, key, kind) in ENV_OVERRIDES.items():
        raw = os.environ.get(env_var)
        if raw is None or raw == "":
            continue
        try:
            sections[section][key] = kind(raw)
        except ValueError as e:
            raise ConfigurationError(
                f"Environment variable {env_var} has invalid value '{raw}'", path=str(path), details=e
            ) from e
        log.debug("Applied environment override", env_var=env_var, section=section, key=key)


def _resolve_project_paths(project: dict[str, Any], base_dir: Path) -> dict[str, Any]:
    """Relative paths in [project] are relative to the config file's directory."""
    resolved = dict(project)
    for key in _PROJECT_PATH_KEYS:
        value = resolved.get(key)
        if value is None:
            continue
        candidate = Path(value).expanduser()
        resolved[key] = candidate if candidate.is_absolute() else base_dir / candidate
    root = resolved.get("workspace_root")
    if root is None:
        resolved["workspace_root"] = base_dir
    else:
        root_path = Path(root).expanduser()
        resolved["workspace_root"] = root_path if root_path.is_absolute() else base_dir / root_path
    return resolved


def load_config(config_path: Path) -> CstestConfig:
    """
    Load, validate and return the configuration stored at ``config_path``.

    Raises:
        ConfigurationError: if the file is missing, is not valid TOML, or
            fails validation.
    """
    config_path = Path(config_path)
    load_log = log.bind(config_path=str(config_path))
    load_log.debug("Loading configuration")

    try:
        with config_path.open("rb") as f:
            data = tomllib.load(f)
    except FileNotFoundError as e:
        raise ConfigurationError("Configuration file not found", path=str(config_path), details=e) from e
    except tomllib.TOMLDecodeError as e:
        raise ConfigurationError(f"Invalid TOML: {e}", path=str(config_path), details=e) from e
    except OSError as e:
        raise ConfigurationError(f"Could not read configuration: {e}", path=str(config_path), details=e) from e

    sections = {
        "project": _section(data, "project", config_path),
        "randomtest": _section(data, "randomtest", config_path),
        "global": _section(data, "global", config_path),
    }
    _apply_env_overrides(sections, config_path)

    for required in ("scene_path", "choicescript_path"):
        if required not in sections["project"]:
            raise ConfigurationError(f"Missing required setting [project].{required}", path=str(config_path))

    base_dir = config_path.resolve().parent
    try:
        config = CstestConfig(
            project=ProjectConfig(**_resolve_project_paths(sections["project"], base_dir)),
            randomtest=RandomtestConfig(**sections["randomtest"]),
            global_config=GlobalConfig(**sections["global"]),
            config_file_path=config_path,
        )
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid configuration: {e}", path=str(config_path), details=e) from e

    load_log.info(
        "Configuration loaded",
        scene_path=str(config.project.scene_path),
        workspace_root=str(config.project.workspace_root),
    )
    return config


# 🔼⚙️
