# src/cstest/cli/utils.py

import logging
from pathlib import Path

import click
import structlog

from cstest.config import DEFAULT_CONFIG_FILENAME, CstestConfig
from cstest.telemetry import setup_logging as core_setup_logging

log = structlog.get_logger("cli.utils")

LOG_LEVEL_CHOICES = click.Choice(list(logging._nameToLevel.keys()), case_sensitive=False)


def logging_options(f):
    """Decorator to add logging options to any command."""
    f = click.option(
        "-l",
        "--log-level",
        type=LOG_LEVEL_CHOICES,
        default=None,
        envvar="CSTEST_LOG_LEVEL",
        help="Set the logging level (overrides config file).",
    )(f)
    f = click.option(
        "--log-file",
        type=click.Path(dir_okay=False, writable=True, resolve_path=True),
        default=None,
        envvar="CSTEST_LOG_FILE",
        help="Path to write logs to a file (JSON format).",
    )(f)
    f = click.option(
        "--json-logs",
        is_flag=True,
        default=None,
        envvar="CSTEST_JSON_LOGS",
        help="Output console logs as JSON.",
    )(f)
    return f


def config_path_option(f):
    """Decorator adding the shared --config-path option."""
    return click.option(
        "-c",
        "--config-path",
        type=click.Path(exists=True, file_okay=True, dir_okay=False, readable=True, path_type=Path),
        default=Path(DEFAULT_CONFIG_FILENAME),
        show_default=True,
        envvar="CSTEST_CONF",
        help="Path to the cstest configuration file (env var CSTEST_CONF).",
        show_envvar=True,
    )(f)


def setup_logging_from_context(
    ctx: click.Context,
    local_log_level: str | None = None,
    local_log_file: str | None = None,
    local_json_logs: bool | None = None,
    default_log_level: str = "WARNING",
) -> None:
    """
    Setup logging using context values, allowing local overrides.
    """
    obj = ctx.find_object(dict) or {}
    log_level_str = local_log_level or obj.get("LOG_LEVEL") or default_log_level
    log_file_path = local_log_file or obj.get("LOG_FILE")
    use_json_logs = local_json_logs if local_json_logs is not None else obj.get("JSON_LOGS", False)

    numeric_level = logging.getLevelName(log_level_str.upper())
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO
        log_level_str = "INFO"

    core_setup_logging(
        level=numeric_level,
        json_logs=use_json_logs,
        log_file=log_file_path,
    )

    log.debug(
        "CLI logging initialized via utils",
        level=log_level_str,
        file=log_file_path or "console",
        json=use_json_logs,
    )


def apply_config_log_level(
    ctx: click.Context,
    config: CstestConfig,
    log_level: str | None = None,
    log_file: str | None = None,
    json_logs: bool | None = None,
) -> None:
    """
    Re-apply logging once the config file is loaded, so `[global] log_level`
    takes effect when neither the command line nor the environment set a level.
    """
    setup_logging_from_context(
        ctx,
        local_log_level=log_level,
        local_log_file=log_file,
        local_json_logs=json_logs,
        default_log_level=config.global_config.log_level,
    )

# ⚙️🛠️
