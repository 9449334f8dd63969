# src/cstest/cli/config_cmds.py

from pathlib import Path

import click
import structlog
from rich.pretty import pretty_repr

from cstest.cli.utils import (
    apply_config_log_level,
    config_path_option,
    logging_options,
    setup_logging_from_context,
)
from cstest.config import load_config
from cstest.exceptions import ConfigurationError
from cstest.telemetry import StructLogger

log: StructLogger = structlog.get_logger("cli.config")


@click.group(name="config")
def config_cli():
    """Commands for inspecting and validating configuration."""
    pass


@config_cli.command(name="show")
@config_path_option
@logging_options
@click.pass_context
def show_config(ctx: click.Context, config_path: Path, **kwargs):
    """Load, validate, and display the configuration."""
    setup_logging_from_context(
        ctx,
        local_log_level=kwargs.get("log_level"),
        local_log_file=kwargs.get("log_file"),
        local_json_logs=kwargs.get("json_logs"),
    )
    log.info("Executing 'config show' command", config_path=str(config_path))

    try:
        config = load_config(config_path)
    except ConfigurationError as e:
        log.error("Failed to load or validate configuration", error=str(e))
        click.echo(f"Error: Configuration problem in '{config_path}':\n{e}", err=True)
        ctx.exit(1)

    apply_config_log_level(ctx, config, **kwargs)
    click.echo(pretty_repr(config, expand_all=True))

    for label, script in (("quicktest", config.project.quicktest_path), ("randomtest", config.project.randomtest_path)):
        if not script.exists():
            log.warning(f"The {label} script does not exist", path=str(script))

# 🔼⚙️
