# src/cstest/cli/settings_cmds.py

import json
from pathlib import Path

import click
import structlog

from cstest.cli.utils import (
    apply_config_log_level,
    config_path_option,
    logging_options,
    setup_logging_from_context,
)
from cstest.config import load_config
from cstest.exceptions import ConfigurationError, StorageError
from cstest.settings import SettingsResolver
from cstest.storage import WorkspaceStorage
from cstest.telemetry import StructLogger

log: StructLogger = structlog.get_logger("cli.settings")


@click.group(name="settings")
def settings_cli():
    """Commands for the Randomtest settings remembered from the last run."""
    pass


@settings_cli.command(name="show")
@config_path_option
@logging_options
@click.pass_context
def show_settings(ctx: click.Context, config_path: Path, **kwargs):
    """Display the settings used by the previous Randomtest run."""
    setup_logging_from_context(
        ctx,
        local_log_level=kwargs.get("log_level"),
        local_log_file=kwargs.get("log_file"),
        local_json_logs=kwargs.get("json_logs"),
    )
    try:
        config = load_config(config_path)
    except ConfigurationError as e:
        log.error("Could not load configuration", error=str(e))
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)
    apply_config_log_level(ctx, config, **kwargs)

    try:
        storage = WorkspaceStorage.for_workspace(config.project.workspace_root or config_path.parent)
        previous = SettingsResolver(config.randomtest, storage).previous_settings()
    except StorageError as e:
        log.error("Could not read previous Randomtest settings", error=str(e))
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)

    if previous is None:
        click.echo("No previous Randomtest settings.")
        return
    click.echo(json.dumps(previous.to_dict(), indent=2))

# 🔼⚙️
