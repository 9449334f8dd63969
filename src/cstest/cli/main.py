# src/cstest/cli/main.py

"""
Main CLI entry point for cstest using Click.
Handles global options like logging level.
"""

from importlib.metadata import PackageNotFoundError, version

import click
import structlog

from cstest.cli.config_cmds import config_cli
from cstest.cli.settings_cmds import settings_cli
from cstest.cli.run_cmds import quicktest_cli, randomtest_cli
from cstest.cli.utils import logging_options, setup_logging_from_context
from cstest.telemetry import StructLogger

try:
    __version__ = version("cstest")
except PackageNotFoundError:
    __version__ = "0.0.0-dev"

log: StructLogger = structlog.get_logger("cli.main")


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(__version__, "-V", "--version", package_name="cstest")
@logging_options
@click.pass_context
def cli(
    ctx: click.Context,
    log_level: str | None,
    log_file: str | None,
    json_logs: bool | None,
):
    """
    cstest: run ChoiceScript's Quicktest and Randomtest.

    Configuration precedence: CLI options > Environment Variables > Config File > Defaults.
    """
    ctx.ensure_object(dict)

    ctx.obj["LOG_LEVEL"] = log_level
    ctx.obj["LOG_FILE"] = log_file
    ctx.obj["JSON_LOGS"] = json_logs if json_logs is not None else False

    setup_logging_from_context(ctx)
    log.debug(
        "Main CLI group initialized",
        log_level=log_level,
        log_file=log_file,
        json_logs=json_logs,
    )


cli.add_command(config_cli)
cli.add_command(settings_cli)
cli.add_command(quicktest_cli)
cli.add_command(randomtest_cli)

if __name__ == "__main__":
    cli()

# 🖥️⚙️
