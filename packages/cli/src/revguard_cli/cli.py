"""CLI entry point for revguard.

Commands:
  prompt    turn a review narrative into an agent prompt
  sanitize  clean and safety-check a model transcript
  classify  parse a bot mention and show the task it routes to
  generate  ask a model for edits and print the sanitized transcript
"""

from __future__ import annotations

import importlib.metadata
import logging
from pathlib import Path

import click
from click.core import ParameterSource
from rich.console import Console
from rich.logging import RichHandler

from revguard_cli.commands.classify import classify_cmd
from revguard_cli.commands.generate import generate_cmd
from revguard_cli.commands.prompt import prompt_cmd
from revguard_cli.commands.sanitize import sanitize_cmd

err_console = Console(stderr=True)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(name)s: %(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


@click.group()
@click.version_option(
    version=importlib.metadata.version("revguard"),
    prog_name="revguard",
)
@click.option(
    "--config",
    "config_path",
    default=".revguard.yml",
    show_default=True,
    help="Path to the configuration file.",
    envvar="REVGUARD_CONFIG",
)
@click.option("--verbose", "-v", is_flag=True, help="Log every pipeline phase at DEBUG level.")
@click.pass_context
def main(ctx: click.Context, config_path: str, verbose: bool):
    """Turn free-form AI output into safe, structured artifacts."""
    from revguard_core.config import load_config

    _configure_logging(verbose)
    ctx.ensure_object(dict)

    if ctx.get_parameter_source("config_path") != ParameterSource.DEFAULT and not Path(config_path).exists():
        raise click.UsageError(f"Config file not found: {config_path}")

    ctx.obj["config"] = load_config(config_path)


main.add_command(prompt_cmd)
main.add_command(sanitize_cmd)
main.add_command(classify_cmd)
main.add_command(generate_cmd)
