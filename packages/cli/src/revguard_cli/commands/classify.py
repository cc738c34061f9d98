"""classify command: show how a comment mentioning the bot is routed."""

from __future__ import annotations

import click
from rich.console import Console
from rich.table import Table

from revguard_core.commands import get_task_type, parse_command

console = Console()


@click.command("classify")
@click.argument("text")
@click.option("--mention", default=None, help="Bot handle to look for. Overrides config file.")
@click.pass_context
def classify_cmd(ctx, text: str, mention: str | None):
    """Parse TEXT as an issue comment and print the resulting task type."""
    config = ctx.obj["config"] if ctx.obj else {}
    mention = mention or config.get("mention", "@devwif")

    parsed = parse_command(text, mention=mention)
    task = get_task_type(parsed)

    table = Table(title="Parsed Command", show_header=True)
    table.add_column("Field", style="bold")
    table.add_column("Value")
    table.add_row("mention", str(parsed.is_mention))
    table.add_row("command", parsed.command)
    table.add_row("user query", parsed.user_query)
    table.add_row("dev command", str(parsed.is_dev_command))
    table.add_row("task", task or "[dim]none[/dim]")
    console.print(table)
