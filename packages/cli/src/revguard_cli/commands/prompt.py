"""prompt command: build an agent prompt from a code-review narrative."""

from __future__ import annotations

import click
from rich.console import Console

from revguard_core.review.prompt import generate_agent_prompt

console = Console()


@click.command("prompt")
@click.argument("review_file", type=click.File("r", encoding="utf-8"))
def prompt_cmd(review_file):
    """Print the agent prompt for the review in REVIEW_FILE ('-' reads stdin)."""
    prompt = generate_agent_prompt(review_file.read())
    if not prompt:
        console.print("[yellow]No actionable comments found in the review.[/yellow]")
        return
    click.echo(prompt)
