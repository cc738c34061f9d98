"""generate command: ask a model for edits and print the sanitized result."""

from __future__ import annotations

import click
from rich.console import Console

from revguard_cli.commands.sanitize import print_report
from revguard_core.pipeline import get_generator, run_generation

console = Console()


@click.command("generate")
@click.argument("prompt")
@click.option(
    "--repo-root",
    type=click.Path(exists=True, file_okay=False),
    default=".",
    show_default=True,
    help="Repository the model should edit.",
)
@click.option(
    "--model",
    type=click.Choice(["anthropic", "openai"]),
    default=None,
    help="AI model provider. Overrides config file.",
)
@click.pass_context
def generate_cmd(ctx, prompt: str, repo_root: str, model: str | None):
    """Generate search-replace edits for PROMPT without applying them.

    \b
    Required environment variables:
      ANTHROPIC_API_KEY    Required when using --model anthropic
      OPENAI_API_KEY       Required when using --model openai
    """
    config = dict(ctx.obj["config"]) if ctx.obj else {}
    if model:
        config["model"] = model

    if config["model"] == "anthropic" and not config.get("anthropic_api_key"):
        raise click.UsageError("ANTHROPIC_API_KEY environment variable is not set.")
    if config["model"] == "openai" and not config.get("openai_api_key"):
        raise click.UsageError("OPENAI_API_KEY environment variable is not set.")

    try:
        generator = get_generator(config)
    except (ImportError, ValueError) as e:
        raise click.UsageError(str(e))

    result = run_generation(prompt, repo_root, generator, config=config)
    if not result.success:
        console.print(f"[red]Generation failed:[/red] {result.error_message}")
        ctx.exit(1)

    for report in result.responses:
        click.echo(report.text)
        print_report(report)
