"""sanitize command: clean and safety-check an AI transcript."""

from __future__ import annotations

import click
from rich.console import Console
from rich.table import Table

from revguard_core.patches.models import SanitizeReport, Severity
from revguard_core.patches.sanitizer import sanitize_response

console = Console()

_SEVERITY_STYLE = {
    Severity.LOW: "green",
    Severity.MEDIUM: "yellow",
    Severity.HIGH: "red",
    Severity.CRITICAL: "bold red",
}

CRITICAL_EXIT_CODE = 2


def print_report(report: SanitizeReport) -> None:
    table = Table(title="Sanitize Report", show_header=True)
    table.add_column("Check", style="bold")
    table.add_column("Result")
    style = _SEVERITY_STYLE[report.severity]
    table.add_row("Valid edit blocks", str(report.valid_blocks))
    table.add_row("Quarantined blocks", str(report.invalid_blocks))
    table.add_row("Severity", f"[{style}]{report.severity.label}[/{style}]")
    table.add_row("Findings", "\n".join(str(f) for f in report.findings) or "none")
    table.add_row("Quality score", str(report.quality_score))
    if report.quality_issues:
        table.add_row("Quality issues", "\n".join(report.quality_issues))
    if report.fell_back:
        table.add_row("Fallback", "[red]input returned unmodified[/red]")
    console.print(table)


@click.command("sanitize")
@click.argument("transcript", type=click.File("r", encoding="utf-8"))
@click.option(
    "--repo-root",
    type=click.Path(exists=True, file_okay=False),
    default=".",
    show_default=True,
    help="Repository the edit blocks refer to.",
)
@click.option("--report", "show_report", is_flag=True, help="Print a summary table after the text.")
@click.pass_context
def sanitize_cmd(ctx, transcript, repo_root: str, show_report: bool):
    """Print the sanitized form of TRANSCRIPT ('-' reads stdin).

    Exits with status 2 when the transcript contained critical content.
    """
    config = ctx.obj["config"] if ctx.obj else None
    report = sanitize_response(transcript.read(), repo_root, config)

    click.echo(report.text)
    if show_report:
        print_report(report)
    if report.severity == Severity.CRITICAL:
        ctx.exit(CRITICAL_EXIT_CODE)
