"""
Rendering functions for doccpages output.

This module handles all pretty-printing and table formatting.
Services return data, this module makes it human-readable.
"""

from rich.table import Table
from rich.console import Console
from rich.panel import Panel
from rich import box
from typing import Any, Dict, List, Optional

from .domain import PipelineReport, ProjectDescriptor

console = Console()

STATUS_STYLES = {
    'success': 'green',
    'skipped': 'yellow',
    'dry_run': 'cyan',
    'failed': 'red',
}


def render_table(headers: List[str], rows: List[List[str]], title: Optional[str] = None) -> None:
    """
    Render a generic table with the given headers and rows.

    Args:
        headers: List of column headers
        rows: List of rows, where each row is a list of values
        title: Optional table title
    """
    if not rows:
        console.print("[yellow]No data to display.[/yellow]")
        return

    table = Table(
        title=title,
        box=box.ROUNDED,
        show_header=True,
        header_style="bold magenta"
    )
    for header in headers:
        table.add_column(header)
    for row in rows:
        table.add_row(*[str(val) for val in row])

    console.print(table)


def render_project(descriptor: ProjectDescriptor, candidates: Optional[List[str]] = None) -> None:
    """Render a detection result as a panel."""
    lines = [f"[bold]Kind:[/bold] [green]{descriptor.kind.value}[/green]",
             f"[bold]Root:[/bold] {descriptor.root}"]
    if descriptor.manifest:
        lines.append(f"[bold]Manifest:[/bold] {descriptor.manifest}")
    if descriptor.project_file:
        lines.append(f"[bold]Project:[/bold] {descriptor.project_file}")
    if candidates and len(candidates) > 1:
        lines.append(f"[dim]Other projects: {', '.join(candidates[1:])}[/dim]")
    console.print(Panel("\n".join(lines), title="Project", box=box.ROUNDED))


def render_pipeline_report(report: PipelineReport) -> None:
    """Render a pipeline report as a stage table."""
    table = Table(
        title="Documentation Pipeline",
        box=box.ROUNDED,
        show_header=True,
        header_style="bold magenta"
    )
    table.add_column("Stage", style="cyan")
    table.add_column("Status", justify="center")
    table.add_column("Detail")

    for result in report.results:
        status = result.status.value
        style = STATUS_STYLES.get(status, 'white')
        detail = result.error or result.message or ""
        commands = result.metadata.get('commands')
        if commands:
            detail = "\n".join(commands)
        table.add_row(result.stage.value, f"[{style}]{status}[/{style}]", detail)

    console.print(table)
    if report.success:
        console.print("[green]Pipeline completed.[/green]")
    elif report.failed:
        console.print(f"[red]Pipeline failed (exit code {report.exit_code}).[/red]")


def render_result(data: Dict[str, Any], title: str) -> None:
    """Render a flat dict as a two-column table."""
    render_table(["Field", "Value"], [[k, v] for k, v in data.items()], title=title)


def render_error(error: Dict[str, Any]) -> None:
    console.print(f"[red]Error:[/red] {error.get('error')}")
