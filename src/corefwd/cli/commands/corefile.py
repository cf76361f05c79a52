"""Whole-Corefile commands."""

from pathlib import Path

import typer
from rich.console import Console
from rich.syntax import Syntax

from corefwd.core.coredns.config import validate_corefile
from corefwd.core.models import ConfigValidationResult

console = Console()


def _print_result(result: ConfigValidationResult) -> None:
    if result.valid:
        console.print("[green]✓ Configuration is valid[/]")
    else:
        console.print("[red]✗ Configuration has errors:[/]")
        for error in result.errors:
            line_info = f"Line {error.line}: " if error.line else ""
            console.print(f"  [red]{line_info}{error.message}[/]")

    if result.warnings:
        console.print("\n[yellow]Warnings:[/]")
        for warning in result.warnings:
            line_info = f"Line {warning.line}: " if warning.line else ""
            console.print(f"  [yellow]{line_info}{warning.message}[/]")


async def show(cluster_id: str, options):
    """Print the cluster's Corefile."""
    services = options.services()
    handle = await services.handle_for(cluster_id)
    corefile = await handle.fetch_corefile(timeout=services.settings.request_timeout)

    console.print(Syntax(corefile, "text", theme="monokai", line_numbers=True))


async def apply(cluster_id: str, file: Path, force: bool, options):
    """Upload a Corefile, refusing lint errors unless forced."""
    corefile = file.read_text()
    result = validate_corefile(corefile)
    _print_result(result)

    if not result.valid and not force:
        console.print("[red]Not applied. Use --force to apply anyway.[/]")
        raise typer.Exit(code=1)

    services = options.services()
    handle = await services.handle_for(cluster_id)
    await services.manager.update_corefile(handle, corefile)
    console.print(f"[green]✓ Corefile applied to[/] {cluster_id}")


def validate(file: Path) -> bool:
    """Lint a local Corefile; returns whether it is valid."""
    result = validate_corefile(file.read_text())
    _print_result(result)
    return result.valid
