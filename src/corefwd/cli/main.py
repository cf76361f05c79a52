"""Main CLI entry point for corefwd."""

import asyncio
from pathlib import Path
from typing import Any, Coroutine, Optional

import typer
from rich.console import Console

from corefwd.config import configure_logging, load_settings
from corefwd.core.errors import CoreDNSManagerError
from corefwd.core.services import Services, build_services

app = typer.Typer(
    name="corefwd",
    help="Manage cross-cluster CoreDNS forward rules",
    no_args_is_help=True,
)

console = Console()


# Global options stored in context
class GlobalOptions:
    def __init__(self):
        self.config: Optional[Path] = None
        self.data_dir: Optional[str] = None
        self.verbose: bool = False

    def services(self) -> Services:
        settings = load_settings(self.config, data_dir=self.data_dir)
        return build_services(settings)


def run(coro: Coroutine[Any, Any, Any]) -> None:
    """Run a command coroutine, turning manager errors into exit code 1."""
    try:
        asyncio.run(coro)
    except CoreDNSManagerError as e:
        console.print(f"[red]✗ {e}[/]")
        raise typer.Exit(code=1)


# ============================================================================
# Cluster Commands
# ============================================================================

clusters_app = typer.Typer(help="Cluster registry commands")
app.add_typer(clusters_app, name="clusters")


@clusters_app.command("list")
def clusters_list(ctx: typer.Context):
    """List registered clusters and their connection status."""
    from corefwd.cli.commands.clusters import list_clusters

    run(list_clusters(ctx.obj))


@clusters_app.command("add")
def clusters_add(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Display name"),
    kubeconfig: Path = typer.Argument(..., help="Path to kubeconfig file", exists=True),
    skip_check: bool = typer.Option(False, "--skip-check", help="Register without probing"),
):
    """Register a cluster from a kubeconfig file."""
    from corefwd.cli.commands.clusters import add

    run(add(name, kubeconfig, skip_check, ctx.obj))


@clusters_app.command("remove")
def clusters_remove(
    ctx: typer.Context,
    cluster_id: str = typer.Argument(..., help="Cluster id"),
):
    """Remove a cluster from the registry."""
    from corefwd.cli.commands.clusters import remove

    run(remove(cluster_id, ctx.obj))


# ============================================================================
# Rule Commands
# ============================================================================

rules_app = typer.Typer(help="Forward rule commands")
app.add_typer(rules_app, name="rules")


@rules_app.command("list")
def rules_list(
    ctx: typer.Context,
    cluster_id: str = typer.Argument(..., help="Cluster id"),
):
    """List forward rules found in the cluster's Corefile."""
    from corefwd.cli.commands.rules import list_rules

    run(list_rules(cluster_id, ctx.obj))


@rules_app.command("add")
def rules_add(
    ctx: typer.Context,
    cluster_id: str = typer.Argument(..., help="Cluster id"),
    name: str = typer.Argument(..., help="namespace, service.namespace, or *.svc.cluster.local"),
    target_ip: str = typer.Argument(..., help="Resolver address of the remote cluster"),
):
    """Add a forward rule."""
    from corefwd.cli.commands.rules import add

    run(add(cluster_id, name, target_ip, ctx.obj))


@rules_app.command("delete")
def rules_delete(
    ctx: typer.Context,
    cluster_id: str = typer.Argument(..., help="Cluster id"),
    name: str = typer.Argument(..., help="Rule name as listed"),
    fqdn: bool = typer.Option(False, "--fqdn", help="Rule uses the .svc.cluster.local form"),
    strict: bool = typer.Option(False, "--strict", help="Fail when the rule is not present"),
):
    """Delete a forward rule."""
    from corefwd.cli.commands.rules import delete

    run(delete(cluster_id, name, fqdn, strict, ctx.obj))


# ============================================================================
# Corefile Commands
# ============================================================================

corefile_app = typer.Typer(help="Whole-Corefile commands")
app.add_typer(corefile_app, name="corefile")


@corefile_app.command("show")
def corefile_show(
    ctx: typer.Context,
    cluster_id: str = typer.Argument(..., help="Cluster id"),
):
    """Show the cluster's Corefile."""
    from corefwd.cli.commands.corefile import show

    run(show(cluster_id, ctx.obj))


@corefile_app.command("apply")
def corefile_apply(
    ctx: typer.Context,
    cluster_id: str = typer.Argument(..., help="Cluster id"),
    file: Path = typer.Argument(..., help="Corefile to upload", exists=True),
    force: bool = typer.Option(False, "--force", "-f", help="Apply even if lint finds errors"),
):
    """Replace the cluster's Corefile with a local file."""
    from corefwd.cli.commands.corefile import apply

    run(apply(cluster_id, file, force, ctx.obj))


@corefile_app.command("validate")
def corefile_validate(
    file: Path = typer.Argument(..., help="Corefile to check", exists=True),
):
    """Lint a local Corefile."""
    from corefwd.cli.commands.corefile import validate

    if not validate(file):
        raise typer.Exit(code=1)


# ============================================================================
# Server & Version
# ============================================================================


@app.command("serve")
def serve(
    ctx: typer.Context,
    host: Optional[str] = typer.Option(None, "--host", help="Bind address"),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Bind port"),
):
    """Run the HTTP API."""
    import os

    import uvicorn

    settings = load_settings(ctx.obj.config, data_dir=ctx.obj.data_dir, host=host, port=port)
    if ctx.obj.config:
        os.environ["COREFWD_CONFIG"] = str(ctx.obj.config)
    if ctx.obj.data_dir:
        os.environ["COREFWD_DATA_DIR"] = ctx.obj.data_dir

    console.print(f"Starting CoreDNS forward manager on http://{settings.host}:{settings.port}")
    uvicorn.run("corefwd.api.main:app", host=settings.host, port=settings.port)


@app.command("version")
def version():
    """Show version information."""
    from corefwd import __version__

    console.print(f"corefwd version {__version__}")


# ============================================================================
# Main Callback (Global Options)
# ============================================================================


@app.callback()
def main(
    ctx: typer.Context,
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to config.yaml"),
    data_dir: Optional[str] = typer.Option(None, "--data-dir", help="Cluster registry directory"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """CoreDNS forward manager - cross-cluster DNS forwarding rules."""
    ctx.ensure_object(GlobalOptions)
    ctx.obj.config = config
    ctx.obj.data_dir = data_dir
    ctx.obj.verbose = verbose

    settings = load_settings(config, data_dir=data_dir)
    configure_logging("debug" if verbose else settings.log_level)


if __name__ == "__main__":
    app()
