"""Cluster registry commands."""

import asyncio
import uuid
from pathlib import Path

from rich import box
from rich.console import Console
from rich.table import Table

from corefwd.core.models import Cluster
from corefwd.core.store import normalize_kubeconfig

console = Console()


async def list_clusters(options):
    """Show registered clusters with a live connection check."""
    services = options.services()
    clusters = await services.store.list_clusters()

    if not clusters:
        console.print("[dim]No clusters registered[/]")
        return

    statuses = await asyncio.gather(*(services.cache.status(c) for c in clusters))

    table = Table(title="Clusters", box=box.ROUNDED)
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("Status")
    table.add_column("Error", style="dim")

    for cluster, status in zip(clusters, statuses):
        state = "[green]connected[/]" if status.connected else "[red]unreachable[/]"
        table.add_row(cluster.id, cluster.name, state, status.error or "")

    console.print(table)


async def add(name: str, kubeconfig: Path, skip_check: bool, options):
    """Register a cluster."""
    services = options.services()
    cluster = Cluster(
        id=str(uuid.uuid4()),
        name=name,
        kubeconfig=normalize_kubeconfig(kubeconfig.read_text()),
    )

    if not skip_check:
        await services.cache.probe(cluster)

    cluster = await services.store.add_cluster(cluster)
    console.print(f"[green]✓ Cluster added:[/] {cluster.id}")


async def remove(cluster_id: str, options):
    """Remove a cluster."""
    services = options.services()
    await services.store.get_cluster(cluster_id)

    services.cache.evict(cluster_id)
    await services.store.delete_cluster(cluster_id)
    console.print(f"[green]✓ Cluster removed:[/] {cluster_id}")
