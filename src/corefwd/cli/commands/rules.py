"""Forward rule commands."""

from rich import box
from rich.console import Console
from rich.table import Table

from corefwd.core.models import ForwardRule, parse_rule_identity

console = Console()


async def list_rules(cluster_id: str, options):
    """Show forward rules parsed from the cluster's Corefile."""
    services = options.services()
    handle = await services.handle_for(cluster_id)
    info = await services.manager.get_info(handle)

    console.print(f"kube-dns address: [bold]{info.service_ip or 'unknown'}[/]\n")

    if not info.forward_rules:
        console.print("[dim]No forward rules[/]")
        return

    table = Table(title="Forward Rules", box=box.ROUNDED)
    table.add_column("Name", style="cyan")
    table.add_column("Form")
    table.add_column("Target", style="green")

    for rule in info.forward_rules:
        form = "fqdn" if rule.is_full_fqdn else "short"
        table.add_row(rule.full_name, form, rule.target_ip)

    console.print(table)


async def add(cluster_id: str, name: str, target_ip: str, options):
    """Add a forward rule."""
    rule = ForwardRule.from_name_input(name, target_ip)

    services = options.services()
    handle = await services.handle_for(cluster_id)
    await services.manager.add_rule(handle, rule)

    console.print(f"[green]✓ Added forward rule[/] {rule.full_name} -> {rule.target_ip}")
    console.print(rule.to_corefile(), markup=False, highlight=False)


async def delete(cluster_id: str, name: str, fqdn: bool, strict: bool, options):
    """Delete a forward rule."""
    full_name, is_full_fqdn = parse_rule_identity(name)

    services = options.services()
    handle = await services.handle_for(cluster_id)
    await services.manager.delete_rule(
        handle,
        full_name,
        is_full_fqdn=fqdn or is_full_fqdn,
        missing_ok=not strict,
    )

    console.print(f"[green]✓ Deleted forward rule[/] {full_name}")
