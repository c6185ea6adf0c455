"""Main CLI entry point for cluster bootstrap."""

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from cluster_bootstrap.exceptions import ClusterBootstrapError
from cluster_bootstrap.logging_config import get_logger, setup_logging

app = typer.Typer(
    name="k3s-bootstrap",
    help="Bootstrap k3s clusters on provisioned machines",
    add_completion=False,
)

console = Console()
logger = get_logger(__name__)


def _fail(e: ClusterBootstrapError) -> None:
    logger.error(e.message)
    console.print(f"[red]Error:[/red] {e.message}")
    if e.details:
        console.print(f"\n{e.details}")
    raise typer.Exit(code=1)


def _load_topology(config: Path, inventory: Path, kubeconfig: Path | None = None):
    from cluster_bootstrap.inventory import InventoryManager
    from cluster_bootstrap.models.settings import ClusterSettings

    settings = ClusterSettings.load(config)
    if kubeconfig is not None:
        settings = settings.model_copy(update={"kubeconfig_path": str(kubeconfig)})

    inventory_mgr = InventoryManager(inventory)
    masters = inventory_mgr.get_masters()
    workers = inventory_mgr.get_workers()
    load_balancer = inventory_mgr.get_load_balancer()
    logger.debug(
        f"Inventory {inventory}: {len(masters)} master(s), {len(workers)} worker(s), "
        f"load balancer: {'yes' if load_balancer else 'no'}"
    )
    return settings, masters, workers, load_balancer


# Global callback to set up logging
@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
    log_file: str | None = typer.Option(None, "--log-file", help="Path to log file"),
):
    """Global options for all commands."""
    log_path = Path(log_file) if log_file else None
    setup_logging(verbose=verbose, log_file=log_path)
    logger.debug("Logging initialized")


@app.command()
def version() -> None:
    """Show version information."""
    from cluster_bootstrap import __version__

    typer.echo(f"k3s-bootstrap version {__version__}")


@app.command()
def create(
    config: Path = typer.Option(..., "--config", "-c", help="Cluster configuration file"),
    inventory: Path = typer.Option(..., "--inventory", "-i", help="Node inventory file"),
    kubeconfig: Path | None = typer.Option(
        None, "--kubeconfig", help="Where to write the admin kubeconfig"
    ),
) -> None:
    """
    Bootstrap k3s on the machines listed in the inventory.

    Installs the primary master first, then the remaining masters, then the
    workers. Afterwards the nodes are labeled and tainted and the cluster
    software is installed.
    """
    from cluster_bootstrap.bootstrap.installer import ClusterInstaller

    try:
        settings, masters, workers, load_balancer = _load_topology(config, inventory, kubeconfig)
        installer = ClusterInstaller(settings, masters, workers, load_balancer, console=console)
        context = installer.run()

        console.print(f"\n[green]✓[/green] Cluster '{settings.cluster_name}' is ready")
        console.print(f"[bold]Kubeconfig:[/bold] {context.kubeconfig_path}")
        console.print(f"[bold]API endpoint:[/bold] https://{context.api_endpoint}:6443")

    except ClusterBootstrapError as e:
        _fail(e)
    except KeyboardInterrupt:
        console.print("\n[yellow]Bootstrap interrupted by user[/yellow]")
        raise typer.Exit(code=130)
    except Exception as e:
        logger.error(f"Unexpected error during bootstrap: {e}", exc_info=True)
        console.print(f"[red]Unexpected error:[/red] {e}")
        console.print("\nRun with --verbose --log-file debug.log for more details")
        raise typer.Exit(code=1)


@app.command()
def releases(
    refresh: bool = typer.Option(False, "--refresh", help="Ignore the local release cache"),
) -> None:
    """List the k3s releases available for installation."""
    from cluster_bootstrap.releases import GitHubReleaseCatalog

    try:
        available = GitHubReleaseCatalog().available_releases(refresh=refresh)
    except ClusterBootstrapError as e:
        _fail(e)

    table = Table(title="Available k3s releases")
    table.add_column("Version", style="cyan")
    for release in available:
        table.add_row(release)

    console.print(table)
    console.print(f"\n[bold]Total releases:[/bold] {len(available)}")


@app.command()
def render_script(
    config: Path = typer.Option(..., "--config", "-c", help="Cluster configuration file"),
    inventory: Path = typer.Option(..., "--inventory", "-i", help="Node inventory file"),
    node: str = typer.Option(..., "--node", "-n", help="Name of the node to render for"),
    token: str | None = typer.Option(
        None, "--token", help="Join token to embed (a new one is generated if omitted)"
    ),
) -> None:
    """
    Print the install script for one node without running anything.

    The primary master is not contacted, so the token shown is either the
    one given with --token or a freshly generated one.
    """
    from cluster_bootstrap.bootstrap.context import build_context
    from cluster_bootstrap.bootstrap.scripts import ScriptTemplater
    from cluster_bootstrap.bootstrap.token import generate_token
    from cluster_bootstrap.releases import GitHubReleaseCatalog

    try:
        settings, masters, workers, load_balancer = _load_topology(config, inventory)

        target = next((n for n in masters + workers if n.name == node), None)
        if target is None:
            console.print(f"[red]Error:[/red] Node '{node}' not found in inventory")
            raise typer.Exit(code=1)

        templater = ScriptTemplater()
        context = build_context(
            settings,
            masters,
            workers,
            load_balancer,
            executor=None,
            kubectl=None,
            release_catalog=GitHubReleaseCatalog(),
            templater=templater,
            token=token or generate_token(),
        )

        if target.is_master:
            script = templater.render_master_script(target, context)
        else:
            script = context.worker_script
        typer.echo(script, nl=False)

    except ClusterBootstrapError as e:
        _fail(e)
