"""Main CLI entry point for HSM Bootstrap."""

from __future__ import annotations

import asyncio
import json
import sys
from typing import TYPE_CHECKING

import click
from rich.console import Console
from rich.table import Table

from hsmboot import __version__
from hsmboot.core.config import DEFAULT_CONFIG_PATH

if TYPE_CHECKING:
    from hsmboot.adapters.cloudhsm_adapter import CloudHSMAdapter
    from hsmboot.core.config import HsmBootConfig
    from hsmboot.core.models import BootstrapResult, ClusterSnapshot

console = Console()


class HsmBootContext:
    """Shared context for CLI commands with lazy initialization."""

    def __init__(self, config_path: str, region: str | None = None, profile: str | None = None):
        """Initialize context.

        Args:
            config_path: Path to configuration file
            region: Region override
            profile: Credential profile override
        """
        self.config_path = config_path
        self.region = region
        self.profile = profile
        self._config: HsmBootConfig | None = None
        self._adapter: CloudHSMAdapter | None = None

    @property
    def config(self) -> HsmBootConfig:
        """Get or create config lazily, applying CLI overrides."""
        if self._config is None:
            from pathlib import Path

            from hsmboot.core.config import HsmBootConfig
            from hsmboot.utils.logging import setup_logging

            config_path = Path(self.config_path).expanduser()
            if config_path.exists() or self.config_path != DEFAULT_CONFIG_PATH:
                config = HsmBootConfig.from_file(config_path)
            else:
                config = HsmBootConfig()

            if self.region:
                config.aws.region = self.region
            if self.profile:
                config.aws.profile = self.profile

            setup_logging(
                level=config.logging.level,
                format=config.logging.format,
                output=config.logging.output,
            )
            self._config = config
        return self._config

    @property
    def adapter(self) -> CloudHSMAdapter:
        """Get or create CloudHSM adapter lazily."""
        if self._adapter is None:
            from hsmboot.adapters.cloudhsm_adapter import CloudHSMAdapter

            self._adapter = CloudHSMAdapter(
                region=self.config.aws.region, profile=self.config.aws.profile
            )
        return self._adapter


def _print_snapshot(snapshot: ClusterSnapshot, format: str) -> None:
    if format == "json":
        click.echo(json.dumps(snapshot.model_dump(exclude={"raw"}), indent=2, default=str))
        return

    table = Table(title=f"Cluster {snapshot.cluster_id}")
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("Status", snapshot.status)
    table.add_row("HSM Type", snapshot.hsm_type or "-")
    table.add_row("CSR Published", "yes" if snapshot.cluster_csr else "no")
    for hsm in snapshot.hsms:
        table.add_row(f"HSM {hsm.hsm_id}", f"{hsm.state} ({hsm.availability_zone or '-'})")
    console.print(table)


def _print_result(result: BootstrapResult, format: str) -> None:
    if format == "json":
        click.echo(json.dumps(result.model_dump(), indent=2))
        return

    if result.dry_run:
        console.print("[bold yellow]Dry run: planned actions[/bold yellow]")
        for i, action in enumerate(result.planned_actions, start=1):
            console.print(f"  {i}. {action}")
        return

    table = Table(title="Bootstrap Outputs")
    table.add_column("Output", style="cyan")
    table.add_column("Value")
    table.add_row("clusterId", result.cluster_id or "-")
    table.add_row("clusterState", result.cluster_state or "-")
    table.add_row("finalState", result.final_state or "-")
    table.add_row("hsmIds", ", ".join(result.hsm_ids) or "-")
    console.print(table)
    if result.cluster_csr:
        console.print("[bold]clusterCsr[/bold]")
        console.print(result.cluster_csr, highlight=False)


def _fail(operation: str, error: Exception) -> None:
    from hsmboot.utils.logging import get_logger, log_error

    log_error(get_logger(__name__), error, operation=operation)
    console.print(f"[red]✗ {type(error).__name__}: {error}[/red]")
    sys.exit(1)


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--config",
    type=click.Path(),
    default=DEFAULT_CONFIG_PATH,
    help="Path to configuration file",
)
@click.option("--region", default=None, help="AWS region (overrides config)")
@click.option("--profile", default=None, help="AWS credential profile (overrides config)")
@click.pass_context
def cli(ctx: click.Context, config: str, region: str | None, profile: str | None) -> None:
    """HSM Bootstrap - provision and initialize a CloudHSM cluster."""
    ctx.obj = HsmBootContext(config_path=config, region=region, profile=profile)


@cli.command()
@click.option("--cluster-id", default=None, help="Adopt an existing uninitialized cluster")
@click.option("--dry-run", is_flag=True, help="Show planned actions without contacting AWS")
@click.option(
    "--timeout",
    type=click.FloatRange(min=0, min_open=True),
    default=None,
    help="Per-wait timeout in seconds",
)
@click.option("--format", type=click.Choice(["table", "json"]), default="table")
@click.pass_context
def bootstrap(
    ctx: click.Context, cluster_id: str | None, dry_run: bool, timeout: float | None, format: str
) -> None:
    """Create, initialize and expand a CloudHSM cluster."""
    from hsmboot.bootstrap.engine import BootstrapEngine

    hsm_ctx: HsmBootContext = ctx.obj

    try:
        config = hsm_ctx.config
        if timeout is not None:
            config.waiter.timeout_seconds = timeout

        if format == "table":
            console.print("[bold blue]HSM Bootstrap[/bold blue]")
            console.print(f"Region: {config.aws.region}")
            console.print(f"Cluster: {cluster_id or 'new'}")
            console.print(f"Dry Run: {dry_run}\n")

        # A dry run never builds the AWS adapter
        provider = None if dry_run else hsm_ctx.adapter
        engine = BootstrapEngine(provider, config)  # type: ignore[arg-type]
        result = asyncio.run(engine.bootstrap(existing_cluster_id=cluster_id, dry_run=dry_run))
    except Exception as e:
        _fail("bootstrap", e)
        return

    _print_result(result, format)
    if format == "table" and not dry_run:
        console.print("\n[bold green]✓ Cluster bootstrap complete![/bold green]")


@cli.command()
@click.option("--cluster-id", required=True, help="Cluster to poll")
@click.option(
    "--status",
    "statuses",
    multiple=True,
    required=True,
    help="Acceptable status (repeatable)",
)
@click.option(
    "--timeout",
    type=click.FloatRange(min=0, min_open=True),
    default=None,
    help="Timeout in seconds",
)
@click.option("--format", type=click.Choice(["table", "json"]), default="table")
@click.pass_context
def wait(
    ctx: click.Context,
    cluster_id: str,
    statuses: tuple[str, ...],
    timeout: float | None,
    format: str,
) -> None:
    """Wait for a cluster to reach one of the given statuses."""
    from hsmboot.convergence.waiter import wait_for_cluster_status

    hsm_ctx: HsmBootContext = ctx.obj

    try:
        config = hsm_ctx.config
        snapshot = asyncio.run(
            wait_for_cluster_status(
                hsm_ctx.adapter,
                cluster_id,
                {s.upper() for s in statuses},
                timeout if timeout is not None else config.waiter.timeout_seconds,
                delay_seconds=config.waiter.delay_seconds,
            )
        )
    except Exception as e:
        _fail("wait", e)
        return

    _print_snapshot(snapshot, format)


@cli.command()
@click.option("--cluster-id", required=True, help="Cluster to describe")
@click.option("--format", type=click.Choice(["table", "json"]), default="table")
@click.pass_context
def status(ctx: click.Context, cluster_id: str, format: str) -> None:
    """Show the current state of a cluster."""
    from hsmboot.core.exceptions import ClusterNotFoundError

    hsm_ctx: HsmBootContext = ctx.obj

    try:
        clusters = asyncio.run(hsm_ctx.adapter.describe_clusters([cluster_id]))
        snapshot = next((c for c in clusters or [] if c.cluster_id == cluster_id), None)
        if snapshot is None:
            raise ClusterNotFoundError(f"Unable to find cluster by id {cluster_id}")
    except Exception as e:
        _fail("status", e)
        return

    _print_snapshot(snapshot, format)


@cli.command()
@click.pass_context
def validate(ctx: click.Context) -> None:
    """Validate configuration and AWS connectivity."""
    hsm_ctx: HsmBootContext = ctx.obj

    console.print("[bold magenta]HSM Bootstrap Validate[/bold magenta]\n")

    console.print("[bold]1. Configuration[/bold]")
    try:
        config = hsm_ctx.config
        console.print("  [green]✓ Config valid[/green]")
    except Exception as e:
        console.print(f"  [red]✗ Config invalid: {e}[/red]")
        sys.exit(1)

    if not config.cluster.subnet_ids:
        console.print(
            "  [yellow]! cluster.subnet_ids is empty; only --cluster-id runs will work[/yellow]"
        )
    if not config.cluster.availability_zone:
        console.print("  [yellow]! cluster.availability_zone is not set[/yellow]")
    console.print()

    console.print("[bold]2. AWS Connectivity[/bold]")
    try:
        identity = hsm_ctx.adapter.client.get_caller_identity()
        console.print(f"  [green]✓ Authenticated as {identity.get('Arn', 'unknown')}[/green]\n")
    except Exception as e:
        console.print(f"  [red]✗ AWS connection failed: {e}[/red]\n")
        sys.exit(1)

    console.print("[bold green]✓ Validation complete![/bold green]")


if __name__ == "__main__":
    cli()
