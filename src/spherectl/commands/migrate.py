"""Migrate and plan commands."""

import click

from spherectl.artifacts import ArtifactStore
from spherectl.core.context import pass_context, SphereCtlContext
from spherectl.core.exceptions import DeploymentFailure
from spherectl.deploy.sequencer import run_migration, summarize, validate_order


@click.command()
@click.argument("network", required=False)
@click.option("-y", "--yes", is_flag=True, help="Skip confirmation for protected networks")
@pass_context
def migrate(ctx: SphereCtlContext, network: str | None, yes: bool) -> None:
    """Deploy all contracts to a network, in order.

    NETWORK overrides the global --network option. Each contract is deployed
    only after the previous one succeeded; the first failure stops the run
    and exits with status 1.

    \b
    Examples:
        spherectl migrate
        spherectl migrate test
        spherectl --dry-run migrate mainnet
    """
    target = network or ctx.network
    net_config = ctx.config.get_network(target)

    if net_config.confirm and not yes and not ctx.dry_run:
        if not ctx.confirm(f"Deploy {len(ctx.config.migration.contracts)} contracts to '{target}'?"):
            ctx.output.print_info("Cancelled")
            raise click.Abort()

    try:
        run = run_migration(ctx, target, dry_run=ctx.dry_run)
    except DeploymentFailure as e:
        if e.run_id:
            ctx.output.print_info(f"Run recorded as {e.run_id}: spherectl runs show {e.run_id}")
        raise SystemExit(1)

    if not run.dry_run:
        ctx.output.print_data(summarize(run), title=f"Run {run.id} on {run.network}")


@click.command()
@pass_context
def plan(ctx: SphereCtlContext) -> None:
    """Show the deployment order and whether each artifact is built."""
    contracts = validate_order(ctx.config.migration.contracts)
    store = ArtifactStore(ctx.config.artifacts.build_dir)

    data = []
    for i, name in enumerate(contracts, start=1):
        found = store.exists(name)
        data.append({
            "Step": i,
            "Contract": name,
            "Artifact": "found" if found else "missing",
            "Path": str(store.path_for(name)),
        })

    ctx.output.print_data(
        data,
        headers=["Step", "Contract", "Artifact", "Path"],
        title=f"Deployment plan for '{ctx.network}'",
    )

    missing = [d["Contract"] for d in data if d["Artifact"] == "missing"]
    if missing:
        ctx.output.print_warning(f"{len(missing)} artifact(s) missing from {store.build_dir}")
