"""Run history commands."""

import click

from spherectl.core.context import pass_context, SphereCtlContext
from spherectl.core.output import format_duration
from spherectl.deploy import RunState, RunStatus
from spherectl.deploy.sequencer import summarize


@click.group()
@pass_context
def runs(ctx: SphereCtlContext) -> None:
    """Inspect recorded migration runs.

    \b
    Examples:
        spherectl runs list
        spherectl runs list --network test --status failed
        spherectl runs show 1a2b3c4d
    """
    pass


@runs.command("list")
@click.option("--network", "network_filter", help="Only runs against this network")
@click.option(
    "--status",
    type=click.Choice([s.value for s in RunStatus]),
    help="Only runs with this status",
)
@click.option("--limit", type=click.IntRange(min=1), default=20, show_default=True, help="Maximum runs to show")
@pass_context
def list_runs(
    ctx: SphereCtlContext,
    network_filter: str | None,
    status: str | None,
    limit: int,
) -> None:
    """List recorded runs, newest first."""
    state = RunState(ctx.config.state.get_dir())
    records = state.list(
        network=network_filter,
        status=RunStatus(status) if status else None,
        limit=limit,
    )

    if not records:
        ctx.output.print_info("No runs recorded")
        return

    data = []
    for run in records:
        data.append({
            "ID": run.id,
            "Network": run.network,
            "Status": run.status.value + (" (dry-run)" if run.dry_run else ""),
            "Deployed": f"{len(run.deployed)}/{len(run.steps)}",
            "Failed Step": run.failed_step or "-",
            "Created": run.created_at.strftime("%Y-%m-%d %H:%M:%S"),
            "Duration": format_duration(run.duration_seconds),
        })

    ctx.output.print_data(
        data,
        headers=["ID", "Network", "Status", "Deployed", "Failed Step", "Created", "Duration"],
        title=f"Runs ({len(data)} found)",
    )


@runs.command("show")
@click.argument("run_id")
@pass_context
def show(ctx: SphereCtlContext, run_id: str) -> None:
    """Show the steps of a recorded run."""
    state = RunState(ctx.config.state.get_dir())
    run = state.load(run_id)

    if ctx.output_format.value in ("json", "yaml"):
        ctx.output.print_data(run.to_dict())
        return

    ctx.output.print_data(
        {
            "ID": run.id,
            "Network": run.network,
            "Status": run.status.value,
            "Dry Run": run.dry_run,
            "Failed Step": run.failed_step or "-",
            "Message": run.message or "-",
            "Duration": format_duration(run.duration_seconds),
        },
        title=f"Run {run.id}",
    )
    ctx.output.print_data(summarize(run), title="Steps")
