"""Main CLI entry point for spherectl."""

import sys
from typing import Any

import click
from rich.console import Console

from spherectl import __version__
from spherectl.config import load_config
from spherectl.core.context import SphereCtlContext
from spherectl.core.output import OutputFormat
from spherectl.core.exceptions import SphereCtlError, ConfigError


CONTEXT_SETTINGS = {
    "help_option_names": ["-h", "--help"],
    "max_content_width": 120,
}


class OutputFormatType(click.ParamType):
    """Custom Click parameter type for output format."""

    name = "format"

    def convert(
        self,
        value: Any,
        param: click.Parameter | None,
        ctx: click.Context | None,
    ) -> OutputFormat:
        if isinstance(value, OutputFormat):
            return value
        try:
            return OutputFormat(value.lower())
        except ValueError:
            self.fail(
                f"Invalid format '{value}'. Choose from: table, json, yaml, raw",
                param,
                ctx,
            )


OUTPUT_FORMAT = OutputFormatType()


def print_version(ctx: click.Context, param: click.Parameter, value: bool) -> None:
    """Print version and exit."""
    if not value or ctx.resilient_parsing:
        return
    console = Console()
    console.print(f"spherectl version {__version__}")
    ctx.exit()


@click.group(context_settings=CONTEXT_SETTINGS)
@click.option(
    "-n",
    "--network",
    metavar="NAME",
    envvar="SPHERECTL_NETWORK",
    help="Target network (from the networks section of the config)",
)
@click.option(
    "-o",
    "--output",
    "output_format",
    type=OUTPUT_FORMAT,
    metavar="FORMAT",
    help="Output format: table, json, yaml, raw",
)
@click.option(
    "-v",
    "--verbose",
    count=True,
    help="Increase verbosity (-v for info, -vv for debug)",
)
@click.option(
    "-q",
    "--quiet",
    is_flag=True,
    help="Suppress non-essential output",
)
@click.option(
    "--dry-run",
    is_flag=True,
    help="Show what would be deployed without sending anything",
)
@click.option(
    "--no-color",
    is_flag=True,
    help="Disable colored output",
)
@click.option(
    "-c",
    "--config",
    "config_file",
    type=click.Path(exists=True),
    metavar="FILE",
    envvar="SPHERECTL_CONFIG",
    help="Path to config file",
)
@click.option(
    "--version",
    is_flag=True,
    callback=print_version,
    expose_value=False,
    is_eager=True,
    help="Show version and exit",
)
@click.pass_context
def cli(
    ctx: click.Context,
    network: str | None,
    output_format: OutputFormat | None,
    verbose: int,
    quiet: bool,
    dry_run: bool,
    no_color: bool,
    config_file: str | None,
) -> None:
    """spherectl - deploy the Ethersphere contracts in order.

    Deploys AccessControl, Base, Cube, Finance and Minting one at a time,
    stopping at the first failure.

    \b
    Examples:
        spherectl migrate
        spherectl -n test migrate
        spherectl --dry-run migrate
        spherectl runs list

    \b
    Configuration:
        ~/.spherectl/config.yaml    User configuration
        ./spherectl.yaml            Project configuration
        SPHERECTL_*                 Environment variables
    """
    try:
        config = load_config(config_file)

        ctx.obj = SphereCtlContext(
            config=config,
            network=network,
            output_format=output_format,
            verbose=verbose,
            quiet=quiet,
            dry_run=dry_run,
            color=not no_color,
        )

        if dry_run and not quiet:
            ctx.obj.output.print_warning("Dry-run mode enabled - nothing will be deployed")

    except ConfigError as e:
        console = Console(stderr=True)
        console.print(f"[red]Configuration error:[/red] {e}")
        sys.exit(1)


def register_commands() -> None:
    """Register all command groups."""
    from spherectl.commands.migrate import migrate, plan
    from spherectl.commands.runs import runs

    cli.add_command(migrate)
    cli.add_command(plan)
    cli.add_command(runs)


register_commands()


@cli.command()
@click.pass_context
def networks(ctx: click.Context) -> None:
    """List configured networks."""
    sctx: SphereCtlContext = ctx.obj
    data = []
    for name, net in sctx.config.networks.items():
        data.append({
            "Name": name,
            "Selected": "*" if name == sctx.network else "",
            "Backend": net.backend,
            "Endpoint": net.get_rpc_url() if net.backend == "rpc" else (net.command or "-"),
        })
    sctx.output.print_data(
        data,
        headers=["Name", "Selected", "Backend", "Endpoint"],
        title=f"Networks ({len(data)} configured)",
    )


@cli.command()
@click.pass_context
def config(ctx: click.Context) -> None:
    """Show current configuration."""
    sctx: SphereCtlContext = ctx.obj
    net = sctx.network_config
    config_data = {
        "network": sctx.network,
        "backend": net.backend,
        "rpc_url": net.get_rpc_url(),
        "from_address": net.get_from_address() or "(first node account)",
        "output_format": sctx.output_format.value,
        "dry_run": sctx.dry_run,
        "verbose": sctx.verbose,
        "build_dir": sctx.config.artifacts.build_dir,
        "contracts": ", ".join(sctx.config.migration.contracts),
        "state_dir": sctx.config.state.get_dir() if sctx.config.state.enabled else "(disabled)",
    }
    sctx.output.print_data(config_data, title="Current Configuration")


def main() -> None:
    """Main entry point."""
    try:
        cli()
    except SphereCtlError as e:
        console = Console(stderr=True)
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)
    except KeyboardInterrupt:
        console = Console(stderr=True)
        console.print("\n[yellow]Interrupted[/yellow]")
        sys.exit(130)


if __name__ == "__main__":
    main()
