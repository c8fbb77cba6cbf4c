"""Click context object for sharing state across commands."""

from __future__ import annotations

import click

from spherectl.config import (
    EnvSettings,
    NetworkConfig,
    SphereCtlConfig,
    get_default_config,
)
from spherectl.core.output import OutputFormat, OutputFormatter
from spherectl.core.logging import resolve_level, setup_logging


class SphereCtlContext:
    """Shared context object for spherectl commands.

    This object is passed through Click's context mechanism and provides
    access to configuration, the selected network, and output.
    """

    def __init__(
        self,
        config: SphereCtlConfig | None = None,
        network: str | None = None,
        output_format: OutputFormat | None = None,
        verbose: int = 0,
        quiet: bool = False,
        dry_run: bool = False,
        color: bool = True,
    ):
        self._config = config or get_default_config()
        self._network_name = (
            network
            or EnvSettings().network
            or self._config.global_settings.default_network
        )

        # Output settings (CLI overrides config)
        self._output_format = output_format or self._config.global_settings.output_format
        self._verbose = verbose
        self._quiet = quiet
        self._dry_run = dry_run or self._config.global_settings.dry_run
        self._color = color and self._config.global_settings.color != "never"

        log_level = resolve_level(verbose, quiet, self._config.global_settings.verbosity)
        setup_logging(log_level, rich_output=self._color)

        self._output = OutputFormatter(
            format=self._output_format,
            color=self._color,
            quiet=quiet,
        )

    @property
    def config(self) -> SphereCtlConfig:
        """Get the loaded configuration."""
        return self._config

    @property
    def network(self) -> str:
        """Get the selected network name."""
        return self._network_name

    @property
    def network_config(self) -> NetworkConfig:
        """Get the selected network's configuration."""
        return self._config.get_network(self._network_name)

    @property
    def output(self) -> OutputFormatter:
        """Get the output formatter."""
        return self._output

    @property
    def output_format(self) -> OutputFormat:
        """Get the output format."""
        return self._output_format

    @property
    def dry_run(self) -> bool:
        """Check if dry-run mode is enabled."""
        return self._dry_run

    @property
    def verbose(self) -> int:
        """Get verbosity level."""
        return self._verbose

    @property
    def quiet(self) -> bool:
        """Check if quiet mode is enabled."""
        return self._quiet

    @property
    def color(self) -> bool:
        """Check if color output is enabled."""
        return self._color

    def confirm(self, message: str, default: bool = False) -> bool:
        """Ask for user confirmation.

        In dry-run mode, always returns True without prompting.
        """
        if self._dry_run:
            self._output.print(f"[dim][dry-run] Would prompt: {message}[/dim]")
            return True
        return self._output.confirm(message, default)


# Click decorator for passing context
pass_context = click.make_pass_decorator(SphereCtlContext, ensure=True)
