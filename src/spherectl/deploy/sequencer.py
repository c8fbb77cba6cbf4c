"""Ordered, one-at-a-time contract deployment."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

from spherectl.artifacts import ArtifactStore, ContractArtifact
from spherectl.config import ETHERSPHERE_CONTRACTS
from spherectl.core.async_utils import run_sync
from spherectl.core.exceptions import DeploymentFailure, SphereCtlError, ValidationError
from spherectl.core.logging import StructuredLogger
from spherectl.core.output import OutputFormatter, shorten_hex
from spherectl.deploy.backends import DeploymentBackend, create_backend
from spherectl.deploy.models import (
    DeploymentRequest,
    MigrationRun,
    RunStatus,
    StepResult,
    StepStatus,
    utcnow,
)
from spherectl.deploy.state import RunState

if TYPE_CHECKING:
    from spherectl.core.context import SphereCtlContext

logger = StructuredLogger(__name__)


def validate_order(contracts: Sequence[str]) -> list[str]:
    """Check a deployment order is non-empty with unique, non-blank names."""
    names = list(contracts)
    if not names:
        raise ValidationError("Deployment order is empty")

    seen: set[str] = set()
    for name in names:
        if not name or not name.strip():
            raise ValidationError("Deployment order contains a blank contract name")
        if name in seen:
            raise ValidationError(f"Contract '{name}' appears more than once in the deployment order")
        seen.add(name)

    return names


class DeploymentSequencer:
    """Deploy a fixed list of contracts strictly in order.

    Each deployment request is issued only after the previous one has
    completed successfully. The first failure stops the sequence: the
    failing step is recorded, later steps are marked not run, and the
    failure is raised to the caller. Nothing is retried or rolled back,
    and previous runs are never consulted, so running twice deploys
    everything twice.
    """

    def __init__(
        self,
        backend: DeploymentBackend,
        contracts: Sequence[str] = ETHERSPHERE_CONTRACTS,
        state: RunState | None = None,
        output: OutputFormatter | None = None,
    ):
        self._backend = backend
        self._contracts = validate_order(contracts)
        self._state = state
        self._output = output or OutputFormatter(quiet=True)

    @property
    def contracts(self) -> list[str]:
        return list(self._contracts)

    async def run(self, network: str, dry_run: bool = False) -> MigrationRun:
        """Deploy every contract to a network, in order.

        Args:
            network: Target network identifier, passed to the backend as-is
            dry_run: If True, show the plan without issuing any requests

        Returns:
            The completed run record

        Raises:
            DeploymentFailure: On the first step that fails
        """
        run = MigrationRun.plan(network, self._contracts, dry_run=dry_run)
        run.status = RunStatus.IN_PROGRESS
        run.started_at = utcnow()
        log = logger.bind(run=run.id, network=network)

        total = len(run.steps)
        self._output.print_info(
            f"Deploying {total} contracts to network '{network}' using {self._backend.name} backend"
        )
        log.info("Migration started", contracts=total, dry_run=dry_run)

        if dry_run:
            for step in run.steps:
                self._output.print(f"[dim]Would deploy {step.step}/{total}: {step.name}[/dim]")
            run.status = RunStatus.SUCCEEDED
            run.completed_at = utcnow()
            self._save(run)
            return run

        for step in run.steps:
            request = DeploymentRequest(
                artifact=ContractArtifact(step.name),
                network=network,
                step=step.step,
            )

            self._output.print(f"\n[bold]Step {step.step}/{total}: {step.name}[/bold]")
            step.started_at = utcnow()

            try:
                deployed = await self._backend.deploy(request)
            except DeploymentFailure as e:
                self._abort(run, step, e)
                raise
            except Exception as e:
                failure = DeploymentFailure(
                    f"Deployment of {step.name} failed: {e}",
                    artifact=step.name,
                    network=network,
                    step=step.step,
                )
                self._abort(run, step, failure)
                raise failure from e
            except BaseException as e:
                self._interrupt(run, step, e)
                raise

            step.status = StepStatus.SUCCEEDED
            step.completed_at = utcnow()
            step.address = deployed.address
            step.transaction_hash = deployed.transaction_hash
            step.block_number = deployed.block_number

            self._output.print_success(f"{step.name} deployed at {deployed.address}")
            log.debug("Step completed", step=step.step, artifact=step.name, address=deployed.address)

        run.status = RunStatus.SUCCEEDED
        run.completed_at = utcnow()
        self._save(run)

        self._output.print_success(f"All {total} contracts deployed to '{network}'")
        log.info("Migration completed")
        return run

    def _abort(self, run: MigrationRun, step: StepResult, failure: DeploymentFailure) -> None:
        """Record a failed step and mark everything after it as not run."""
        self._stop(run, step, failure.message)
        failure.run_id = run.id

        self._output.print_error(f"Migration stopped at step {step.step}: {failure.message}")
        logger.error(
            "Migration failed",
            run=run.id,
            network=run.network,
            step=step.step,
            artifact=step.name,
        )

    def _interrupt(self, run: MigrationRun, step: StepResult, error: BaseException) -> None:
        """Record a run cut short by cancellation or Ctrl-C, keeping finished steps."""
        message = f"Interrupted during {step.name} ({type(error).__name__})"
        self._stop(run, step, message)
        logger.warning(message, run=run.id, network=run.network, step=step.step)

    def _stop(self, run: MigrationRun, step: StepResult, message: str) -> None:
        step.status = StepStatus.FAILED
        step.completed_at = utcnow()
        step.error = message

        for later in run.steps[step.step:]:
            later.status = StepStatus.NOT_RUN

        run.status = RunStatus.FAILED
        run.failed_step = step.name
        run.message = message
        run.completed_at = utcnow()
        self._save(run)

    def _save(self, run: MigrationRun) -> None:
        if self._state is None:
            return
        try:
            self._state.save(run)
        except SphereCtlError as e:
            logger.warning(f"Could not record run {run.id}: {e}")


def summarize(run: MigrationRun) -> list[dict[str, str]]:
    """Table rows describing each step of a run."""
    return [
        {
            "Step": str(s.step),
            "Contract": s.name,
            "Status": s.status.value,
            "Address": s.address or "-",
            "Tx": shorten_hex(s.transaction_hash),
        }
        for s in run.steps
    ]


async def migrate(
    ctx: SphereCtlContext,
    network: str,
    dry_run: bool = False,
) -> MigrationRun:
    """Build the backend for a network and run the sequencer against it."""
    config = ctx.config
    store = ArtifactStore(config.artifacts.build_dir)
    state = RunState(config.state.get_dir()) if config.state.enabled else None

    backend = create_backend(config.get_network(network), store)
    async with backend:
        sequencer = DeploymentSequencer(
            backend,
            contracts=config.migration.contracts,
            state=state,
            output=ctx.output,
        )
        return await sequencer.run(network, dry_run=dry_run)


def run_migration(
    ctx: SphereCtlContext,
    network: str | None = None,
    dry_run: bool = False,
) -> MigrationRun:
    """Convenience function to run the migration from synchronous code.

    Args:
        ctx: spherectl context
        network: Network name; defaults to the context's network
        dry_run: If True, show what would be deployed

    Returns:
        The completed run record
    """
    return run_sync(migrate(ctx, network or ctx.network, dry_run))
