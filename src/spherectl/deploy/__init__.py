"""Contract deployment sequencing."""

from spherectl.deploy.models import (
    DeployedContract,
    DeploymentRequest,
    MigrationRun,
    RunStatus,
    StepResult,
    StepStatus,
)
from spherectl.deploy.sequencer import DeploymentSequencer, run_migration
from spherectl.deploy.state import RunState

__all__ = [
    "DeployedContract",
    "DeploymentRequest",
    "DeploymentSequencer",
    "MigrationRun",
    "RunState",
    "RunStatus",
    "StepResult",
    "StepStatus",
    "run_migration",
]
