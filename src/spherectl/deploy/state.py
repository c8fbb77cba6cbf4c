"""Migration run persistence."""

import json
from pathlib import Path

from spherectl.core.exceptions import SphereCtlError
from spherectl.core.logging import StructuredLogger
from spherectl.deploy.models import MigrationRun, RunStatus

logger = StructuredLogger(__name__)


class RunState:
    """Store migration runs as one JSON file each.

    Records are a history of what was attempted. The sequencer never reads
    them back to decide what to deploy.
    """

    def __init__(self, state_dir: str | Path):
        self._state_dir = Path(state_dir)

    @property
    def state_dir(self) -> Path:
        return self._state_dir

    def save(self, run: MigrationRun) -> Path:
        """Save a run record.

        Args:
            run: Run to save

        Returns:
            Path of the written file
        """
        state_file = self._state_dir / f"{run.id}.json"

        try:
            self._state_dir.mkdir(parents=True, exist_ok=True)
            with open(state_file, "w") as f:
                json.dump(run.to_dict(), f, indent=2)
        except OSError as e:
            raise SphereCtlError(f"Failed to save run state: {e}", details={"run_id": run.id})

        logger.debug("Saved run state", id=run.id, status=run.status.value)
        return state_file

    def _path_for(self, run_id: str) -> Path:
        if not run_id or run_id in (".", "..") or "/" in run_id or "\\" in run_id:
            raise SphereCtlError(f"Invalid run id: {run_id!r}")
        return self._state_dir / f"{run_id}.json"

    def load(self, run_id: str) -> MigrationRun:
        """Load a run record.

        Args:
            run_id: Run ID

        Returns:
            Loaded MigrationRun
        """
        state_file = self._path_for(run_id)

        if not state_file.exists():
            raise SphereCtlError(f"Run not found: {run_id}")

        try:
            with open(state_file) as f:
                data = json.load(f)
            return MigrationRun.from_dict(data)
        except (OSError, ValueError, KeyError) as e:
            raise SphereCtlError(f"Failed to load run state: {e}", details={"run_id": run_id})

    def delete(self, run_id: str) -> None:
        """Delete a run record."""
        state_file = self._path_for(run_id)

        if state_file.exists():
            state_file.unlink()
            logger.debug("Deleted run state", id=run_id)

    def list(
        self,
        network: str | None = None,
        status: RunStatus | None = None,
        limit: int = 50,
    ) -> list[MigrationRun]:
        """List runs, newest first.

        Args:
            network: Filter by network
            status: Filter by status
            limit: Maximum runs to return

        Returns:
            List of MigrationRuns
        """
        runs: list[MigrationRun] = []

        if not self._state_dir.is_dir():
            return runs

        for state_file in self._state_dir.glob("*.json"):
            try:
                with open(state_file) as f:
                    run = MigrationRun.from_dict(json.load(f))
            except (OSError, ValueError, KeyError) as e:
                logger.warning(f"Skipping unreadable run record {state_file}: {e}")
                continue

            if network and run.network != network:
                continue
            if status and run.status != status:
                continue

            runs.append(run)

        runs.sort(key=lambda r: r.created_at, reverse=True)

        return runs[:limit]

    def latest(self, network: str) -> MigrationRun | None:
        """Get the most recent run for a network."""
        runs = self.list(network=network, limit=1)
        return runs[0] if runs else None
