"""Deployment data models."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any
import uuid

from spherectl.artifacts import ContractArtifact


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RunStatus(str, Enum):
    """Status of a whole sequencer run."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class StepStatus(str, Enum):
    """Status of a single deployment step."""

    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    NOT_RUN = "not_run"


@dataclass(frozen=True)
class DeploymentRequest:
    """One (artifact, network) pair submitted to a backend. Used once."""

    artifact: ContractArtifact
    network: str
    step: int = 1


@dataclass(frozen=True)
class DeployedContract:
    """A contract that a backend reports as deployed."""

    artifact: str
    network: str
    address: str
    transaction_hash: str | None = None
    block_number: int | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "artifact": self.artifact,
            "network": self.network,
            "address": self.address,
            "transaction_hash": self.transaction_hash,
            "block_number": self.block_number,
        }


@dataclass
class StepResult:
    """Outcome of one deployment step."""

    name: str
    step: int
    status: StepStatus = StepStatus.PENDING
    address: str | None = None
    transaction_hash: str | None = None
    block_number: int | None = None
    error: str | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None

    @property
    def duration(self) -> float | None:
        if self.started_at and self.completed_at:
            return (self.completed_at - self.started_at).total_seconds()
        return None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "name": self.name,
            "step": self.step,
            "status": self.status.value,
            "address": self.address,
            "transaction_hash": self.transaction_hash,
            "block_number": self.block_number,
            "error": self.error,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "duration": self.duration,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "StepResult":
        """Create from dictionary."""
        return cls(
            name=data["name"],
            step=data.get("step", 0),
            status=StepStatus(data.get("status", "pending")),
            address=data.get("address"),
            transaction_hash=data.get("transaction_hash"),
            block_number=data.get("block_number"),
            error=data.get("error"),
            started_at=_parse_time(data.get("started_at")),
            completed_at=_parse_time(data.get("completed_at")),
        )


@dataclass
class MigrationRun:
    """A single pass of the sequencer over the contract list."""

    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    network: str = ""
    dry_run: bool = False
    status: RunStatus = RunStatus.PENDING
    steps: list[StepResult] = field(default_factory=list)
    failed_step: str | None = None
    message: str = ""

    created_at: datetime = field(default_factory=utcnow)
    started_at: datetime | None = None
    completed_at: datetime | None = None

    @classmethod
    def plan(cls, network: str, contracts: list[str], dry_run: bool = False) -> "MigrationRun":
        """Create a run with one pending step per contract, in order."""
        return cls(
            network=network,
            dry_run=dry_run,
            steps=[StepResult(name=name, step=i) for i, name in enumerate(contracts, start=1)],
        )

    @property
    def current_index(self) -> int:
        """Index of the first step that has not succeeded."""
        for i, step in enumerate(self.steps):
            if step.status != StepStatus.SUCCEEDED:
                return i
        return len(self.steps)

    @property
    def deployed(self) -> dict[str, str]:
        """Addresses of the contracts deployed so far, by name."""
        return {
            s.name: s.address
            for s in self.steps
            if s.status == StepStatus.SUCCEEDED and s.address
        }

    @property
    def duration_seconds(self) -> float | None:
        if self.started_at:
            end = self.completed_at or utcnow()
            return (end - self.started_at).total_seconds()
        return None

    @property
    def is_complete(self) -> bool:
        return self.status in (RunStatus.SUCCEEDED, RunStatus.FAILED)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "network": self.network,
            "dry_run": self.dry_run,
            "status": self.status.value,
            "failed_step": self.failed_step,
            "message": self.message,
            "created_at": self.created_at.isoformat(),
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "duration_seconds": self.duration_seconds,
            "steps": [s.to_dict() for s in self.steps],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "MigrationRun":
        """Create from dictionary."""
        run = cls(
            id=data.get("id", str(uuid.uuid4())[:8]),
            network=data.get("network", ""),
            dry_run=data.get("dry_run", False),
            status=RunStatus(data.get("status", "pending")),
            steps=[StepResult.from_dict(s) for s in data.get("steps", [])],
            failed_step=data.get("failed_step"),
            message=data.get("message", ""),
        )

        created_at = _parse_time(data.get("created_at"))
        if created_at:
            run.created_at = created_at
        run.started_at = _parse_time(data.get("started_at"))
        run.completed_at = _parse_time(data.get("completed_at"))

        return run


def _parse_time(value: str | None) -> datetime | None:
    if not value:
        return None
    return datetime.fromisoformat(value)
