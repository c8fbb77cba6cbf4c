"""Deployment backends."""

from spherectl.artifacts import ArtifactStore
from spherectl.config import NetworkConfig
from spherectl.deploy.backends.base import DeploymentBackend
from spherectl.deploy.backends.command import CommandBackend
from spherectl.deploy.backends.rpc import RPCBackend

__all__ = [
    "DeploymentBackend",
    "RPCBackend",
    "CommandBackend",
    "create_backend",
]


def create_backend(config: NetworkConfig, artifacts: ArtifactStore) -> DeploymentBackend:
    """Create the backend selected by a network config."""
    if config.backend == "command":
        return CommandBackend(config, artifacts)
    return RPCBackend(config, artifacts)
