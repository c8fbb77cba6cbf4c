"""Base deployment backend."""

from abc import ABC, abstractmethod
from typing import Any

from spherectl.deploy.models import DeployedContract, DeploymentRequest


class DeploymentBackend(ABC):
    """Abstract base class for deployment backends.

    A backend publishes one artifact to one network per call and either
    returns the deployed contract or raises DeploymentFailure.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Get backend name."""
        pass

    @abstractmethod
    async def deploy(self, request: DeploymentRequest) -> DeployedContract:
        """Deploy a single artifact.

        Args:
            request: Artifact and network to deploy to

        Returns:
            The deployed contract

        Raises:
            DeploymentFailure: If the deployment did not complete
        """
        pass

    async def aclose(self) -> None:
        """Release any held connections."""
        return None

    async def __aenter__(self) -> "DeploymentBackend":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()
