"""Core utilities and shared components for spherectl."""

# Note: Import context lazily to avoid circular imports
# Use: from spherectl.core.context import SphereCtlContext, pass_context
from spherectl.core.exceptions import (
    SphereCtlError,
    ConfigError,
    ArtifactError,
    BackendError,
    DeploymentFailure,
)
from spherectl.core.output import OutputFormatter, console

__all__ = [
    "SphereCtlError",
    "ConfigError",
    "ArtifactError",
    "BackendError",
    "DeploymentFailure",
    "OutputFormatter",
    "console",
]
