"""Custom exceptions for spherectl."""

from typing import Any


class SphereCtlError(Exception):
    """Base exception for all spherectl errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} - {self.details}"
        return self.message


class ConfigError(SphereCtlError):
    """Configuration-related errors."""

    pass


class ValidationError(SphereCtlError):
    """Input validation errors."""

    pass


class ArtifactError(SphereCtlError):
    """Compiled contract artifact could not be resolved or read."""

    def __init__(
        self,
        message: str,
        artifact: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, details)
        self.artifact = artifact


class BackendError(SphereCtlError):
    """Transport or protocol errors talking to a deployment backend."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        rpc_code: int | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, details)
        self.status_code = status_code
        self.rpc_code = rpc_code


class DeploymentFailure(SphereCtlError):
    """A single deployment step failed.

    This is the only error kind surfaced by the sequencer. Whatever went
    wrong underneath (network error, rejected transaction, reverted
    constructor, timeout) is carried as the message and ``__cause__``.
    """

    def __init__(
        self,
        message: str,
        artifact: str | None = None,
        network: str | None = None,
        step: int | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, details)
        self.artifact = artifact
        self.network = network
        self.step = step
        self.run_id: str | None = None


class TimeoutError(SphereCtlError):
    """Operation timeout errors."""

    def __init__(
        self,
        message: str,
        timeout_seconds: float | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, details)
        self.timeout_seconds = timeout_seconds
