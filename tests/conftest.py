"""Pytest fixtures for spherectl tests."""

import json
import os
from pathlib import Path
from typing import Generator

import pytest
from click.testing import CliRunner

from spherectl.config import (
    ETHERSPHERE_CONTRACTS,
    ArtifactsConfig,
    NetworkConfig,
    SphereCtlConfig,
    StateConfig,
)
from spherectl.core.context import SphereCtlContext
from spherectl.core.exceptions import DeploymentFailure
from spherectl.core.output import OutputFormat
from spherectl.deploy.backends.base import DeploymentBackend
from spherectl.deploy.models import DeployedContract, DeploymentRequest


class RecordingBackend(DeploymentBackend):
    """Backend double that records every request it receives."""

    def __init__(self, fail_on: str | None = None, error: BaseException | None = None):
        self.requests: list[DeploymentRequest] = []
        self.fail_on = fail_on
        self.error = error
        self.closed = False

    @property
    def name(self) -> str:
        return "recording"

    @property
    def deployed_names(self) -> list[str]:
        return [r.artifact.name for r in self.requests]

    async def deploy(self, request: DeploymentRequest) -> DeployedContract:
        self.requests.append(request)
        if request.artifact.name == self.fail_on:
            if self.error is not None:
                raise self.error
            raise DeploymentFailure(
                f"Deployment of {request.artifact.name} failed: rejected",
                artifact=request.artifact.name,
                network=request.network,
                step=request.step,
            )
        return DeployedContract(
            artifact=request.artifact.name,
            network=request.network,
            address="0x" + f"{len(self.requests):040x}",
            transaction_hash="0x" + f"{len(self.requests):064x}",
            block_number=len(self.requests),
        )

    async def aclose(self) -> None:
        self.closed = True


def write_artifact(build_dir: Path, name: str, bytecode: str | None = "0x6080604052") -> Path:
    """Write a minimal Truffle-style artifact."""
    build_dir.mkdir(parents=True, exist_ok=True)
    data = {"contractName": name, "abi": [{"type": "constructor", "inputs": []}]}
    if bytecode is not None:
        data["bytecode"] = bytecode
    path = build_dir / f"{name}.json"
    path.write_text(json.dumps(data))
    return path


@pytest.fixture(autouse=True)
def isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Keep tests away from real config files and SPHERECTL_* variables."""
    for key in list(os.environ):
        if key.startswith("SPHERECTL_"):
            monkeypatch.delenv(key, raising=False)

    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))

    workdir = tmp_path / "work"
    workdir.mkdir()
    monkeypatch.chdir(workdir)

    yield


@pytest.fixture
def cli_runner() -> CliRunner:
    """Create a Click CLI runner."""
    return CliRunner()


@pytest.fixture
def build_dir(tmp_path: Path) -> Path:
    """A build directory holding all five Ethersphere artifacts."""
    directory = tmp_path / "build" / "contracts"
    for name in ETHERSPHERE_CONTRACTS:
        write_artifact(directory, name)
    return directory


@pytest.fixture
def state_dir(tmp_path: Path) -> Path:
    return tmp_path / "runs"


@pytest.fixture
def mock_config(build_dir: Path, state_dir: Path) -> SphereCtlConfig:
    """Create a configuration with development and test networks."""
    return SphereCtlConfig(
        networks={
            "development": NetworkConfig(),
            "test": NetworkConfig(rpc_url="http://127.0.0.1:9545"),
        },
        artifacts=ArtifactsConfig(build_dir=str(build_dir)),
        state=StateConfig(dir=str(state_dir)),
    )


@pytest.fixture
def mock_context(mock_config: SphereCtlConfig) -> SphereCtlContext:
    """Create a quiet spherectl context."""
    return SphereCtlContext(
        config=mock_config,
        network="test",
        output_format=OutputFormat.TABLE,
        verbose=0,
        quiet=True,
        dry_run=False,
        color=False,
    )


@pytest.fixture
def recording_backend() -> RecordingBackend:
    return RecordingBackend()


@pytest.fixture
def temp_config_file(tmp_path: Path, build_dir: Path, state_dir: Path) -> str:
    """Create a temporary config file."""
    config_content = f"""
version: "1"
global:
  output_format: table
  default_network: development
networks:
  development:
    rpc_url: http://127.0.0.1:8545
  test:
    rpc_url: http://127.0.0.1:9545
    from_address: "0x00000000000000000000000000000000000000aa"
artifacts:
  build_dir: {build_dir}
state:
  dir: {state_dir}
"""
    config_file = tmp_path / "config.yaml"
    config_file.write_text(config_content)
    return str(config_file)
