"""Deployment backend that delegates to an external deployment CLI."""

import asyncio
import contextlib
import re
import shlex
from typing import Any

from jinja2 import Environment, BaseLoader, StrictUndefined, TemplateError

from spherectl.artifacts import ArtifactStore
from spherectl.config import NetworkConfig
from spherectl.core.exceptions import ConfigError, DeploymentFailure
from spherectl.core.logging import StructuredLogger
from spherectl.deploy.backends.base import DeploymentBackend
from spherectl.deploy.models import DeployedContract, DeploymentRequest

logger = StructuredLogger(__name__)

TX_HASH_PATTERN = re.compile(r"(?:Transaction hash|transaction hash|tx)\s*:?\s*(0x[0-9a-fA-F]{64})")


def _quote(value: Any) -> str:
    text = "" if value is None else str(value)
    return shlex.quote(text) if text else ""


class CommandBackend(DeploymentBackend):
    """Run a templated shell command per artifact and scrape the address.

    The command is a Jinja2 template rendered with ``artifact``,
    ``artifact_path``, ``network``, ``rpc_url`` and ``from_address``, e.g.::

        forge create src/{{ artifact }}.sol:{{ artifact }} --rpc-url {{ rpc_url }}

    Every substituted value is shell-quoted before the command is split, so
    each one stays a single argument whatever it contains. Do not quote
    variables in the template itself.
    """

    def __init__(self, config: NetworkConfig, artifacts: ArtifactStore):
        if not config.command:
            raise ConfigError("Command backend requires 'command' in the network config")
        self._config = config
        self._artifacts = artifacts
        self._jinja_env = Environment(
            loader=BaseLoader(),
            undefined=StrictUndefined,
            finalize=_quote,
        )
        self._address_re = re.compile(config.address_pattern)

    @property
    def name(self) -> str:
        return "command"

    def render_command(self, request: DeploymentRequest) -> list[str]:
        """Render the command template for a request into argv."""
        name = request.artifact.name
        variables: dict[str, Any] = {
            "artifact": name,
            "artifact_path": str(self._artifacts.path_for(name)),
            "network": request.network,
            "rpc_url": self._config.get_rpc_url(),
            "from_address": self._config.get_from_address() or "",
        }
        try:
            rendered = self._jinja_env.from_string(self._config.command or "").render(**variables)
            cmd_parts = shlex.split(rendered)
        except (TemplateError, ValueError) as e:
            raise DeploymentFailure(
                f"Invalid deploy command template: {e}",
                artifact=name,
                network=request.network,
                step=request.step,
            ) from e
        if not cmd_parts:
            raise DeploymentFailure(
                "Deploy command template rendered to an empty command",
                artifact=name,
                network=request.network,
                step=request.step,
            )
        return cmd_parts

    def parse_output(self, stdout: str) -> tuple[str | None, str | None]:
        """Extract (address, transaction hash) from command output."""
        address_match = self._address_re.search(stdout)
        tx_match = TX_HASH_PATTERN.search(stdout)
        return (
            address_match.group(1) if address_match else None,
            tx_match.group(1) if tx_match else None,
        )

    async def deploy(self, request: DeploymentRequest) -> DeployedContract:
        name = request.artifact.name
        log = logger.bind(network=request.network, step=request.step, artifact=name)
        cmd_parts = self.render_command(request)

        def failure(message: str, **details: Any) -> DeploymentFailure:
            return DeploymentFailure(
                f"Deployment of {name} failed: {message}",
                artifact=name,
                network=request.network,
                step=request.step,
                details=details or None,
            )

        log.debug("Running deploy command", cmd=shlex.join(cmd_parts))

        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd_parts,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError:
            raise failure(f"command not found: {cmd_parts[0]}")
        except OSError as e:
            raise failure(str(e))

        try:
            stdout_b, stderr_b = await asyncio.wait_for(
                proc.communicate(), timeout=self._config.timeout
            )
        except asyncio.TimeoutError:
            with contextlib.suppress(ProcessLookupError):
                proc.kill()
            await proc.wait()
            raise failure(f"command timed out after {self._config.timeout}s")

        stdout = stdout_b.decode(errors="replace")
        stderr = stderr_b.decode(errors="replace")

        if proc.returncode != 0:
            raise failure(
                f"command exited with status {proc.returncode}",
                stderr=stderr.strip()[-500:],
            )

        address, tx_hash = self.parse_output(stdout)
        if not address:
            raise failure("no contract address found in command output")

        log.info("Contract deployed", address=address)

        return DeployedContract(
            artifact=name,
            network=request.network,
            address=address,
            transaction_hash=tx_hash,
        )
