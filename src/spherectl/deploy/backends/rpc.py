"""Ethereum JSON-RPC deployment backend using httpx."""

import asyncio
import itertools
from typing import Any

import httpx

from spherectl.artifacts import ArtifactStore, ContractArtifact
from spherectl.config import NetworkConfig
from spherectl.core.async_utils import run_with_timeout
from spherectl.core.exceptions import (
    ArtifactError,
    BackendError,
    DeploymentFailure,
    TimeoutError,
)
from spherectl.core.logging import StructuredLogger
from spherectl.deploy.backends.base import DeploymentBackend
from spherectl.deploy.models import DeployedContract, DeploymentRequest

logger = StructuredLogger(__name__)


class RPCBackend(DeploymentBackend):
    """Deploy contracts by sending creation transactions to a node.

    The sender account must be unlocked on the node (a local development
    chain, or a node fronting a signer), since transactions are submitted
    with ``eth_sendTransaction``.
    """

    def __init__(
        self,
        config: NetworkConfig,
        artifacts: ArtifactStore,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._config = config
        self._artifacts = artifacts
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self._sender: str | None = None
        self._ids = itertools.count(1)

    @property
    def name(self) -> str:
        return "rpc"

    @property
    def client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                headers={"Content-Type": "application/json"},
                timeout=self._config.timeout,
                transport=self._transport,
            )
            logger.debug("Created RPC client", url=self._config.get_rpc_url())
        return self._client

    async def call(self, method: str, params: list[Any] | None = None) -> Any:
        """Make a JSON-RPC call.

        Args:
            method: RPC method name
            params: Positional parameters

        Returns:
            The ``result`` member of the response
        """
        payload = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
            "params": params or [],
        }

        try:
            response = await self.client.post(self._config.get_rpc_url(), json=payload)
            response.raise_for_status()
            data = response.json()

        except httpx.HTTPStatusError as e:
            raise BackendError(
                f"{method} failed: HTTP {e.response.status_code}",
                status_code=e.response.status_code,
            )
        except httpx.RequestError as e:
            raise BackendError(f"{method} request failed: {e}")
        except ValueError as e:
            raise BackendError(f"{method} returned invalid JSON: {e}")

        if not isinstance(data, dict):
            raise BackendError(f"{method} returned an unexpected response")

        error = data.get("error")
        if error:
            if isinstance(error, dict):
                raise BackendError(
                    f"{method} error: {error.get('message', 'unknown error')}",
                    rpc_code=error.get("code"),
                    details={"data": error["data"]} if error.get("data") else None,
                )
            raise BackendError(f"{method} error: {error}")

        return data.get("result")

    async def get_sender(self) -> str:
        """Get the sending account, falling back to the node's first account."""
        if self._sender is None:
            sender = self._config.get_from_address()
            if not sender:
                accounts = await self.call("eth_accounts")
                if not accounts:
                    raise BackendError("No from_address configured and node reports no accounts")
                sender = accounts[0]
            self._sender = sender
        return self._sender

    def _resolve(self, artifact: ContractArtifact) -> ContractArtifact:
        if artifact.is_loaded:
            return artifact
        return self._artifacts.load(artifact.name)

    def _build_transaction(self, sender: str, artifact: ContractArtifact) -> dict[str, Any]:
        tx: dict[str, Any] = {"from": sender, "data": artifact.bytecode}
        if self._config.gas is not None:
            tx["gas"] = hex(self._config.gas)
        if self._config.gas_price is not None:
            tx["gasPrice"] = hex(self._config.gas_price)
        return tx

    async def _wait_for_receipt(self, tx_hash: str) -> dict[str, Any]:
        while True:
            receipt = await self.call("eth_getTransactionReceipt", [tx_hash])
            if receipt:
                return receipt
            await asyncio.sleep(self._config.poll_interval)

    async def deploy(self, request: DeploymentRequest) -> DeployedContract:
        name = request.artifact.name
        log = logger.bind(network=request.network, step=request.step, artifact=name)

        try:
            artifact = self._resolve(request.artifact)
            sender = await self.get_sender()

            tx_hash = await self.call(
                "eth_sendTransaction", [self._build_transaction(sender, artifact)]
            )
            if not tx_hash:
                raise BackendError("eth_sendTransaction returned no transaction hash")
            log.info("Submitted creation transaction", tx=tx_hash)

            receipt = await run_with_timeout(
                self._wait_for_receipt(tx_hash),
                self._config.receipt_timeout,
                f"No receipt for {tx_hash} after {self._config.receipt_timeout}s",
            )

        except (ArtifactError, BackendError, TimeoutError) as e:
            raise DeploymentFailure(
                f"Deployment of {name} failed: {e.message}",
                artifact=name,
                network=request.network,
                step=request.step,
            ) from e

        status = receipt.get("status")
        if status is not None and int(status, 16) == 0:
            raise DeploymentFailure(
                f"Deployment of {name} failed: transaction {tx_hash} reverted",
                artifact=name,
                network=request.network,
                step=request.step,
                details={"transaction_hash": tx_hash},
            )

        address = receipt.get("contractAddress")
        if not address:
            raise DeploymentFailure(
                f"Deployment of {name} failed: receipt has no contract address",
                artifact=name,
                network=request.network,
                step=request.step,
                details={"transaction_hash": tx_hash},
            )

        block = receipt.get("blockNumber")
        log.info("Contract deployed", address=address)

        return DeployedContract(
            artifact=name,
            network=request.network,
            address=address,
            transaction_hash=tx_hash,
            block_number=int(block, 16) if block else None,
        )

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
