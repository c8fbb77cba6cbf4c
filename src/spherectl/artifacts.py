"""Compiled contract artifacts."""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from spherectl.core.exceptions import ArtifactError
from spherectl.core.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class ContractArtifact:
    """Handle for a compiled contract.

    Identity is the contract name; the ABI and bytecode are only present
    once the artifact has been loaded from the build directory.
    """

    name: str
    bytecode: str | None = field(default=None, compare=False, repr=False)
    abi: tuple[dict[str, Any], ...] = field(default=(), compare=False, repr=False)
    source_path: str | None = field(default=None, compare=False)

    @property
    def is_loaded(self) -> bool:
        return self.bytecode is not None

    def __str__(self) -> str:
        return self.name


class ArtifactStore:
    """Resolve contract names to compiled JSON artifacts.

    Follows the Truffle build layout: one ``<ContractName>.json`` per
    contract, carrying ``contractName``, ``abi`` and ``bytecode``.
    """

    def __init__(self, build_dir: str | Path):
        self._build_dir = Path(build_dir)

    @property
    def build_dir(self) -> Path:
        return self._build_dir

    def path_for(self, name: str) -> Path:
        """Get the expected artifact path for a contract name."""
        return self._build_dir / f"{name}.json"

    def exists(self, name: str) -> bool:
        """Check if the artifact file is present."""
        return self.path_for(name).is_file()

    def load(self, name: str) -> ContractArtifact:
        """Load a compiled artifact.

        Args:
            name: Contract name

        Returns:
            Loaded ContractArtifact

        Raises:
            ArtifactError: If the file is missing, unreadable or has no bytecode
        """
        path = self.path_for(name)

        if not path.is_file():
            raise ArtifactError(f"Artifact not found: {path}", artifact=name)

        try:
            with open(path) as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ArtifactError(f"Invalid JSON in {path}: {e}", artifact=name)
        except OSError as e:
            raise ArtifactError(f"Cannot read {path}: {e}", artifact=name)

        if not isinstance(data, dict):
            raise ArtifactError(f"Artifact {path} must be a JSON object", artifact=name)

        contract_name = data.get("contractName", name)
        if contract_name != name:
            raise ArtifactError(
                f"Artifact {path} describes '{contract_name}', expected '{name}'",
                artifact=name,
            )

        bytecode = normalize_bytecode(data.get("bytecode"))
        if bytecode is None:
            raise ArtifactError(f"Artifact {name} has no creation bytecode", artifact=name)

        logger.debug(f"Loaded artifact {name} from {path}")

        return ContractArtifact(
            name=name,
            bytecode=bytecode,
            abi=tuple(data.get("abi") or ()),
            source_path=str(path),
        )

    def list(self) -> list[str]:
        """List contract names available in the build directory."""
        if not self._build_dir.is_dir():
            return []
        return sorted(p.stem for p in self._build_dir.glob("*.json"))


def normalize_bytecode(value: Any) -> str | None:
    """Return bytecode with a 0x prefix, or None if absent or empty."""
    # solc-style artifacts nest it as {"object": "..."}
    if isinstance(value, dict):
        value = value.get("object")
    if not isinstance(value, str):
        return None

    value = value.strip()
    if value.startswith(("0x", "0X")):
        value = value[2:]
    if not value:
        return None
    return f"0x{value}"
