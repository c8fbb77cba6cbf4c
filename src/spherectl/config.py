"""Configuration management for spherectl using Pydantic."""

import re
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from spherectl.core.exceptions import ConfigError
from spherectl.core.output import OutputFormat
from spherectl.core.logging import LogLevel

ETHERSPHERE_CONTRACTS: tuple[str, ...] = (
    "EthersphereAccessControl",
    "EthersphereBase",
    "EthersphereCube",
    "EthersphereFinance",
    "EthersphereMinting",
)

DEFAULT_ADDRESS_PATTERN = r"(?:Deployed to|contract address)\s*:?\s*(0x[0-9a-fA-F]{40})"


class EnvSettings(BaseSettings):
    """Environment overrides, read from SPHERECTL_* variables."""

    model_config = SettingsConfigDict(env_prefix="SPHERECTL_", extra="ignore")

    network: str | None = None
    rpc_url: str | None = None
    from_address: str | None = None
    state_dir: str | None = None


class NetworkConfig(BaseModel):
    """Target network and the backend used to deploy to it."""

    backend: Literal["rpc", "command"] = "rpc"

    # rpc backend
    rpc_url: str = "http://127.0.0.1:8545"
    from_address: str | None = None
    gas: int | None = 6_000_000
    gas_price: int | None = None
    receipt_timeout: float = 120.0
    poll_interval: float = 1.0

    # command backend
    command: str | None = None
    address_pattern: str = DEFAULT_ADDRESS_PATTERN

    timeout: float = 300.0
    confirm: bool = False

    @field_validator("address_pattern")
    @classmethod
    def validate_address_pattern(cls, v: str) -> str:
        try:
            compiled = re.compile(v)
        except re.error as e:
            raise ValueError(f"invalid address_pattern: {e}")
        if compiled.groups < 1:
            raise ValueError("address_pattern must contain a capture group for the address")
        return v

    def get_rpc_url(self) -> str:
        """Get RPC URL from environment or config."""
        return EnvSettings().rpc_url or self.rpc_url

    def get_from_address(self) -> str | None:
        """Get sender account from environment or config."""
        return EnvSettings().from_address or self.from_address


class ArtifactsConfig(BaseModel):
    """Compiled contract artifact location."""

    build_dir: str = "build/contracts"


class MigrationConfig(BaseModel):
    """The ordered list of contracts to deploy."""

    contracts: list[str] = Field(default_factory=lambda: list(ETHERSPHERE_CONTRACTS))


class StateConfig(BaseModel):
    """Run record persistence."""

    enabled: bool = True
    dir: str = ".spherectl/runs"

    def get_dir(self) -> str:
        """Get state directory from environment or config."""
        return EnvSettings().state_dir or self.dir


class GlobalConfig(BaseModel):
    """Global settings."""

    output_format: OutputFormat = OutputFormat.TABLE
    color: str = "auto"  # auto, always, never
    verbosity: LogLevel = LogLevel.WARNING
    dry_run: bool = False
    default_network: str = "development"

    @field_validator("color")
    @classmethod
    def validate_color(cls, v: str) -> str:
        if v not in ("auto", "always", "never"):
            raise ValueError("color must be 'auto', 'always', or 'never'")
        return v


class SphereCtlConfig(BaseModel):
    """Main configuration model."""

    model_config = {"populate_by_name": True}

    version: str = "1"
    global_settings: GlobalConfig = Field(default_factory=GlobalConfig, alias="global")
    networks: dict[str, NetworkConfig] = Field(
        default_factory=lambda: {"development": NetworkConfig()}
    )
    artifacts: ArtifactsConfig = Field(default_factory=ArtifactsConfig)
    migration: MigrationConfig = Field(default_factory=MigrationConfig)
    state: StateConfig = Field(default_factory=StateConfig)

    def get_network(self, name: str | None = None) -> NetworkConfig:
        """Get a network by name, defaulting to the configured default."""
        network_name = name or self.global_settings.default_network
        if network_name not in self.networks:
            raise ConfigError(
                f"Network '{network_name}' not found",
                details={"available": sorted(self.networks)},
            )
        return self.networks[network_name]


class ConfigLoader:
    """Loads and merges configuration from multiple sources."""

    CONFIG_FILENAMES = ["spherectl.yaml", "spherectl.yml", ".spherectl.yaml", ".spherectl.yml"]

    def __init__(self):
        self._config: SphereCtlConfig | None = None

    def load(self, config_file: str | Path | None = None) -> SphereCtlConfig:
        """Load configuration from files.

        Priority (highest to lowest):
        1. Explicitly specified config file
        2. Project config (./spherectl.yaml)
        3. User config (~/.spherectl/config.yaml)

        Args:
            config_file: Optional explicit config file path

        Returns:
            Merged configuration
        """
        configs: list[dict[str, Any]] = []

        user_config_path = Path.home() / ".spherectl" / "config.yaml"
        if user_config_path.exists():
            configs.append(self._load_yaml_file(user_config_path))

        project_config = self._find_project_config()
        if project_config:
            configs.append(self._load_yaml_file(project_config))

        if config_file:
            config_path = Path(config_file)
            if not config_path.exists():
                raise ConfigError(f"Config file not found: {config_file}")
            configs.append(self._load_yaml_file(config_path))

        merged = self._merge_configs(configs)

        try:
            self._config = SphereCtlConfig(**merged)
        except ValueError as e:
            raise ConfigError(f"Invalid configuration: {e}")
        return self._config

    def _find_project_config(self) -> Path | None:
        """Find project config file in current or parent directories."""
        current = Path.cwd()

        while current != current.parent:
            for filename in self.CONFIG_FILENAMES:
                config_path = current / filename
                if config_path.exists():
                    return config_path
            current = current.parent

        return None

    def _load_yaml_file(self, path: Path) -> dict[str, Any]:
        """Load a YAML config file."""
        try:
            with open(path) as f:
                content = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {path}: {e}")
        except OSError as e:
            raise ConfigError(f"Cannot read {path}: {e}")

        if not isinstance(content, dict):
            raise ConfigError(f"Config file {path} must contain a mapping")
        return content

    def _merge_configs(self, configs: list[dict[str, Any]]) -> dict[str, Any]:
        """Deep merge multiple configuration dictionaries."""
        result: dict[str, Any] = {}
        for config in configs:
            result = self._deep_merge(result, config)
        return result

    def _deep_merge(
        self,
        base: dict[str, Any],
        override: dict[str, Any],
    ) -> dict[str, Any]:
        """Deep merge two dictionaries."""
        result = base.copy()
        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value
        return result


# Global config loader instance
_config_loader = ConfigLoader()


def load_config(config_file: str | Path | None = None) -> SphereCtlConfig:
    """Load spherectl configuration.

    Args:
        config_file: Optional explicit config file path

    Returns:
        Loaded configuration
    """
    return _config_loader.load(config_file)


def get_default_config() -> SphereCtlConfig:
    """Get default configuration without loading from files."""
    return SphereCtlConfig()
