"""
Network configuration for transaction verification.

Holds the RPC endpoint, explorer URL and native coin settings of one
network. A configuration object is passed explicitly to the provider and
verifier instead of living in process-wide state.

Usage:
    from eth_txverify.config import NetworkConfig

    config = NetworkConfig.from_yaml("configs/network_config.yaml")
    print(config.coin_decimals)  # 18
"""

import logging
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)


@dataclass
class NetworkConfig:
    """Settings of a single EVM network."""

    name: str = "ethereum"
    rpc_url: str = "PLACEHOLDER_RPC_URL"
    explorer_url: str | None = "https://etherscan.io"
    chain_id: int | None = 1

    # Native coin
    coin_symbol: str = "ETH"
    coin_decimals: int = 18

    # Transport
    request_timeout: int = 30
    max_retries: int = 3
    backoff_factor: float = 2.0

    # Status polling
    poll_interval: float = 2.0
    wait_timeout: float = 120.0

    def __post_init__(self):
        """Validate configuration values."""
        if self.coin_decimals < 0:
            raise ValueError(
                f"coin_decimals must be non-negative, got {self.coin_decimals}"
            )
        if self.request_timeout <= 0:
            raise ValueError(
                f"request_timeout must be positive, got {self.request_timeout}"
            )
        if self.max_retries <= 0:
            raise ValueError(f"max_retries must be positive, got {self.max_retries}")
        if self.backoff_factor < 0:
            raise ValueError(
                f"backoff_factor must be non-negative, got {self.backoff_factor}"
            )
        if self.poll_interval <= 0:
            raise ValueError(f"poll_interval must be positive, got {self.poll_interval}")
        if self.wait_timeout <= 0:
            raise ValueError(f"wait_timeout must be positive, got {self.wait_timeout}")

    @classmethod
    def from_yaml(cls, yaml_path: str | Path) -> "NetworkConfig":
        """
        Load configuration from YAML file.

        The file may hold the settings at top level or under a ``network`` key.

        Args:
            yaml_path: Path to YAML configuration file

        Returns:
            NetworkConfig instance with loaded values

        Raises:
            FileNotFoundError: If YAML file doesn't exist
            ValueError: If YAML structure is invalid
            yaml.YAMLError: If YAML parsing fails
        """
        yaml_path = Path(yaml_path)

        if not yaml_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {yaml_path}")

        logger.info(f"Loading network configuration from {yaml_path}")

        with open(yaml_path, "r") as f:
            config_dict = yaml.safe_load(f)

        if not config_dict or not isinstance(config_dict, dict):
            raise ValueError(f"Empty or invalid YAML file: {yaml_path}")

        try:
            config = cls.from_dict(config_dict)
        except TypeError as e:
            raise ValueError(
                f"Invalid configuration structure in {yaml_path}: {e}"
            ) from e

        logger.debug(f"Network: {config.name} (chain id {config.chain_id})")
        return config

    @classmethod
    def from_dict(cls, config_dict: dict[str, Any]) -> "NetworkConfig":
        """
        Create configuration from dictionary.

        Args:
            config_dict: Dictionary with configuration values

        Returns:
            NetworkConfig instance
        """
        return cls(**config_dict.get("network", config_dict))

    def to_dict(self) -> dict[str, Any]:
        """Convert configuration to dictionary."""
        return asdict(self)

    def save_yaml(self, yaml_path: str | Path) -> None:
        """
        Save configuration to YAML file.

        Args:
            yaml_path: Path to save YAML file
        """
        yaml_path = Path(yaml_path)
        yaml_path.parent.mkdir(parents=True, exist_ok=True)

        with open(yaml_path, "w") as f:
            yaml.dump(
                {"network": self.to_dict()}, f, default_flow_style=False, sort_keys=False
            )

        logger.info(f"Configuration saved to {yaml_path}")
