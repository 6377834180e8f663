"""
Provider interface and Web3 connection utilities.

This module provides:
- The TransactionProvider protocol the verifier depends on
- Web3 connection management with retry logic
- ABI loading from JSON files
- Logging setup for scripts
"""

import json
import logging
import time
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable, Protocol, TypeVar

import requests.exceptions
from web3 import Web3
from web3.exceptions import TransactionNotFound, Web3Exception

from .normalization import normalize_web3_transaction

if TYPE_CHECKING:
    from ..config import NetworkConfig

# Configure module logger
logger = logging.getLogger(__name__)

# Type variable for generic retry helper
T = TypeVar("T")


class TransactionProvider(Protocol):
    """
    Source of chain data consumed by the verifier.

    get_transaction_receipt returns None while the transaction is not mined.
    Any error raised by an implementation reaches the caller unchanged.
    """

    def get_transaction(self, tx_hash: str) -> dict[str, Any] | None: ...

    def get_transaction_receipt(self, tx_hash: str) -> dict[str, Any] | None: ...

    def get_block_number(self) -> int: ...

    def get_token_decimals(self, token_address: str) -> int: ...


class Web3ConnectionManager:
    """
    Manages Web3 connection with automatic retry logic and error handling.

    Implements exponential backoff for transient RPC failures and provides
    the TransactionProvider interface on top of a Web3 HTTP provider.
    """

    def __init__(
        self,
        rpc_url: str,
        timeout: int = 30,
        max_retries: int = 3,
        backoff_factor: float = 2.0,
    ):
        """
        Initialize Web3 connection manager.

        Args:
            rpc_url: Ethereum RPC endpoint URL (e.g., Infura, Alchemy)
            timeout: Request timeout in seconds
            max_retries: Maximum number of attempts for failed requests
            backoff_factor: Exponential backoff multiplier (delay = backoff_factor^attempt)

        Raises:
            ValueError: If RPC URL is invalid or connection cannot be established
        """
        if not rpc_url or rpc_url == "PLACEHOLDER_RPC_URL":
            raise ValueError(
                "Invalid RPC URL. Please configure a valid Ethereum RPC endpoint "
                "in configs/network_config.yaml or pass via --rpc-url"
            )

        self.rpc_url = rpc_url
        self.timeout = timeout
        self.max_retries = max_retries
        self.backoff_factor = backoff_factor

        self.w3 = Web3(Web3.HTTPProvider(rpc_url, request_kwargs={"timeout": timeout}))

        if not self.w3.is_connected():
            raise ValueError(f"Failed to connect to Ethereum node at {rpc_url}")

        logger.info(f"Connected to Ethereum node at {rpc_url}")

    @classmethod
    def from_config(cls, config: "NetworkConfig") -> "Web3ConnectionManager":
        """Create a connection manager from a network configuration."""
        return cls(
            rpc_url=config.rpc_url,
            timeout=config.request_timeout,
            max_retries=config.max_retries,
            backoff_factor=config.backoff_factor,
        )

    def retry_with_backoff(
        self, func: Callable[..., T], *args: Any, **kwargs: Any
    ) -> T:
        """
        Execute function with exponential backoff retry logic.

        Retries the function on transient errors (network issues, rate limits)
        with exponentially increasing delays between attempts. A missing
        transaction is not transient and is raised immediately.

        Args:
            func: Function to execute
            *args: Positional arguments for the function
            **kwargs: Keyword arguments for the function

        Returns:
            Result from successful function execution

        Raises:
            Exception: Re-raises the last exception if all retries fail
        """
        last_exception = None

        for attempt in range(self.max_retries):
            try:
                return func(*args, **kwargs)

            except TransactionNotFound:
                raise

            except (
                requests.exceptions.RequestException,
                Web3Exception,
            ) as e:
                last_exception = e

                if attempt < self.max_retries - 1:
                    delay = self.backoff_factor**attempt
                    logger.warning(
                        f"Request failed (attempt {attempt + 1}/{self.max_retries}): {e}. "
                        f"Retrying in {delay:.2f} seconds..."
                    )
                    time.sleep(delay)
                else:
                    logger.error(
                        f"Request failed after {self.max_retries} attempts: {e}"
                    )

        # All retries exhausted - raise the last exception encountered
        if last_exception:
            raise last_exception
        raise RuntimeError("Function failed but no exception was captured")

    def get_transaction(self, tx_hash: str) -> dict[str, Any] | None:
        """
        Fetch transaction body with automatic retry.

        Args:
            tx_hash: Transaction hash with 0x prefix

        Returns:
            Normalized transaction dictionary (camelCase JSON-RPC keys)

        Raises:
            TransactionNotFound: If the node does not know the transaction
            Exception: If transaction cannot be fetched after all retries
        """
        logger.debug(f"Fetching transaction: {tx_hash}")

        tx = self.retry_with_backoff(self.w3.eth.get_transaction, tx_hash)
        return normalize_web3_transaction(tx) if tx is not None else None

    def get_transaction_receipt(self, tx_hash: str) -> dict[str, Any] | None:
        """
        Fetch transaction receipt with automatic retry.

        Args:
            tx_hash: Transaction hash with 0x prefix

        Returns:
            Normalized receipt dictionary, or None if not mined yet

        Raises:
            Exception: If receipt cannot be fetched after all retries
        """
        logger.debug(f"Fetching transaction receipt: {tx_hash}")

        try:
            receipt = self.retry_with_backoff(
                self.w3.eth.get_transaction_receipt, tx_hash
            )
        except TransactionNotFound:
            logger.debug(f"No receipt yet for {tx_hash}")
            return None

        return normalize_web3_transaction(receipt) if receipt is not None else None

    def get_block_number(self) -> int:
        """Fetch the current block height with automatic retry."""
        return self.retry_with_backoff(lambda: self.w3.eth.block_number)

    def get_token_decimals(self, token_address: str) -> int:
        """
        Fetch decimals() of an ERC-20 token contract.

        Args:
            token_address: Token contract address

        Returns:
            Number of decimals reported by the contract

        Raises:
            Exception: If the contract call fails after all retries
        """
        contract = self.w3.eth.contract(
            address=Web3.to_checksum_address(token_address), abi=load_abi("erc20")
        )
        decimals = self.retry_with_backoff(contract.functions.decimals().call)

        logger.debug(f"Token {token_address} has {decimals} decimals")
        return int(decimals)


def load_abi(abi_name: str, abis_dir: Path | None = None) -> list[dict[str, Any]]:
    """
    Load ABI from JSON file.

    ABIs are stored in the package's abis/ directory by default.

    Args:
        abi_name: Name of ABI file (with or without .json extension)
        abis_dir: Optional custom directory path. Defaults to eth_txverify/abis/

    Returns:
        ABI as list of dictionaries

    Raises:
        FileNotFoundError: If ABI file does not exist
        json.JSONDecodeError: If ABI file is not valid JSON

    Example:
        >>> erc20_abi = load_abi('erc20')
        >>> contract = w3.eth.contract(address=token_address, abi=erc20_abi)
    """
    if abis_dir is None:
        abis_dir = Path(__file__).parent.parent / "abis"

    if not abi_name.endswith(".json"):
        abi_name += ".json"

    abi_path = abis_dir / abi_name

    if not abi_path.exists():
        raise FileNotFoundError(
            f"ABI file not found: {abi_path}. "
            f"Please ensure the ABI is saved in {abis_dir}"
        )

    try:
        with open(abi_path, "r") as f:
            abi = json.load(f)

        logger.debug(f"Loaded ABI from {abi_path}")
        return abi

    except json.JSONDecodeError as e:
        logger.error(f"Invalid JSON in ABI file {abi_path}: {e}")
        raise


def setup_logging(level: str = "INFO", log_format: str | None = None) -> None:
    """
    Configure logging for scripts.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Custom log format string. Uses default if None.
    """
    if log_format is None:
        log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format=log_format,
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    # Reduce noise from web3 and urllib3 loggers
    logging.getLogger("web3").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)
