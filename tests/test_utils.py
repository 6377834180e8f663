"""
Minimal unit tests for the Web3 provider.

Tests only critical paths:
- Web3 connection validation
- Retry logic with exponential backoff
- Pending transactions without receipt
- Block height and token decimals lookups
- ABI loading
"""

import json
from unittest.mock import MagicMock, Mock, patch

import pytest
import requests.exceptions
from hexbytes import HexBytes
from web3.exceptions import TransactionNotFound, Web3Exception

from eth_txverify.config import NetworkConfig
from eth_txverify.core.utils import Web3ConnectionManager, load_abi

TX_HASH = "0x" + "ab" * 32
TOKEN = "0xa0b86991c6218b36c1d19d4a2e9eb0ce3606eb48"


@pytest.fixture
def mock_web3():
    """Create a mock Web3 instance for testing."""
    mock = MagicMock()
    mock.is_connected.return_value = True
    return mock


@pytest.fixture
def manager(mock_web3):
    """Create a connection manager backed by the mock Web3 instance."""
    with patch("eth_txverify.core.utils.Web3") as mock_web3_class:
        mock_web3_class.return_value = mock_web3
        yield Web3ConnectionManager(
            rpc_url="http://localhost:8545",
            max_retries=3,
            backoff_factor=0.01,  # Fast backoff for testing
        )


# Core Connection Tests
class TestWeb3Connection:
    """Test core Web3 connection functionality."""

    def test_placeholder_url_rejected(self):
        """Test that placeholder RPC URL is rejected."""
        with pytest.raises(ValueError, match="Invalid RPC URL"):
            Web3ConnectionManager(rpc_url="PLACEHOLDER_RPC_URL")

    def test_empty_url_rejected(self):
        with pytest.raises(ValueError, match="Invalid RPC URL"):
            Web3ConnectionManager(rpc_url="")

    def test_connection_failure(self, mock_web3):
        """Test that an unreachable node is reported."""
        mock_web3.is_connected.return_value = False

        with patch("eth_txverify.core.utils.Web3") as mock_web3_class:
            mock_web3_class.return_value = mock_web3
            with pytest.raises(ValueError, match="Failed to connect"):
                Web3ConnectionManager(rpc_url="http://localhost:8545")

    def test_from_config(self, mock_web3):
        """Test that transport settings come from the network config."""
        config = NetworkConfig(
            rpc_url="http://localhost:8545", max_retries=5, backoff_factor=1.5
        )

        with patch("eth_txverify.core.utils.Web3") as mock_web3_class:
            mock_web3_class.return_value = mock_web3
            manager = Web3ConnectionManager.from_config(config)

        assert manager.rpc_url == "http://localhost:8545"
        assert manager.max_retries == 5
        assert manager.backoff_factor == 1.5
        assert manager.timeout == 30

    def test_retry_logic_succeeds_after_failures(self, manager):
        """Test that retry logic works after transient failures."""
        # Mock function that fails twice then succeeds
        mock_func = Mock(
            side_effect=[
                Web3Exception("Error 1"),
                requests.exceptions.ConnectionError("Error 2"),
                "success",
            ]
        )

        result = manager.retry_with_backoff(mock_func)
        assert result == "success"
        assert mock_func.call_count == 3

    def test_retry_logic_fails_after_max_retries(self, manager):
        """Test that retry logic raises exception after max retries."""
        mock_func = Mock(side_effect=Web3Exception("Persistent error"))

        with pytest.raises(Web3Exception, match="Persistent error"):
            manager.retry_with_backoff(mock_func)

        assert mock_func.call_count == 3

    def test_missing_transaction_not_retried(self, manager):
        """Test that TransactionNotFound is raised on the first attempt."""
        mock_func = Mock(side_effect=TransactionNotFound("not found"))

        with pytest.raises(TransactionNotFound):
            manager.retry_with_backoff(mock_func)

        assert mock_func.call_count == 1

    def test_other_errors_not_retried(self, manager):
        mock_func = Mock(side_effect=KeyError("bug"))

        with pytest.raises(KeyError):
            manager.retry_with_backoff(mock_func)

        assert mock_func.call_count == 1


class TestProviderLookups:
    """Test the provider methods used by the verifier."""

    def test_get_transaction_normalized(self, manager, mock_web3):
        """Test that HexBytes fields come back as hex strings."""
        mock_web3.eth.get_transaction.return_value = {
            "hash": HexBytes(TX_HASH),
            "input": HexBytes("0xa9059cbb"),
            "blockNumber": 100,
        }

        result = manager.get_transaction(TX_HASH)

        assert result == {"hash": TX_HASH, "input": "0xa9059cbb", "blockNumber": 100}
        mock_web3.eth.get_transaction.assert_called_once_with(TX_HASH)

    def test_get_transaction_not_found_propagates(self, manager, mock_web3):
        mock_web3.eth.get_transaction.side_effect = TransactionNotFound("not found")

        with pytest.raises(TransactionNotFound):
            manager.get_transaction(TX_HASH)

    def test_get_receipt(self, manager, mock_web3):
        mock_web3.eth.get_transaction_receipt.return_value = {
            "transactionHash": HexBytes(TX_HASH),
            "status": 1,
            "gasUsed": 21000,
        }

        result = manager.get_transaction_receipt(TX_HASH)

        assert result["transactionHash"] == TX_HASH
        assert result["status"] == 1

    def test_pending_receipt_is_none(self, manager, mock_web3):
        """Test that an unmined transaction has no receipt."""
        mock_web3.eth.get_transaction_receipt.side_effect = TransactionNotFound(
            "not mined"
        )

        assert manager.get_transaction_receipt(TX_HASH) is None
        assert mock_web3.eth.get_transaction_receipt.call_count == 1

    def test_get_block_number(self, manager, mock_web3):
        mock_web3.eth.block_number = 19_000_000

        assert manager.get_block_number() == 19_000_000

    def test_get_token_decimals(self, manager, mock_web3):
        """Test the decimals() call on the ERC-20 contract."""
        contract = mock_web3.eth.contract.return_value
        contract.functions.decimals.return_value.call.return_value = 6

        assert manager.get_token_decimals(TOKEN) == 6

        _, kwargs = mock_web3.eth.contract.call_args
        assert {entry["name"] for entry in kwargs["abi"]} >= {"decimals"}


# ABI Loading Tests
class TestABILoading:
    """Test ABI loading functionality."""

    def test_load_abi_success(self, tmp_path):
        """Test successful ABI loading."""
        abi_file = tmp_path / "test.json"
        abi_data = [{"type": "function", "name": "transfer"}]

        with open(abi_file, "w") as f:
            json.dump(abi_data, f)

        result = load_abi("test", abis_dir=tmp_path)
        assert result == abi_data

    def test_load_packaged_erc20_abi(self):
        """Test that the bundled ERC-20 ABI is found by default."""
        names = {entry["name"] for entry in load_abi("erc20.json")}
        assert {"decimals", "transfer"} <= names

    def test_load_abi_file_not_found(self, tmp_path):
        """Test that missing ABI raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError, match="ABI file not found"):
            load_abi("nonexistent", abis_dir=tmp_path)

    def test_load_abi_invalid_json(self, tmp_path):
        (tmp_path / "broken.json").write_text("{not json")

        with pytest.raises(json.JSONDecodeError):
            load_abi("broken", abis_dir=tmp_path)
