"""
Hex normalization for data returned by Ethereum nodes.

Web3.py hands back HexBytes and AttributeDict objects while raw JSON-RPC
hands back 0x-prefixed strings. The helpers here bring both to one shape
before a transaction body or receipt is validated:

- Byte fields become lowercase hex strings with 0x prefix
- Empty call data is always "0x"
- Nested structures (logs, access lists) are normalized recursively

Usage:
    from eth_txverify.core.normalization import (
        normalize_hex_string,
        normalize_web3_transaction,
    )

    input_hex = normalize_hex_string(tx["input"])
    body = normalize_web3_transaction(w3.eth.get_transaction(tx_hash))
"""

import logging
from collections.abc import Mapping
from typing import Any

from hexbytes import HexBytes

logger = logging.getLogger(__name__)


def normalize_hex_field(hex_string: str | HexBytes | bytes | None) -> bytes:
    """
    Normalize a hex field to bytes, handling various input formats.

    Handles:
    - Strings with 0x prefix: "0x1234..."
    - Strings without 0x prefix: "1234..."
    - HexBytes objects (from Web3.py)
    - Raw bytes objects
    - Empty values: "0x", "", None

    Args:
        hex_string: Hex data in any supported format

    Returns:
        Raw bytes representation of the hex data

    Raises:
        ValueError: If the input cannot be parsed as hex data

    Examples:
        >>> normalize_hex_field("0xa9059cbb")
        b'\\xa9\\x05\\x9c\\xbb'
        >>> normalize_hex_field(HexBytes("0xa9059cbb"))
        b'\\xa9\\x05\\x9c\\xbb'
    """
    if hex_string is None or hex_string == "" or hex_string == "0x":
        return b""

    # HexBytes is a bytes subclass
    if isinstance(hex_string, bytes):
        return bytes(hex_string)

    if isinstance(hex_string, str):
        has_prefix = hex_string[:2].lower() == "0x"
        hex_clean = hex_string[2:] if has_prefix else hex_string

        if not hex_clean:
            return b""

        try:
            return bytes.fromhex(hex_clean)
        except ValueError as e:
            raise ValueError(f"Invalid hex string: {hex_string}") from e

    raise ValueError(f"Unsupported hex field type: {type(hex_string)}")


def normalize_hex_string(
    hex_data: str | HexBytes | bytes | None, with_prefix: bool = True
) -> str:
    """
    Normalize hex data to a lowercase string.

    Args:
        hex_data: Hex data in any supported format
        with_prefix: If True, include '0x' prefix in output

    Returns:
        Hex string in consistent format ("0x" for empty data)

    Examples:
        >>> normalize_hex_string("A9059CBB")
        '0xa9059cbb'
        >>> normalize_hex_string(b"", with_prefix=True)
        '0x'
    """
    hex_str = normalize_hex_field(hex_data).hex()
    return f"0x{hex_str}" if with_prefix else hex_str


def _normalize_value(value: Any) -> Any:
    if isinstance(value, bytes):
        # HexBytes.hex() does not include the 0x prefix
        return "0x" + bytes(value).hex()
    if isinstance(value, Mapping):
        return normalize_web3_transaction(value)
    if isinstance(value, (list, tuple)):
        return [_normalize_value(item) for item in value]
    return value


def normalize_web3_transaction(tx_data: Mapping[str, Any]) -> dict[str, Any]:
    """
    Normalize a Web3 transaction or receipt into a plain dictionary.

    Converts all HexBytes fields to hex strings with 0x prefix and turns
    AttributeDict values into dicts. Integers and strings are kept as-is.

    Args:
        tx_data: Transaction or receipt data from Web3.py or raw JSON-RPC

    Returns:
        Plain dictionary with consistent hex string formatting
    """
    return {key: _normalize_value(value) for key, value in tx_data.items()}
