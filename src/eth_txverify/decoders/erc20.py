"""
Decode ERC-20 transfer call data.

Extracts the receiver and amount from the input of a transaction calling
``transfer(address,uint256)`` on a token contract.

The decoder is a pattern match, not an ABI decoder: everything before the
first run of 24 zero digits is taken as the method selector, the next
32-byte word as the left-padded receiver and the remainder as the amount.
Any other call shape (or a selector ending in a zero digit) is misparsed.

Usage:
    from eth_txverify.decoders.erc20 import decode_transfer_input

    decoded = decode_transfer_input(transaction["input"])
    if decoded:
        print(decoded.receiver, decoded.amount)
"""

import logging
import re
from dataclasses import dataclass

from hexbytes import HexBytes

from ..core.normalization import normalize_hex_string
from ..exceptions import InvalidTransactionDataError

logger = logging.getLogger(__name__)

# transfer(address,uint256)
TRANSFER_METHOD_ID = "0xa9059cbb"

# Shortest prefix followed by the 12 zero bytes padding a 20-byte address
_METHOD_PREFIX = re.compile(r".+?(?=0{24})")

WORD_HEX_LENGTH = 64
ADDRESS_HEX_LENGTH = 40


@dataclass(frozen=True)
class DecodedInput:
    """Receiver and amount carried by a token transfer call."""

    receiver: str
    amount: str


def decode_transfer_input(input_data: str | HexBytes | bytes) -> DecodedInput | None:
    """
    Decode the receiver and amount of a transfer(address,uint256) call.

    Args:
        input_data: Transaction input as hex string, HexBytes or bytes

    Returns:
        DecodedInput with lowercase receiver and canonical hex amount,
        or None when there is no call data (plain coin transfer)

    Raises:
        InvalidTransactionDataError: If the input does not hold an
            address-shaped argument

    Examples:
        >>> decode_transfer_input("0x")
        >>> decode_transfer_input(
        ...     "0xa9059cbb"
        ...     "000000000000000000000000" + "ab" * 20
        ...     + "0" * 62 + "64"
        ... ).amount
        '0x64'
    """
    try:
        input_hex = normalize_hex_string(input_data, with_prefix=True)
    except ValueError as e:
        raise InvalidTransactionDataError(str(e)) from e

    if input_hex == "0x":
        return None

    match = _METHOD_PREFIX.search(input_hex)
    if match is None:
        raise InvalidTransactionDataError(
            f"Input is not a transfer(address,uint256) call: {input_hex[:18]}..."
        )

    arguments = input_hex[match.end() :]
    if len(arguments) < WORD_HEX_LENGTH:
        raise InvalidTransactionDataError(
            f"Input is too short for a transfer call: {len(arguments)} hex digits "
            f"after selector {match.group(0)}"
        )

    receiver = "0x" + arguments[:WORD_HEX_LENGTH][-ADDRESS_HEX_LENGTH:]
    amount = "0x" + (arguments[WORD_HEX_LENGTH:].lstrip("0") or "0")

    if match.group(0) != TRANSFER_METHOD_ID:
        logger.debug(
            f"Decoding call data with selector {match.group(0)} as a transfer"
        )

    return DecodedInput(receiver=receiver, amount=amount)
