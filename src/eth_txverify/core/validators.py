"""
Format validators for addresses and transaction hashes.

Addresses pass in lowercase, uppercase or EIP-55 checksummed form. Mixed
case is taken as a checksum and must verify with Web3.is_checksum_address.
"""

import re
from decimal import Decimal

from web3 import Web3

from ..exceptions import InvalidAddressError, NumericFormatError

TRANSACTION_HASH_PATTERN = re.compile(r"0x[0-9a-fA-F]{64}")


def is_valid_address(address: object) -> bool:
    """Return True if address is a well-formed 20-byte hex address."""
    if not isinstance(address, str) or not address.startswith("0x"):
        return False
    if not Web3.is_address(address):
        return False

    digits = address[2:]
    if digits.lower() != digits and digits.upper() != digits:
        return Web3.is_checksum_address(address)
    return True


def is_valid_transaction_hash(tx_hash: object) -> bool:
    """Return True if tx_hash is 0x followed by 64 hex digits."""
    return isinstance(tx_hash, str) and bool(
        TRANSACTION_HASH_PATTERN.fullmatch(tx_hash)
    )


def require_address(address: object, role: str = "address") -> str:
    """
    Validate an address and return it lower-cased.

    Args:
        address: Address to validate
        role: Name used in the error message ("receiver", "token", ...)

    Raises:
        InvalidAddressError: If the address is malformed
    """
    if not is_valid_address(address):
        raise InvalidAddressError(f"Invalid {role} address: {address!r}")
    return address.lower()


def validate_transfer_params(
    sender: str,
    receiver: str,
    amount: Decimal | int | float | str,
    token_address: str | None = None,
) -> None:
    """
    Validate the parameters of a transfer before it is built or checked.

    Args:
        sender: Sender address
        receiver: Receiver address
        amount: Positive amount in decimal units
        token_address: Token contract address, None for native coin

    Raises:
        NumericFormatError: If amount is not a positive number
        InvalidAddressError: If any address is malformed
    """
    try:
        positive = Decimal(str(amount)) > 0
    except ArithmeticError as e:
        raise NumericFormatError(f"not a supported numeric form: {amount!r}") from e

    if not positive:
        raise NumericFormatError("The amount cannot be zero or less than zero")

    require_address(sender, "sender")
    require_address(receiver, "receiver")

    if token_address is not None:
        require_address(token_address, "token")
