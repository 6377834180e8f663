"""
Transfer verification for fetched transaction records.

A record moves through ``UNKNOWN -> {PENDING, FAILED, CONFIRMED}``. Only a
confirmed record can verify as a transfer. A transaction without a block
number, or without a receipt yet, is PENDING; callers that need a final
answer use TransferVerifier.wait_for_status, which polls with a timeout.

Usage:
    from eth_txverify.verification import TransferVerifier

    verifier = TransferVerifier(provider, config)
    record = verifier.wait_for_status(tx_hash, timeout=60)
    ok = verifier.verify_transfer_with_data(record, receiver, "1.5")
"""

import logging
import threading
import time
from decimal import Decimal, InvalidOperation
from enum import Enum

from .config import NetworkConfig
from .core.codec import scaled_hex_to_decimal
from .core.utils import TransactionProvider
from .core.validators import require_address
from .decoders.erc20 import decode_transfer_input
from .exceptions import (
    InvalidTransactionDataError,
    NumericFormatError,
    VerificationCancelledError,
    VerificationTimeoutError,
)
from .transaction import TransactionRecord, fetch_transaction_record

logger = logging.getLogger(__name__)

Amount = Decimal | int | float | str


class TransferState(str, Enum):
    """Lifecycle state of a transaction record."""

    UNKNOWN = "unknown"
    PENDING = "pending"
    FAILED = "failed"
    CONFIRMED = "confirmed"


def classify(record: TransactionRecord | None) -> TransferState:
    """
    Classify a record by block inclusion and receipt status.

    Args:
        record: Fetched record, or None if there is none

    Returns:
        UNKNOWN without a record, PENDING until mined and receipted,
        FAILED for status 0, CONFIRMED otherwise
    """
    if record is None:
        return TransferState.UNKNOWN
    if record.block_number is None or record.status is None:
        return TransferState.PENDING
    if record.status == 0:
        return TransferState.FAILED
    return TransferState.CONFIRMED


def is_valid(record: TransactionRecord | None) -> bool:
    """Return True if the record is mined with a successful receipt."""
    return classify(record) is TransferState.CONFIRMED


validate_transaction = is_valid


def confirmations(record: TransactionRecord, current_block_height: int) -> int:
    """
    Count blocks mined after the record's block.

    Returns 0 for pending records and when the node reports a height below
    the record's block.
    """
    if record.block_number is None:
        return 0
    return max(0, current_block_height - record.block_number)


def _to_decimal(amount: Amount) -> Decimal:
    if isinstance(amount, bool):
        raise NumericFormatError(f"not a supported numeric form: {amount!r}")
    if isinstance(amount, Decimal):
        return amount
    try:
        # str() keeps floats at their shortest repr, 0.1 -> Decimal("0.1")
        return Decimal(str(amount))
    except InvalidOperation as e:
        raise NumericFormatError(f"not a supported numeric form: {amount!r}") from e


def verify_coin_transfer(record: TransactionRecord | None) -> bool:
    """Return True if the record is confirmed and moved a non-zero value."""
    if not is_valid(record):
        return False
    return record.value != "0x0"


def verify_token_transfer(
    record: TransactionRecord | None, token_address: str
) -> bool:
    """
    Return True if the record is confirmed and carries call data.

    The call target is not compared with ``token_address``; any confirmed
    contract call passes this check.

    Raises:
        InvalidAddressError: If token_address is malformed
    """
    require_address(token_address, "token")

    if not is_valid(record):
        return False
    return record.input != "0x"


def verify_coin_transfer_with_data(
    record: TransactionRecord | None,
    receiver: str,
    amount: Amount,
    coin_decimals: int,
) -> bool:
    """
    Verify a native coin transfer to ``receiver`` of exactly ``amount``.

    Args:
        record: Fetched record
        receiver: Expected receiver address
        amount: Expected amount in coin units (e.g. 1.5 ETH)
        coin_decimals: Decimals of the native coin

    Returns:
        True if the record is a confirmed coin transfer with matching data

    Raises:
        InvalidAddressError: If receiver is malformed
        NumericFormatError: If amount is not a number
    """
    receiver = require_address(receiver, "receiver")
    expected = _to_decimal(amount)

    if not verify_coin_transfer(record):
        return False

    actual_receiver = (record.to_address or "").lower()
    actual_amount = scaled_hex_to_decimal(record.value, coin_decimals)

    if actual_receiver != receiver or actual_amount != expected:
        logger.warning(
            f"Coin transfer {record.hash[:10]}... does not match: "
            f"{actual_amount} to {actual_receiver}, expected {expected} to {receiver}"
        )
        return False
    return True


def verify_token_transfer_with_data(
    record: TransactionRecord | None,
    receiver: str,
    amount: Amount,
    token_address: str,
    token_decimals: int,
) -> bool:
    """
    Verify a token transfer call to ``receiver`` of exactly ``amount``.

    Args:
        record: Fetched record
        receiver: Expected receiver address
        amount: Expected amount in token units
        token_address: Token contract address
        token_decimals: Decimals of the token

    Returns:
        True if the record is a confirmed transfer call with matching data

    Raises:
        InvalidAddressError: If receiver or token_address is malformed
        NumericFormatError: If amount is not a number
    """
    receiver = require_address(receiver, "receiver")
    expected = _to_decimal(amount)

    if not verify_token_transfer(record, token_address):
        return False

    try:
        decoded = decode_transfer_input(record.input)
    except InvalidTransactionDataError as e:
        logger.warning(
            f"Token transfer {record.hash[:10]}... has no transfer data: {e}"
        )
        return False
    if decoded is None:
        return False

    actual_receiver = decoded.receiver.lower()
    actual_amount = scaled_hex_to_decimal(decoded.amount, token_decimals)

    if actual_receiver != receiver or actual_amount != expected:
        logger.warning(
            f"Token transfer {record.hash[:10]}... does not match: "
            f"{actual_amount} to {actual_receiver}, expected {expected} to {receiver}"
        )
        return False
    return True


def verify_transfer(
    record: TransactionRecord | None, token_address: str | None = None
) -> bool:
    """Verify a coin transfer, or a token transfer when token_address is given."""
    if not token_address:
        return verify_coin_transfer(record)
    return verify_token_transfer(record, token_address)


def verify_transfer_with_data(
    record: TransactionRecord | None,
    receiver: str,
    amount: Amount,
    decimals: int,
    token_address: str | None = None,
) -> bool:
    """
    Verify transfer data against a coin or token transfer.

    Without ``token_address`` the record is checked as a native coin
    transfer. ``decimals`` is the scale of whichever asset is checked.
    """
    if not token_address:
        return verify_coin_transfer_with_data(record, receiver, amount, decimals)
    return verify_token_transfer_with_data(
        record, receiver, amount, token_address, decimals
    )


class TransferVerifier:
    """
    Verifies transfers against a provider and network configuration.

    Binds the external services (chain data, block height, token decimals,
    explorer URL) that the pure verification functions leave to the caller.
    """

    def __init__(
        self, provider: TransactionProvider, config: NetworkConfig | None = None
    ):
        """
        Initialize verifier.

        Args:
            provider: Source of transactions, receipts and block height
            config: Network settings; defaults to Ethereum mainnet values
        """
        self.provider = provider
        self.config = config or NetworkConfig()

    def fetch(self, tx_hash: str) -> TransactionRecord:
        """Fetch a validated record for tx_hash."""
        return fetch_transaction_record(tx_hash, self.provider)

    def get_confirmations(self, record: TransactionRecord) -> int:
        """Count confirmations of a record against the current block height."""
        if record.block_number is None:
            return 0
        return confirmations(record, self.provider.get_block_number())

    def wait_for_status(
        self,
        tx_hash: str,
        timeout: float | None = None,
        poll_interval: float | None = None,
        cancel_event: threading.Event | None = None,
    ) -> TransactionRecord:
        """
        Poll until the transaction is no longer pending.

        Args:
            tx_hash: Transaction hash
            timeout: Seconds to wait in total (default: config.wait_timeout)
            poll_interval: Seconds between fetches (default: config.poll_interval)
            cancel_event: Event that aborts the wait when set

        Returns:
            Record in FAILED or CONFIRMED state

        Raises:
            VerificationTimeoutError: If still pending after timeout
            VerificationCancelledError: If cancel_event is set while waiting
            InvalidIdentifierError: If tx_hash is malformed
            InvalidTransactionDataError: If fetched data fails validation
        """
        timeout = self.config.wait_timeout if timeout is None else timeout
        poll_interval = (
            self.config.poll_interval if poll_interval is None else poll_interval
        )
        if timeout < 0:
            raise ValueError(f"timeout must be non-negative, got {timeout}")
        if poll_interval <= 0:
            raise ValueError(f"poll_interval must be positive, got {poll_interval}")

        deadline = time.monotonic() + timeout
        attempt = 0

        while True:
            if cancel_event is not None and cancel_event.is_set():
                raise VerificationCancelledError(f"Wait for {tx_hash} was cancelled")

            attempt += 1
            record = self.fetch(tx_hash)
            state = classify(record)

            if state is not TransferState.PENDING:
                logger.info(f"Transaction {tx_hash[:10]}... is {state.value}")
                return record

            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise VerificationTimeoutError(
                    f"Transaction {tx_hash} still pending after {timeout} seconds "
                    f"({attempt} checks)"
                )

            delay = min(poll_interval, remaining)
            logger.debug(
                f"Transaction {tx_hash[:10]}... pending, checking again in {delay:.2f}s"
            )

            if cancel_event is None:
                time.sleep(delay)
            elif cancel_event.wait(delay):
                raise VerificationCancelledError(f"Wait for {tx_hash} was cancelled")

    def verify_transfer(
        self, record: TransactionRecord | None, token_address: str | None = None
    ) -> bool:
        """Verify a coin or token transfer; see verify_transfer."""
        return verify_transfer(record, token_address)

    def verify_transfer_with_data(
        self,
        record: TransactionRecord | None,
        receiver: str,
        amount: Amount,
        token_address: str | None = None,
        decimals: int | None = None,
    ) -> bool:
        """
        Verify transfer data, looking up decimals when not given.

        Coin decimals come from the configuration, token decimals from the
        provider's decimals() call on the token contract.
        """
        if decimals is None:
            if token_address:
                token_address = require_address(token_address, "token")
                decimals = self.provider.get_token_decimals(token_address)
            else:
                decimals = self.config.coin_decimals

        return verify_transfer_with_data(
            record, receiver, amount, decimals, token_address=token_address
        )

    def transaction_url(self, record: TransactionRecord | str) -> str:
        """
        Build the block explorer URL of a transaction.

        Raises:
            ValueError: If the configuration has no explorer URL
        """
        if not self.config.explorer_url:
            raise ValueError(f"No explorer URL configured for {self.config.name}")

        tx_hash = record if isinstance(record, str) else record.hash
        return self.config.explorer_url.rstrip("/") + "/tx/" + tx_hash
