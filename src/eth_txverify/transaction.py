"""
Transaction records built from a transaction body and its receipt.

A record is created by fetching the transaction body and the receipt for
one hash. Both lookups run concurrently; the record is only returned once
both have completed and passed schema validation, so callers never see a
partially populated record.

Usage:
    from eth_txverify.transaction import TransactionRecord

    record = TransactionRecord.fetch(tx_hash, provider)
    print(record.block_number, record.status)
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import asdict, dataclass
from typing import Any

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
)

from .core.codec import to_int, to_scaled_hex
from .core.normalization import normalize_hex_string
from .core.utils import TransactionProvider
from .core.validators import is_valid_address, is_valid_transaction_hash
from .decoders.erc20 import DecodedInput, decode_transfer_input
from .exceptions import InvalidIdentifierError, InvalidTransactionDataError

logger = logging.getLogger(__name__)


def _hex_text(value: Any) -> Any:
    if isinstance(value, (bytes, str)):
        return normalize_hex_string(value, with_prefix=True)
    return value


def _quantity(value: Any) -> Any:
    if value is None or isinstance(value, bool):
        return value
    number = to_int(value)
    if number < 0:
        raise ValueError(f"quantity must be non-negative, got {number}")
    return number


class TransactionBody(BaseModel):
    """Schema of a transaction returned by eth_getTransactionByHash."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    hash: str
    from_address: str = Field(alias="from")
    to_address: str | None = Field(default=None, alias="to")
    value: str
    input: str = Field(validation_alias=AliasChoices("input", "data"))
    block_number: int | None = Field(default=None, alias="blockNumber")
    block_hash: str | None = Field(default=None, alias="blockHash")
    nonce: int | None = None
    gas: int | None = None
    gas_price: int | None = Field(default=None, alias="gasPrice")
    transaction_index: int | None = Field(default=None, alias="transactionIndex")

    @field_validator("hash", "block_hash", mode="before")
    @classmethod
    def validate_hash(cls, v: Any) -> Any:
        """Normalize hashes to 0x-prefixed lowercase text of 32 bytes."""
        v = _hex_text(v)
        if v is not None and not is_valid_transaction_hash(v):
            raise ValueError(f"Hash must be 0x followed by 64 hex characters: {v}")
        return v

    @field_validator("from_address", "to_address", mode="before")
    @classmethod
    def validate_address(cls, v: Any) -> Any:
        """Validate 20-byte addresses."""
        if v is not None and not is_valid_address(v):
            raise ValueError(f"Invalid address: {v!r}")
        return v

    @field_validator("value", mode="before")
    @classmethod
    def validate_value(cls, v: Any) -> str:
        """Render the transferred value as a canonical hex quantity."""
        if isinstance(v, bool):
            raise ValueError("value must be a quantity")
        value = to_scaled_hex(v, 0)
        if value.startswith("-"):
            raise ValueError(f"value must be non-negative, got {value}")
        return value

    @field_validator("input", mode="before")
    @classmethod
    def validate_input(cls, v: Any) -> Any:
        """Normalize call data, "0x" when empty."""
        return _hex_text(v)

    @field_validator(
        "block_number", "nonce", "gas", "gas_price", "transaction_index", mode="before"
    )
    @classmethod
    def validate_quantity(cls, v: Any) -> Any:
        """Accept ints and hex quantities such as "0x10"."""
        return _quantity(v)


class TransactionReceipt(BaseModel):
    """Schema of a receipt returned by eth_getTransactionReceipt."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    transaction_hash: str | None = Field(default=None, alias="transactionHash")
    block_number: int | None = Field(default=None, alias="blockNumber")
    status: int
    gas_used: int = Field(alias="gasUsed")

    @field_validator("transaction_hash", mode="before")
    @classmethod
    def validate_hash(cls, v: Any) -> Any:
        """Normalize the hash to 0x-prefixed lowercase text."""
        v = _hex_text(v)
        if v is not None and not is_valid_transaction_hash(v):
            raise ValueError(f"Hash must be 0x followed by 64 hex characters: {v}")
        return v

    @field_validator("status", mode="before")
    @classmethod
    def validate_status(cls, v: Any) -> int:
        """Status is a single success bit."""
        status = _quantity(v)
        if status not in (0, 1):
            raise ValueError(f"status must be 0 or 1, got {v!r}")
        return status

    @field_validator("block_number", "gas_used", mode="before")
    @classmethod
    def validate_quantity(cls, v: Any) -> Any:
        """Accept ints and hex quantities such as "0x5208"."""
        return _quantity(v)


@dataclass(frozen=True)
class TransactionRecord:
    """
    Transaction body merged with the outcome from its receipt.

    ``block_number`` is None while the transaction is pending. ``status``
    and ``gas_used`` are None until a receipt exists.
    """

    hash: str
    from_address: str
    to_address: str | None
    value: str
    input: str
    block_number: int | None = None
    status: int | None = None
    gas_used: int | None = None
    block_hash: str | None = None
    nonce: int | None = None
    gas: int | None = None
    gas_price: int | None = None
    transaction_index: int | None = None

    @classmethod
    def fetch(cls, tx_hash: str, provider: TransactionProvider) -> "TransactionRecord":
        """Fetch and validate a record; see fetch_transaction_record."""
        return fetch_transaction_record(tx_hash, provider)

    def decode_input(self) -> DecodedInput | None:
        """Decode receiver and amount of a transfer call, None without call data."""
        return decode_transfer_input(self.input)

    def to_dict(self) -> dict[str, Any]:
        """Convert the record to a JSON-serializable dictionary."""
        return asdict(self)


def _validate(
    schema: type[BaseModel], data: dict[str, Any] | None, kind: str, tx_hash: str
) -> Any:
    if data is None:
        raise InvalidTransactionDataError(f"No {kind} data returned for {tx_hash}")

    try:
        return schema.model_validate(dict(data))
    except (ValidationError, TypeError, ValueError) as e:
        logger.warning(f"Invalid {kind} data for {tx_hash}: {e}")
        raise InvalidTransactionDataError(
            f"Invalid {kind} data for {tx_hash}: {e}"
        ) from e


def fetch_transaction_record(
    tx_hash: str, provider: TransactionProvider
) -> TransactionRecord:
    """
    Fetch transaction body and receipt and merge them into a record.

    The two lookups carry no data dependency and run concurrently. Only
    ``status`` and ``gas_used`` are taken from the receipt.

    Args:
        tx_hash: Transaction hash (0x followed by 64 hex characters)
        provider: Source of transaction and receipt data

    Returns:
        Validated TransactionRecord

    Raises:
        InvalidIdentifierError: If tx_hash is malformed
        InvalidTransactionDataError: If the body or receipt fails validation
        Exception: Provider transport errors, unchanged
    """
    if not is_valid_transaction_hash(tx_hash):
        raise InvalidIdentifierError(f"Invalid transaction id: {tx_hash!r}")

    logger.debug(f"Fetching transaction record {tx_hash}")

    with ThreadPoolExecutor(max_workers=2) as executor:
        body_future = executor.submit(provider.get_transaction, tx_hash)
        receipt_future = executor.submit(provider.get_transaction_receipt, tx_hash)

        raw_body = body_future.result()
        raw_receipt = receipt_future.result()

    body: TransactionBody = _validate(TransactionBody, raw_body, "transaction", tx_hash)
    if body.hash != tx_hash.lower():
        raise InvalidTransactionDataError(
            f"Transaction data is for {body.hash}, expected {tx_hash}"
        )

    receipt: TransactionReceipt | None = None
    if raw_receipt is not None:
        receipt = _validate(TransactionReceipt, raw_receipt, "receipt", tx_hash)
        if receipt.transaction_hash not in (None, body.hash):
            raise InvalidTransactionDataError(
                f"Receipt is for {receipt.transaction_hash}, expected {tx_hash}"
            )

    record = TransactionRecord(
        hash=body.hash,
        from_address=body.from_address,
        to_address=body.to_address,
        value=body.value,
        input=body.input,
        block_number=body.block_number,
        status=receipt.status if receipt else None,
        gas_used=receipt.gas_used if receipt else None,
        block_hash=body.block_hash,
        nonce=body.nonce,
        gas=body.gas,
        gas_price=body.gas_price,
        transaction_index=body.transaction_index,
    )

    logger.info(
        f"Fetched transaction {tx_hash[:10]}... "
        f"(block {record.block_number}, status {record.status})"
    )
    return record
