"""
Error types raised by the transfer verification library.

Transport errors raised by a provider are never wrapped; they reach the
caller unchanged. Everything below is raised by the library itself.
"""


class TransferVerificationError(Exception):
    """Base class for all errors raised by eth_txverify."""


class InvalidIdentifierError(TransferVerificationError, ValueError):
    """Transaction hash is not 0x followed by 64 hex digits."""


class InvalidAddressError(TransferVerificationError, ValueError):
    """Sender, receiver or token address is malformed."""


class InvalidTransactionDataError(TransferVerificationError, ValueError):
    """Fetched transaction body or receipt failed schema validation."""


class NumericFormatError(TransferVerificationError, TypeError, ValueError):
    """Value is not a supported numeric form for the amount codec."""


class FractionOverflowError(NumericFormatError):
    """Fraction has more digits than the requested decimals scale."""


class VerificationTimeoutError(TransferVerificationError, TimeoutError):
    """Transaction status did not resolve within the caller's timeout."""


class VerificationCancelledError(TransferVerificationError):
    """Waiting for a transaction status was cancelled by the caller."""
