"""
Conversion between decimal amounts and on-chain scaled integers.

On-chain amounts are integers equal to ``decimal_amount * 10**decimals``,
usually carried as hex quantities ("0xde0b6b3a7640000" is 1 ETH with 18
decimals). This module converts in both directions without ever routing
the integer part through a float.

Usage:
    from eth_txverify.core.codec import scaled_hex_to_decimal, to_scaled_hex

    to_scaled_hex("1.5", 18)                        # '0x14d1120d7b160000'
    scaled_hex_to_decimal("0x14d1120d7b160000", 18)  # Decimal('1.500000000000000000')
"""

import logging
import re
from decimal import Decimal
from typing import NamedTuple

from hexbytes import HexBytes

from ..exceptions import FractionOverflowError, NumericFormatError

logger = logging.getLogger(__name__)

_DECIMAL_TEXT = re.compile(r"(?P<whole>\d*)(?:\.(?P<fraction>\d*))?")
_HEX_DIGITS = re.compile(r"[0-9a-f]*")
_HEX_LETTER = re.compile(r"[a-f]")


class FractionalParts(NamedTuple):
    """Decimal text split at its point, e.g. "-12.05" -> (12, 5, 2, True)."""

    whole: int
    fraction: int
    fraction_digits: int
    negative: bool


def _plain_text(value: float | Decimal) -> str:
    # str(1e-07) is exponential; format "f" expands it
    text = format(Decimal(str(value)), "f")
    # 100.0 carries no fraction digits
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text or "0"


def _split_sign(text: str) -> tuple[str, bool]:
    if text.startswith("-"):
        return text[1:], True
    return text, False


def is_hex_like(value: object) -> bool:
    """
    Check whether a value is hex text rather than decimal text.

    Hex text is either ``0x`` prefixed or made of hex digits with at least
    one letter ``a``-``f``. A leading ``-`` is ignored.
    """
    if not isinstance(value, str):
        return False

    text, _ = _split_sign(value.strip().lower())
    if text.startswith("0x"):
        return True
    return bool(text) and bool(_HEX_DIGITS.fullmatch(text)) and bool(
        _HEX_LETTER.search(text)
    )


def parse_to_big_integer(value: object) -> int | FractionalParts:
    """
    Parse any supported numeric form into a big integer.

    Supported forms:
    - int: returned unchanged
    - bytes / HexBytes: read as a big-endian unsigned integer
    - float / Decimal: rendered as plain decimal text, then parsed as text
    - decimal text: "42", "-42", "1.5" (a point yields FractionalParts)
    - hex text: "0xff", "-0xff", "ff", "0x" (empty means zero)

    Args:
        value: Value to parse

    Returns:
        Signed int, or FractionalParts when decimal text has a point

    Raises:
        NumericFormatError: If the value is not a supported numeric form
    """
    if isinstance(value, bool):
        raise NumericFormatError(f"not a supported numeric form: {value!r}")

    if isinstance(value, int):
        return value

    if isinstance(value, (bytes, HexBytes)):
        return int.from_bytes(bytes(value), "big")

    if isinstance(value, (float, Decimal)):
        if not Decimal(str(value)).is_finite():
            raise NumericFormatError(f"not a supported numeric form: {value!r}")
        value = _plain_text(value)

    if not isinstance(value, str):
        raise NumericFormatError(
            f"not a supported numeric form: {type(value).__name__}"
        )

    text, negative = _split_sign(value.strip().lower())

    if not text:
        return 0

    match = _DECIMAL_TEXT.fullmatch(text)
    if match and any(ch.isdigit() for ch in text):
        whole = match.group("whole") or "0"
        fraction = match.group("fraction")

        if fraction is not None:
            return FractionalParts(
                whole=int(whole),
                fraction=int(fraction or "0"),
                fraction_digits=len(fraction),
                negative=negative,
            )

        number = int(whole)
        return -number if negative else number

    if is_hex_like(text):
        digits = text[2:] if text.startswith("0x") else text
        if not _HEX_DIGITS.fullmatch(digits):
            raise NumericFormatError(f"not a valid hex string: {value!r}")

        number = int(digits, 16) if digits else 0
        return -number if negative else number

    raise NumericFormatError(f"not a supported numeric form: {value!r}")


def to_big_number(value: object, decimals: int) -> int:
    """
    Scale a decimal amount to its on-chain integer.

    ``whole * 10**decimals + fraction * 10**decimals // 10**fraction_digits``

    Args:
        value: Amount in any form accepted by parse_to_big_integer
        decimals: Scale (number of fractional digits)

    Returns:
        Scaled signed integer

    Raises:
        NumericFormatError: If the value cannot be parsed or decimals is negative
        FractionOverflowError: If the fraction has more digits than decimals
    """
    if isinstance(decimals, bool) or not isinstance(decimals, int) or decimals < 0:
        raise NumericFormatError(
            f"decimals must be a non-negative integer, got {decimals!r}"
        )

    parsed = parse_to_big_integer(value)
    scale = 10**decimals

    if isinstance(parsed, FractionalParts):
        if parsed.fraction_digits > decimals:
            raise FractionOverflowError(
                f"fraction part is out of limit: {parsed.fraction_digits} digits "
                f"for {decimals} decimals"
            )

        scaled = parsed.whole * scale + (
            parsed.fraction * scale // 10**parsed.fraction_digits
        )
        return -scaled if parsed.negative else scaled

    return parsed * scale


def to_hex(number: int) -> str:
    """Render an int as canonical lowercase hex ("0x0", "0xff", "-0x1")."""
    return hex(number)


def to_scaled_hex(amount: object, decimals: int) -> str:
    """
    Convert a decimal amount to the hex quantity used on-chain.

    Hex input and raw bytes are taken as already scaled and are only
    re-rendered in canonical form, never multiplied by ``10**decimals``.
    Trailing fractional zeros of float and Decimal amounts are not counted
    against ``decimals``.

    Args:
        amount: Decimal amount (int, float, Decimal, decimal text), hex text
            or bytes
        decimals: Token or coin decimals

    Returns:
        Canonical hex string with 0x prefix

    Raises:
        NumericFormatError: If the amount is not a supported numeric form
        FractionOverflowError: If the amount has more fractional digits than decimals

    Examples:
        >>> to_scaled_hex("1", 18)
        '0xde0b6b3a7640000'
        >>> to_scaled_hex("0xff", 0)
        '0xff'
    """
    if is_hex_like(amount) or isinstance(amount, (bytes, HexBytes)):
        parsed = parse_to_big_integer(amount)
        # hex text and bytes never yield FractionalParts
        return to_hex(parsed)

    return to_hex(to_big_number(amount, decimals))


def scaled_hex_to_decimal(value: object, decimals: int) -> Decimal:
    """
    Convert an on-chain integer back to its decimal amount.

    The integer is split into ``whole`` and ``fraction`` by ``10**decimals``
    and reassembled as an exact Decimal, so values far beyond 2**53 keep
    every digit.

    Args:
        value: Scaled integer as hex text, decimal integer text, int or bytes
        decimals: Token or coin decimals

    Returns:
        Decimal amount with ``decimals`` fractional digits

    Raises:
        NumericFormatError: If the value is not an integer form or decimals is negative
    """
    if isinstance(decimals, bool) or not isinstance(decimals, int) or decimals < 0:
        raise NumericFormatError(
            f"decimals must be a non-negative integer, got {decimals!r}"
        )

    parsed = parse_to_big_integer(value)
    if isinstance(parsed, FractionalParts):
        raise NumericFormatError(f"scaled value must be an integer, got {value!r}")

    sign = "-" if parsed < 0 else ""
    whole, fraction = divmod(abs(parsed), 10**decimals)

    if decimals == 0:
        return Decimal(f"{sign}{whole}")
    return Decimal(f"{sign}{whole}.{fraction:0{decimals}d}")


def to_int(value: object) -> int:
    """
    Parse an on-chain quantity (block number, gas, nonce) into an int.

    Accepts ints, hex quantities ("0x10") and decimal integer text ("16").

    Raises:
        NumericFormatError: If the value is fractional or unparseable
    """
    parsed = parse_to_big_integer(value)
    if isinstance(parsed, FractionalParts):
        raise NumericFormatError(f"quantity must be an integer, got {value!r}")
    return parsed
