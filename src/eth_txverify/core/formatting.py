"""
Display formatting for decoded amounts.

Amounts are always rendered fixed-point: never exponential notation, and
without trailing fractional zeros.
"""

from decimal import ROUND_DOWN, Decimal, InvalidOperation, localcontext

from ..exceptions import NumericFormatError


def format_amount(
    value: Decimal | int | float | str, decimals: int, grouping: bool = False
) -> str:
    """
    Render an amount as a canonical display string.

    The value is truncated toward zero to ``decimals`` fractional digits,
    then trailing zeros (and a dangling point) are removed.

    Args:
        value: Amount to render
        decimals: Maximum number of fractional digits to keep
        grouping: If True, separate thousands in the integer part with commas

    Returns:
        Fixed-point string, e.g. "0.0000001" or "1234.5"

    Raises:
        NumericFormatError: If value is not a finite number or decimals is negative

    Examples:
        >>> format_amount(Decimal("1.500000000000000000"), 18)
        '1.5'
        >>> format_amount(1e-07, 8)
        '0.0000001'
    """
    if decimals < 0:
        raise NumericFormatError(f"decimals must be non-negative, got {decimals}")

    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except InvalidOperation as e:
        raise NumericFormatError(f"not a supported numeric form: {value!r}") from e

    if not amount.is_finite():
        raise NumericFormatError(f"not a supported numeric form: {value!r}")

    with localcontext() as ctx:
        # wide enough for every integer digit plus the kept fraction
        ctx.prec = max(ctx.prec, amount.adjusted() + decimals + 2)
        amount = amount.quantize(Decimal(1).scaleb(-decimals), rounding=ROUND_DOWN)
    # quantize keeps the sign of values truncated to zero
    if amount.is_zero():
        amount = abs(amount)

    text = format(amount, ",f" if grouping else "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text
