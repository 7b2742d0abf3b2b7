"""
Money helpers.

All amounts are Decimal; floats are never accepted for money.
"""

from decimal import ROUND_DOWN, ROUND_HALF_UP, Decimal, InvalidOperation

CENT = Decimal("0.01")
ZERO = Decimal("0")
HUNDRED = Decimal("100")


def to_decimal(value: Decimal | int | str) -> Decimal:
    """
    Convert a value to Decimal.

    Args:
        value: Decimal, int or numeric string

    Returns:
        Decimal value

    Raises:
        ValueError: If value is a float or not numeric
    """
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool) or isinstance(value, float):
        raise ValueError(f"Unsupported money value: {value!r}")
    try:
        return Decimal(str(value))
    except InvalidOperation as e:
        raise ValueError(f"Invalid money value: {value!r}") from e


def round_half_up(amount: Decimal) -> Decimal:
    """Round to cents, half away from zero."""
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def round_down(amount: Decimal) -> Decimal:
    """Truncate to cents."""
    return amount.quantize(CENT, rounding=ROUND_DOWN)


def percent_of(amount: Decimal, percent: Decimal) -> Decimal:
    """Unrounded ``amount * percent / 100``."""
    return amount * percent / HUNDRED
