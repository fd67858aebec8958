"""Exact currency arithmetic.

Amounts are ``Decimal`` values with at most two fraction digits (satang,
cents). Floats are only ever converted through ``str`` so that ``0.1``
becomes ``Decimal("0.1")`` rather than its binary approximation.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Iterable, Union

ZERO = Decimal("0")
MINOR_UNIT = Decimal("0.01")

AmountLike = Union[Decimal, int, float, str]


def to_amount(value: AmountLike) -> Decimal:
    """Convert ``value`` to a ``Decimal`` amount.

    Raises ``ValueError`` for booleans, non-numeric strings, NaN/infinity
    and values with more precision than the currency minor unit.
    """
    if isinstance(value, bool):
        raise ValueError(f"Amount must be a number, got {value!r}")
    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, (int, float, str)):
        try:
            amount = Decimal(str(value).strip())
        except InvalidOperation as e:
            raise ValueError(f"Amount {value!r} is not a number") from e
    else:
        raise ValueError(f"Amount must be a number, got {type(value).__name__}")

    if not amount.is_finite():
        raise ValueError(f"Amount {value!r} is not finite")
    try:
        exact = amount == amount.quantize(MINOR_UNIT, rounding=ROUND_HALF_UP)
    except InvalidOperation as e:
        raise ValueError(f"Amount {value!r} is out of range") from e
    if not exact:
        raise ValueError(f"Amount {value!r} is finer than the currency minor unit")
    return amount


def total(amounts: Iterable[Decimal]) -> Decimal:
    return sum(amounts, ZERO)


def format_amount(amount: Decimal) -> str:
    """Format with thousands separators and no redundant trailing zeros.

    ``Decimal("1000.00")`` -> ``"1,000"``, ``Decimal("1234.50")`` -> ``"1,234.5"``.
    """
    if amount == amount.to_integral_value():
        return f"{int(amount):,}"
    return format(amount.normalize(), ",f")


def percent(ratio: Decimal) -> int:
    """Round ``ratio * 100`` to the nearest integer, halves rounding up."""
    return int((ratio * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
