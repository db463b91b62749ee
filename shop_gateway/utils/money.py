"""Decimal helpers for currency amounts"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

TWOPLACES = Decimal("0.01")


def to_decimal(value) -> Decimal:
    """Exact Decimal for ints, strings and floats (floats go through str)"""
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def to_money(value) -> Decimal:
    """Quantize to cents for storage"""
    return to_decimal(value).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def parse_amount(raw) -> Decimal:
    """
    Parse an operator-entered amount.

    Absent, blank or unparsable input counts as 0, the same way an empty
    payment field does on the delivery form.
    """
    if raw is None or isinstance(raw, bool):
        return Decimal("0")
    if isinstance(raw, str):
        raw = raw.strip()
        if not raw:
            return Decimal("0")
    try:
        value = to_decimal(raw)
    except (InvalidOperation, ValueError, TypeError):
        return Decimal("0")
    if not value.is_finite():
        return Decimal("0")
    return value
