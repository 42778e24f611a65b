"""Exact-decimal money handling. Floats never touch an amount.

Every monetary value inside the engines is a Decimal quantized to the
currency's minor unit. Anything that arrives from a form or a loosely typed
API payload goes through parse_money first.
"""

import re
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

MONEY_PLACES = 2

_QUANT = Decimal(1).scaleb(-MONEY_PLACES)
_NON_NUMERIC = re.compile(r"[^0-9.+\-]")

ZERO = Decimal("0.00")


def to_money(value) -> Decimal:
    """
    Quantize a value to currency precision (ROUND_HALF_UP).

    Accepts Decimal, int or numeric str. Floats are converted through str()
    so 0.1 stays 0.1 instead of its binary expansion.

    Raises ValueError if the value is not a finite number.
    """
    if isinstance(value, float):
        value = str(value)
    try:
        amount = Decimal(value)
    except (InvalidOperation, TypeError):
        raise ValueError(f"Not a monetary value: {value!r}")
    if not amount.is_finite():
        raise ValueError(f"Not a finite monetary value: {value!r}")
    return amount.quantize(_QUANT, rounding=ROUND_HALF_UP)


def parse_money(raw) -> Decimal:
    """
    Parse a loosely formatted amount at a system boundary.

    "TK 1,234.56" -> Decimal("1234.56"), None/"" -> 0, garbage -> 0.
    Use this only on data coming from outside; engine code works on Decimals.
    """
    if raw is None or isinstance(raw, bool):
        return ZERO
    if isinstance(raw, (int, float, Decimal)):
        try:
            return to_money(raw)
        except ValueError:
            return ZERO

    cleaned = _NON_NUMERIC.sub("", str(raw))
    if not cleaned:
        return ZERO
    try:
        return to_money(cleaned)
    except ValueError:
        return ZERO


def format_money(value, symbol: str = "৳") -> str:
    """Format an amount for display, e.g. ৳1,234.50."""
    return f"{symbol}{to_money(value):,.2f}"


def parse_rate(raw) -> Decimal:
    """
    Parse a percentage at a system boundary without rounding it.

    "1.125%" -> Decimal("1.125"), None/"" -> 0, garbage -> 0.
    Fee rates keep full precision; only the resulting fee is quantized.
    """
    if raw is None or isinstance(raw, bool):
        return Decimal(0)
    if isinstance(raw, (int, float, Decimal)):
        text = str(raw)
    else:
        text = _NON_NUMERIC.sub("", str(raw))

    try:
        rate = Decimal(text)
    except InvalidOperation:
        return Decimal(0)
    return rate if rate.is_finite() else Decimal(0)
