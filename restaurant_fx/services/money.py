"""Money / rounding helpers.

Centralized so the conversion engine, the HTTP API and any receipt rendering
use identical rounding semantics: ROUND_HALF_UP to the currency's minor unit.
"""

from __future__ import annotations
import math
from decimal import Context, Decimal, ROUND_HALF_UP

from restaurant_fx.models.currencies import decimal_digits_for, get_currency


def _quantum(digits: int) -> Decimal:
    return Decimal(1).scaleb(-digits)


def round_to_digits(value: float, digits: int) -> float:
    if not math.isfinite(value):
        raise ValueError(f"cannot round non-finite amount {value!r}")
    d = Decimal(str(value))
    # Precision must cover every whole digit plus the minor unit, or quantize raises.
    ctx = Context(prec=max(28, d.adjusted() + digits + 2))
    return float(d.quantize(_quantum(digits), rounding=ROUND_HALF_UP, context=ctx))


def round_to_currency(value: float, currency: str) -> float:
    """Round ``value`` to the minor unit of ``currency`` (UGX -> whole units)."""
    return round_to_digits(value, decimal_digits_for(currency))


def format_amount(value: float, currency: str) -> str:
    """Symbol-prefixed display string, e.g. ``KSh1,300.50`` or ``USh3,750``."""
    digits = decimal_digits_for(currency)
    meta = get_currency(currency)
    symbol = meta.symbol if meta else currency.upper()
    return f"{symbol}{round_to_digits(value, digits):,.{digits}f}"
