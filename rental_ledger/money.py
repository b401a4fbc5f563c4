"""
Money helpers

DESIGN DECISION: Amounts enter the system as whatever the caller had
(form strings, JSON numbers, floats from old backups) and are converted
to Decimal exactly once, here. Nothing inside the engines coerces.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

ZERO = Decimal("0")


def to_decimal(value: Any) -> Decimal:
    """
    Coerce a boundary value into a Decimal.

    None and blank strings count as zero. Floats go through ``str`` so
    ``0.1`` stays ``Decimal("0.1")``. NaN and infinities are rejected.
    """
    if value is None:
        return ZERO
    if isinstance(value, bool):
        raise ValueError("Boolean is not a valid amount")
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, int):
        result = Decimal(value)
    elif isinstance(value, float):
        result = Decimal(str(value))
    elif isinstance(value, str):
        text = value.strip().replace("$", "").replace(" ", "")
        if not text:
            return ZERO
        try:
            result = Decimal(text)
        except InvalidOperation:
            raise ValueError(f"Invalid amount: {value!r}") from None
    else:
        raise ValueError(f"Unsupported amount type: {type(value).__name__}")

    if not result.is_finite():
        raise ValueError(f"Amount must be finite, got {value!r}")
    return result


def format_amount(amount: Decimal) -> str:
    """Render an amount with zero fractional digits and '.' thousands separators."""
    rounded = amount.quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return f"{rounded:,.0f}".replace(",", ".")


def format_money(amount: Decimal, currency: Any = None) -> str:
    """
    Render money for display, e.g. ``ARS $55.000``.

    ``currency`` may be a Currency member, a plain code or None.
    """
    code = getattr(currency, "value", currency)
    text = f"${format_amount(amount)}"
    if code:
        return f"{code} {text}"
    return text
