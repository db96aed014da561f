"""
Money helpers.

Amounts are stored as integer cents everywhere in the database. The HTTP
API speaks decimal amounts (20, 19.99) because that is what the register UI
displays; conversion happens only at the edges.
"""
from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from .errors import ValidationError


# Maximum price: $9,999,999.99 (999,999,999 cents)
MAX_AMOUNT_CENTS = 999_999_999

_CENT = Decimal("0.01")
_MAX_AMOUNT = Decimal(MAX_AMOUNT_CENTS) / 100


def to_cents(value, field: str = "amount") -> int:
    """
    Convert a client-supplied amount (int, float or numeric string) to cents.

    Rounds half-up to the nearest cent. Booleans, blanks, non-finite values
    and amounts above MAX_AMOUNT_CENTS are rejected.
    """
    if value is None or isinstance(value, bool):
        raise ValidationError(f"{field} must be a number")

    if isinstance(value, str):
        value = value.strip()
        if not value:
            raise ValidationError(f"{field} must be a number")

    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{field} must be a number")

    if not amount.is_finite():
        raise ValidationError(f"{field} must be a number")

    # Bound before quantize; huge exponents overflow the decimal context
    if abs(amount) > _MAX_AMOUNT:
        raise ValidationError(f"{field} cannot exceed {MAX_AMOUNT_CENTS / 100:,.2f}")

    cents = int((amount.quantize(_CENT, rounding=ROUND_HALF_UP) * 100).to_integral_value())
    if abs(cents) > MAX_AMOUNT_CENTS:
        raise ValidationError(f"{field} cannot exceed {MAX_AMOUNT_CENTS / 100:,.2f}")
    return cents


def from_cents(cents: int | None) -> float | None:
    """Cents to a JSON-friendly amount (6000 -> 60.0)."""
    if cents is None:
        return None
    return float(Decimal(cents) / 100)
