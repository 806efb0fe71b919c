from __future__ import annotations
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation

from marketplace.core.errors import ValidationError

_HUNDRED = Decimal(100)


def to_percentage(value) -> Decimal:
    try:
        pct = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError(f"Invalid commission percentage: {value!r}")
    if not pct.is_finite() or pct < 0 or pct > _HUNDRED:
        raise ValidationError("Commission percentage must be between 0 and 100")
    return pct.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def compute_commission(subtotal: int, percentage) -> tuple[int, int]:
    """Split a vendor subtotal (minor units) into (commission, earnings).

    Commission is rounded half-up to the minor unit; earnings take the remainder
    so the two always add back to the subtotal.
    """
    if subtotal < 0:
        raise ValidationError("Subtotal must not be negative")
    pct = to_percentage(percentage)
    commission = int((Decimal(subtotal) * pct / _HUNDRED).quantize(Decimal(1), rounding=ROUND_HALF_UP))
    return commission, subtotal - commission
