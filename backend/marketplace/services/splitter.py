from __future__ import annotations
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Mapping, Sequence

from marketplace.core.errors import EmptyCartError, InvalidVendorError, ValidationError
from marketplace.services.cart import CartLine
from marketplace.services.commission import compute_commission, to_percentage


@dataclass(frozen=True)
class VendorTerms:
    vendor_id: int
    commission_percentage: Decimal
    can_sell: bool = True


@dataclass
class VendorGroup:
    vendor_id: int
    commission_percentage: Decimal
    lines: list[CartLine] = field(default_factory=list)
    subtotal: int = 0
    commission_amount: int = 0
    vendor_earnings: int = 0


def split_cart(lines: Sequence[CartLine], vendors: Mapping[int, VendorTerms]) -> list[VendorGroup]:
    """Group cart lines by vendor (first-seen order) and price each group.

    Any line with a missing, unknown or non-selling vendor aborts the whole split.
    """
    if not lines:
        raise EmptyCartError()

    groups: dict[int, VendorGroup] = {}
    for line in lines:
        if line.vendor_id is None:
            raise InvalidVendorError()
        terms = vendors.get(line.vendor_id)
        if terms is None:
            raise InvalidVendorError()
        if not terms.can_sell:
            raise InvalidVendorError(f"Vendor #{line.vendor_id} is not accepting orders")
        if line.quantity <= 0:
            raise ValidationError(f"Invalid quantity for product #{line.product_id}")
        if line.unit_price < 0:
            raise ValidationError(f"Invalid price for product #{line.product_id}")

        g = groups.get(line.vendor_id)
        if g is None:
            g = groups[line.vendor_id] = VendorGroup(
                vendor_id=line.vendor_id,
                commission_percentage=to_percentage(terms.commission_percentage),
            )
        g.lines.append(line)
        g.subtotal += int(line.unit_price) * int(line.quantity)

    for g in groups.values():
        g.commission_amount, g.vendor_earnings = compute_commission(g.subtotal, g.commission_percentage)
    return list(groups.values())


def order_total(groups: Sequence[VendorGroup], tax_price: int, shipping_price: int) -> int:
    if tax_price < 0 or shipping_price < 0:
        raise ValidationError("Tax and shipping prices must not be negative")
    return sum(g.subtotal for g in groups) + int(tax_price) + int(shipping_price)
