from __future__ import annotations

import logging
from datetime import datetime, timedelta

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.core.config import settings
from marketplace.core.errors import AuthorizationError, StateConflictError
from marketplace.models.common import utcnow
from marketplace.models.order import Order, OrderStatus, TrackingStatus, VendorOrderStatus, VendorSubOrder
from marketplace.services.orders import get_order
from marketplace.services.statuses import parse_status

logger = logging.getLogger(__name__)

# forward order of the happy path; cancelled sits outside it
_PROGRESS = {
    VendorOrderStatus.pending: 0,
    VendorOrderStatus.processing: 1,
    VendorOrderStatus.shipped: 2,
    VendorOrderStatus.in_transit: 3,
    VendorOrderStatus.delivered: 4,
}
TERMINAL = (VendorOrderStatus.delivered, VendorOrderStatus.cancelled)

_TRACKING_FOR = {
    VendorOrderStatus.shipped: TrackingStatus.shipped,
    VendorOrderStatus.in_transit: TrackingStatus.in_transit,
    VendorOrderStatus.delivered: TrackingStatus.delivered,
    VendorOrderStatus.cancelled: TrackingStatus.cancelled,
}


def check_transition(current: VendorOrderStatus, target: VendorOrderStatus) -> None:
    if current in TERMINAL:
        raise StateConflictError(f"Sub-order is already {current.value}")
    if target == VendorOrderStatus.cancelled:
        return
    if _PROGRESS[target] < _PROGRESS[current]:
        raise StateConflictError(f"Cannot move sub-order from {current.value} back to {target.value}")


def apply_tracking(
    sub_order: VendorSubOrder,
    now: datetime,
    carrier: str | None = None,
    tracking_number: str | None = None,
    estimated_delivery: datetime | None = None,
) -> None:
    if carrier:
        sub_order.carrier = carrier
    if tracking_number:
        sub_order.tracking_number = tracking_number
    if estimated_delivery:
        sub_order.estimated_delivery = estimated_delivery

    tracking = _TRACKING_FOR.get(sub_order.status)
    if tracking:
        sub_order.tracking_status = tracking
    if sub_order.status == VendorOrderStatus.shipped and sub_order.estimated_delivery is None:
        sub_order.estimated_delivery = now + timedelta(days=settings.ESTIMATED_DELIVERY_DAYS)


def mark_delivered(order: Order, now: datetime) -> None:
    order.status = OrderStatus.delivered
    order.is_delivered = True
    order.delivered_at = now


async def derive_order_status(db: AsyncSession, order_id: int, now: datetime) -> bool:
    """Parent becomes delivered once every sub-order is delivered. Returns True if it changed.

    Evaluated in SQL against the current rows so two vendors delivering at
    the same moment still see each other's write.
    """
    undelivered = (
        select(VendorSubOrder.id)
        .where(VendorSubOrder.order_id == order_id, VendorSubOrder.status != VendorOrderStatus.delivered)
        .exists()
    )
    res = await db.execute(
        update(Order)
        .where(Order.id == order_id, Order.status != OrderStatus.delivered, ~undelivered)
        .values(status=OrderStatus.delivered, is_delivered=True, delivered_at=now, updated_at=now)
        .execution_options(synchronize_session=False)
    )
    return res.rowcount == 1


async def _reload(db: AsyncSession, order: Order) -> Order:
    await db.refresh(order)
    for so in order.sub_orders:
        await db.refresh(so)
    return order


async def set_vendor_sub_order_status(
    db: AsyncSession,
    vendor_id: int,
    order_id: int,
    new_status: str | VendorOrderStatus,
    carrier: str | None = None,
    tracking_number: str | None = None,
    estimated_delivery: datetime | None = None,
) -> Order:
    target = parse_status(VendorOrderStatus, new_status)
    order = await get_order(db, order_id, for_update=True)
    sub_order = order.sub_order_for(vendor_id)
    if sub_order is None:
        raise AuthorizationError("Vendor not authorized for this order")

    previous = sub_order.status
    check_transition(previous, target)

    now = utcnow()
    res = await db.execute(
        update(VendorSubOrder)
        .where(VendorSubOrder.id == sub_order.id, VendorSubOrder.status == previous)
        .values(status=target, updated_at=now)
        .execution_options(synchronize_session=False)
    )
    if res.rowcount != 1:
        raise StateConflictError("Sub-order was modified by another request")

    sub_order.status = target
    apply_tracking(sub_order, now, carrier, tracking_number, estimated_delivery)
    await db.flush()
    parent_changed = await derive_order_status(db, order.id, now)
    order = await _reload(db, order)

    logger.info(
        "sub-order status order_id=%s vendor_id=%s %s->%s parent=%s%s",
        order.id, vendor_id, previous.value, target.value, order.status.value,
        " (derived)" if parent_changed else "",
    )
    return order


async def set_order_status(db: AsyncSession, order_id: int, new_status: str | OrderStatus) -> Order:
    """Admin override of the parent order status."""
    target = parse_status(OrderStatus, new_status)
    order = await get_order(db, order_id, for_update=True)
    now = utcnow()
    if target == OrderStatus.delivered:
        mark_delivered(order, now)
    else:
        order.status = target
    await db.flush()
    logger.info("order status forced order_id=%s status=%s", order.id, target.value)
    return order
