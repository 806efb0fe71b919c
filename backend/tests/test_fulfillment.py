from datetime import datetime, timedelta, timezone

import pytest

from marketplace.core.config import settings
from marketplace.core.errors import AuthorizationError, InvalidStatusError, StateConflictError
from marketplace.models.order import OrderStatus, TrackingStatus, VendorOrderStatus, VendorSubOrder
from marketplace.services import ledger
from marketplace.services.fulfillment import (
    apply_tracking,
    check_transition,
    set_order_status,
    set_vendor_sub_order_status,
)
from marketplace.services.orders import create_order

from .conftest import ADDRESS, line


async def _split_order(factory, db):
    customer = await factory.account("customer")
    v1 = await factory.vendor()
    v2 = await factory.vendor()
    p1 = await factory.product(v1, price=1000)
    p2 = await factory.product(v2, price=2000)
    order = await create_order(db, customer.id, [line(p1, 1), line(p2, 1)], ADDRESS, "card")
    return order, v1, v2


async def test_parent_delivered_only_after_every_sub_order(db, factory):
    order, v1, v2 = await _split_order(factory, db)

    await set_vendor_sub_order_status(db, v1.id, order.id, "delivered")
    assert order.status == OrderStatus.pending
    assert order.is_delivered is False

    await set_vendor_sub_order_status(db, v2.id, order.id, "processing")
    assert order.status == OrderStatus.pending

    updated = await set_vendor_sub_order_status(db, v2.id, order.id, "delivered")
    assert updated.status == OrderStatus.delivered
    assert updated.is_delivered is True
    assert updated.delivered_at is not None


async def test_sibling_sub_order_is_untouched(db, factory):
    order, v1, v2 = await _split_order(factory, db)

    await set_vendor_sub_order_status(db, v1.id, order.id, "shipped", carrier="DHL", tracking_number="TRK1")

    mine = order.sub_order_for(v1.id)
    other = order.sub_order_for(v2.id)
    assert mine.status == VendorOrderStatus.shipped
    assert mine.tracking_status == TrackingStatus.shipped
    assert (mine.carrier, mine.tracking_number) == ("DHL", "TRK1")
    assert other.status == VendorOrderStatus.pending
    assert other.tracking_status == TrackingStatus.not_shipped
    assert other.carrier is None


async def test_vendor_outside_order_is_forbidden(db, factory):
    order, _, _ = await _split_order(factory, db)
    outsider = await factory.vendor()
    with pytest.raises(AuthorizationError):
        await set_vendor_sub_order_status(db, outsider.id, order.id, "shipped")


async def test_status_casing_is_not_coerced(db, factory):
    order, v1, _ = await _split_order(factory, db)
    with pytest.raises(InvalidStatusError):
        await set_vendor_sub_order_status(db, v1.id, order.id, "Shipped")
    with pytest.raises(InvalidStatusError):
        await set_vendor_sub_order_status(db, v1.id, order.id, "lost")


async def test_terminal_sub_orders_cannot_move(db, factory):
    order, v1, v2 = await _split_order(factory, db)
    await set_vendor_sub_order_status(db, v1.id, order.id, "delivered")
    await set_vendor_sub_order_status(db, v2.id, order.id, "cancelled")

    with pytest.raises(StateConflictError):
        await set_vendor_sub_order_status(db, v1.id, order.id, "in_transit")
    with pytest.raises(StateConflictError):
        await set_vendor_sub_order_status(db, v2.id, order.id, "processing")


async def test_cancelling_keeps_wallet_credit(db, factory):
    order, v1, _ = await _split_order(factory, db)
    await set_vendor_sub_order_status(db, v1.id, order.id, "cancelled")

    assert order.sub_order_for(v1.id).tracking_status == TrackingStatus.cancelled
    assert (await ledger.get_wallet(db, v1.id)).balance == 900


@pytest.mark.parametrize(
    "current,target",
    [
        (VendorOrderStatus.pending, VendorOrderStatus.processing),
        (VendorOrderStatus.pending, VendorOrderStatus.delivered),
        (VendorOrderStatus.processing, VendorOrderStatus.in_transit),
        (VendorOrderStatus.shipped, VendorOrderStatus.shipped),
        (VendorOrderStatus.in_transit, VendorOrderStatus.cancelled),
    ],
)
def test_allowed_transitions(current, target):
    check_transition(current, target)


@pytest.mark.parametrize(
    "current,target",
    [
        (VendorOrderStatus.shipped, VendorOrderStatus.processing),
        (VendorOrderStatus.in_transit, VendorOrderStatus.pending),
        (VendorOrderStatus.delivered, VendorOrderStatus.delivered),
        (VendorOrderStatus.cancelled, VendorOrderStatus.pending),
    ],
)
def test_rejected_transitions(current, target):
    with pytest.raises(StateConflictError):
        check_transition(current, target)


def test_shipping_sets_default_estimated_delivery():
    now = datetime(2026, 3, 2, 12, 0, tzinfo=timezone.utc)
    so = VendorSubOrder(status=VendorOrderStatus.shipped, tracking_status=TrackingStatus.not_shipped)

    apply_tracking(so, now, carrier="UPS")

    assert so.tracking_status == TrackingStatus.shipped
    assert so.carrier == "UPS"
    assert so.estimated_delivery == now + timedelta(days=settings.ESTIMATED_DELIVERY_DAYS)


def test_explicit_estimated_delivery_wins():
    now = datetime(2026, 3, 2, 12, 0, tzinfo=timezone.utc)
    eta = now + timedelta(days=2)
    so = VendorSubOrder(status=VendorOrderStatus.shipped, tracking_status=TrackingStatus.not_shipped)

    apply_tracking(so, now, estimated_delivery=eta)
    assert so.estimated_delivery == eta


def test_processing_does_not_touch_tracking():
    now = datetime(2026, 3, 2, 12, 0, tzinfo=timezone.utc)
    so = VendorSubOrder(status=VendorOrderStatus.processing, tracking_status=TrackingStatus.not_shipped)

    apply_tracking(so, now)
    assert so.tracking_status == TrackingStatus.not_shipped
    assert so.estimated_delivery is None


async def test_admin_override_sets_delivery_flags(db, factory):
    order, _, _ = await _split_order(factory, db)

    updated = await set_order_status(db, order.id, "delivered")
    assert updated.status == OrderStatus.delivered
    assert updated.is_delivered is True
    assert all(so.status == VendorOrderStatus.pending for so in updated.sub_orders)

    updated = await set_order_status(db, order.id, "processing")
    assert updated.status == OrderStatus.processing


async def test_admin_override_rejects_vendor_only_status(db, factory):
    order, _, _ = await _split_order(factory, db)
    with pytest.raises(InvalidStatusError):
        await set_order_status(db, order.id, "in_transit")
