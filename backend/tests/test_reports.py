from datetime import datetime, timezone

import pytest

from marketplace.core.errors import ValidationError
from marketplace.services.fulfillment import set_vendor_sub_order_status
from marketplace.services import ledger
from marketplace.services.orders import create_order
from marketplace.services.payouts import request_payout
from marketplace.services.reports import admin_dashboard, average, period_start, vendor_dashboard, vendor_earnings

from .conftest import ADDRESS, line


def test_period_boundaries():
    now = datetime(2026, 10, 15, 17, 30, tzinfo=timezone.utc)  # a Thursday
    assert period_start("all", now) is None
    assert period_start("day", now) == datetime(2026, 10, 15, tzinfo=timezone.utc)
    assert period_start("week", now) == datetime(2026, 10, 11, tzinfo=timezone.utc)
    assert period_start("month", now) == datetime(2026, 10, 1, tzinfo=timezone.utc)
    assert period_start("year", now) == datetime(2026, 1, 1, tzinfo=timezone.utc)
    with pytest.raises(ValidationError):
        period_start("decade", now)


def test_week_starting_on_sunday_is_that_day():
    sunday = datetime(2026, 10, 18, 9, 0, tzinfo=timezone.utc)
    assert period_start("week", sunday) == datetime(2026, 10, 18, tzinfo=timezone.utc)


def test_average_rounds_half_up():
    assert average(2501, 2) == 1251
    assert average(10, 3) == 3
    assert average(0, 0) == 0


async def test_vendor_earnings_count_delivered_sub_orders(db, factory):
    customer = await factory.account("customer")
    vendor = await factory.vendor(commission="10.00")
    product = await factory.product(vendor, price=1000)

    delivered = await create_order(db, customer.id, [line(product, 3)], ADDRESS, "card")
    await create_order(db, customer.id, [line(product, 1)], ADDRESS, "card")
    await set_vendor_sub_order_status(db, vendor.id, delivered.id, "delivered")

    report = await vendor_earnings(db, vendor.id, "all")
    assert report["total_orders"] == 1
    assert report["total_earnings"] == 2700
    assert report["total_commission"] == 300
    assert report["average_order_value"] == 2700
    # the wallet already holds both credits
    assert report["wallet"]["balance"] == 3600
    assert report["wallet"]["total_commission_paid"] == 400


async def test_vendor_earnings_without_activity(db, factory):
    vendor = await factory.vendor()
    report = await vendor_earnings(db, vendor.id, "month")
    assert report["total_orders"] == 0
    assert report["average_order_value"] == 0
    assert report["wallet"]["balance"] == 0


async def test_admin_dashboard(db, factory):
    customer = await factory.account("customer")
    v1 = await factory.vendor(commission="10.00")
    v2 = await factory.vendor(commission="15.00")
    await factory.vendor(approved=False)
    await factory.vendor(suspended=True)
    a = await factory.product(v1, price=5000)
    b = await factory.product(v2, price=5000)
    await create_order(db, customer.id, [line(a, 1), line(b, 1)], ADDRESS, "card")
    await request_payout(db, v1.id, 1000)

    stats = await admin_dashboard(db)
    assert stats == {
        "vendors_total": 4,
        "vendors_approved": 3,
        "vendors_suspended": 1,
        "orders_total": 1,
        "payouts_total": 1,
        "payouts_pending": 1,
        "platform_revenue": 1250,
    }


async def test_vendor_dashboard(db, factory):
    customer = await factory.account("customer")
    vendor = await factory.vendor(commission="10.00")
    product = await factory.product(vendor, price=1000)
    order_ids = []
    for _ in range(6):
        order = await create_order(db, customer.id, [line(product, 1)], ADDRESS, "card")
        order_ids.append(order.id)
    await set_vendor_sub_order_status(db, vendor.id, order_ids[0], "cancelled")

    dash = await vendor_dashboard(db, vendor)
    assert dash["vendor"]["id"] == vendor.id
    assert dash["total_orders"] == 6
    # cancelled sub-orders do not count as sales
    assert dash["total_sales"] == 5000
    assert [o["order_id"] for o in dash["recent_orders"]] == order_ids[::-1][:5]
    newest = dash["recent_orders"][0]
    assert (newest["vendor_subtotal"], newest["vendor_earnings"], newest["sub_order_status"]) == (1000, 900, "pending")
    # the cancel keeps the credit
    assert dash["wallet"]["balance"] == 5400


async def test_vendor_dashboard_creates_wallet(db, factory):
    vendor = await factory.vendor()
    dash = await vendor_dashboard(db, vendor)
    assert dash["total_orders"] == 0
    assert dash["recent_orders"] == []
    assert dash["wallet"]["balance"] == 0
    assert await ledger.get_wallet(db, vendor.id) is not None
