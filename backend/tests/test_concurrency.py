"""
Two sessions on separate connections, each paused right after its read so
both act on the same snapshot before either writes.
"""

import asyncio

from sqlalchemy import func, select

from marketplace.core.errors import InsufficientBalanceError, StateConflictError
from marketplace.models.ledger import TransactionType, WalletTransaction
from marketplace.models.order import Order, OrderStatus, VendorOrderStatus
from marketplace.models.product import Product
from marketplace.models.vendor import Vendor
from marketplace.services import fulfillment, ledger, orders

from .conftest import ADDRESS, Factory, line


class Rendezvous:
    """Holds the first `parties` callers of a wrapped coroutine until all of them got there."""

    def __init__(self, parties: int = 2):
        self.parties = parties
        self.arrived = 0
        self.event = asyncio.Event()

    def after(self, fn):
        async def wrapped(*args, **kwargs):
            result = await fn(*args, **kwargs)
            self.arrived += 1
            if self.arrived >= self.parties:
                self.event.set()
            await asyncio.wait_for(self.event.wait(), timeout=10)
            return result

        return wrapped


async def _shipped_split_order(session_factory):
    async with session_factory() as s:
        f = Factory(s)
        customer = await f.account("customer")
        v1 = await f.vendor()
        v2 = await f.vendor()
        p1 = await f.product(v1, price=1000)
        p2 = await f.product(v2, price=2000)
        order = await orders.create_order(s, customer.id, [line(p1, 1), line(p2, 1)], ADDRESS, "card")
        for vendor in (v1, v2):
            await fulfillment.set_vendor_sub_order_status(s, vendor.id, order.id, "shipped")
        await s.commit()
        return order.id, v1.id, v2.id


async def _funded_vendor(session_factory, amount: int) -> int:
    async with session_factory() as s:
        vendor = await Factory(s).vendor()
        await ledger.credit(s, vendor.id, amount, "Order 1")
        await s.commit()
        return vendor.id


async def test_simultaneous_deliveries_mark_parent_delivered(file_session_factory, monkeypatch):
    order_id, v1, v2 = await _shipped_split_order(file_session_factory)
    monkeypatch.setattr(fulfillment, "get_order", Rendezvous().after(fulfillment.get_order))

    async def deliver(vendor_id):
        async with file_session_factory() as s:
            await fulfillment.set_vendor_sub_order_status(s, vendor_id, order_id, "delivered")
            await s.commit()

    await asyncio.gather(deliver(v1), deliver(v2))

    async with file_session_factory() as s:
        order = await orders.get_order(s, order_id)
        assert [so.status for so in order.sub_orders] == [VendorOrderStatus.delivered] * 2
        assert order.status == OrderStatus.delivered
        assert order.is_delivered is True
        assert order.delivered_at is not None


async def test_stale_transition_on_one_sub_order_is_refused(file_session_factory, monkeypatch):
    order_id, v1, _ = await _shipped_split_order(file_session_factory)
    monkeypatch.setattr(fulfillment, "get_order", Rendezvous().after(fulfillment.get_order))

    async def move(status):
        async with file_session_factory() as s:
            try:
                await fulfillment.set_vendor_sub_order_status(s, v1, order_id, status)
            except StateConflictError:
                await s.rollback()
                return None
            await s.commit()
            return status

    results = await asyncio.gather(move("delivered"), move("cancelled"))
    winners = [r for r in results if r]
    assert len(winners) == 1

    async with file_session_factory() as s:
        order = await orders.get_order(s, order_id)
        assert order.sub_order_for(v1).status == VendorOrderStatus(winners[0])


async def test_credit_and_debit_race_on_one_wallet(file_session_factory, monkeypatch):
    vendor_id = await _funded_vendor(file_session_factory, 1000)
    monkeypatch.setattr(ledger, "get_wallet", Rendezvous().after(ledger.get_wallet))

    async def apply(op, amount, description):
        async with file_session_factory() as s:
            await op(s, vendor_id, amount, description)
            await s.commit()

    await asyncio.gather(apply(ledger.credit, 500, "Order 2"), apply(ledger.debit, 800, "Payout 1"))

    async with file_session_factory() as s:
        wallet = await ledger.get_wallet(s, vendor_id)
        assert wallet.balance == 700
        assert wallet.total_earnings == 1500
        assert await ledger.reconcile_wallet(s, wallet) == {}


async def test_racing_debits_never_overdraw(file_session_factory, monkeypatch):
    vendor_id = await _funded_vendor(file_session_factory, 1000)
    monkeypatch.setattr(ledger, "get_wallet", Rendezvous().after(ledger.get_wallet))

    async def withdraw(description):
        async with file_session_factory() as s:
            try:
                await ledger.debit(s, vendor_id, 800, description)
            except InsufficientBalanceError:
                await s.rollback()
                return False
            await s.commit()
            return True

    results = await asyncio.gather(withdraw("Payout 1"), withdraw("Payout 2"))
    assert sorted(results) == [False, True]

    async with file_session_factory() as s:
        wallet = await ledger.get_wallet(s, vendor_id)
        assert wallet.balance == 200
        q = await s.execute(
            select(func.count()).select_from(WalletTransaction).where(WalletTransaction.type == TransactionType.debit)
        )
        assert q.scalar_one() == 1
        assert await ledger.reconcile_wallet(s, wallet) == {}


async def test_checkouts_racing_on_one_key_create_one_order(file_session_factory, monkeypatch):
    async with file_session_factory() as s:
        f = Factory(s)
        customer = await f.account("customer")
        vendor = await f.vendor(commission="10.00")
        product = await f.product(vendor, price=1000, quantity=10)
        await s.commit()
        customer_id, vendor_id, product_id = customer.id, vendor.id, product.id
        cart = [line(product, 2)]

    monkeypatch.setattr(orders, "_find_by_key", Rendezvous().after(orders._find_by_key))

    async def checkout():
        async with file_session_factory() as s:
            order = await orders.create_order(s, customer_id, cart, ADDRESS, "card", idempotency_key="race-1")
            await s.commit()
            return order.id

    first, second = await asyncio.gather(checkout(), checkout())
    assert first == second

    async with file_session_factory() as s:
        assert (await s.execute(select(func.count()).select_from(Order))).scalar_one() == 1
        assert (await s.get(Product, product_id)).quantity == 8
        assert (await s.get(Vendor, vendor_id)).total_orders == 1
        assert (await ledger.get_wallet(s, vendor_id)).balance == 1800
